"""
Tap-to-Fly Package
==================

This package contains the game simulation, scoring, and evaluation systems
for the tap-to-fly arcade mini-game. It controls:

- Entity physics (gravity, jump impulse, world bounds)
- Obstacle spawning and gap placement
- Collision and termination rules
- Session lifecycle and energy gating
- Coin and XP rewards

All tunable parameters are in game_config.yaml.
"""
