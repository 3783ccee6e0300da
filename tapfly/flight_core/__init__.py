"""
Flight Core - The tap-to-fly simulation.

This module provides the fixed-tick game simulation, a Gymnasium
environment wrapper, and all supporting systems (scheduler, physics,
obstacles, rules, rewards, replays).

Main exports:
- FlightGame: Session lifecycle and tick loop
- FlightEnv: Gymnasium environment for agents
- GameConfig: Configuration loaded from game_config.yaml
- PlayerContext / SessionSummary: data exchanged with the host app
- ReplayRecorder / verify_replay: auditable session records
"""

from tapfly.flight_core.config_loader import GameConfig, load_config, config_from_dict
from tapfly.flight_core.entities import Obstacle, Phase, PlayerContext, SessionState, SessionSummary
from tapfly.flight_core.scheduler import TickScheduler
from tapfly.flight_core.game import FlightGame, TickResult
from tapfly.flight_core.state_snapshot import GameSnapshot
from tapfly.flight_core.env_gym import FlightEnv
from tapfly.flight_core.replay_recorder import (
    ReplayRecorder,
    generate_replay_filename,
    load_replay,
    verify_replay,
)

__all__ = [
    "GameConfig",
    "load_config",
    "config_from_dict",
    "Obstacle",
    "Phase",
    "PlayerContext",
    "SessionState",
    "SessionSummary",
    "TickScheduler",
    "FlightGame",
    "TickResult",
    "GameSnapshot",
    "FlightEnv",
    "ReplayRecorder",
    "generate_replay_filename",
    "load_replay",
    "verify_replay",
]
