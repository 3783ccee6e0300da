"""
Physics World
=============

Fixed-step Euler integration for the entity and constant-speed scrolling
for obstacles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import Obstacle, SessionState
from tapfly.flight_core.obstacle_manager import ObstacleManager


@dataclass
class PhysicsResult:
    """Outcome of one physics step."""
    floor_hit: bool
    ceiling_hit: bool
    passed: List[Obstacle] = field(default_factory=list)
    retired: int = 0


class PhysicsWorld:
    """
    Applies one physics tick to a SessionState.

    Order per tick:
    1. velocity += gravity
    2. y += velocity
    3. clamp to [0, floor_y]; reaching the floor is reported as fatal
    4. scroll obstacles left, collecting pass events
    5. retire obstacles that left the screen

    The step does not check phase; the caller decides whether to tick.
    """

    def __init__(
        self,
        obstacle_manager: ObstacleManager,
        config: Optional[GameConfig] = None
    ):
        """
        Initialize physics world.

        Args:
            obstacle_manager: Provides pass detection and retirement.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._obstacles = obstacle_manager
        self._gravity = config.physics.gravity
        self._jump_impulse = config.physics.jump_impulse
        self._floor_y = config.floor_y
        self._speed = config.obstacles.speed

    @property
    def floor_y(self) -> float:
        return self._floor_y

    def apply_impulse(self, state: SessionState) -> None:
        """Set (not add) the entity velocity to the jump impulse."""
        state.entity_velocity = self._jump_impulse

    def integrate_entity(self, state: SessionState) -> PhysicsResult:
        """Steps 1-3: gravity, position, clamp."""
        state.entity_velocity += self._gravity
        state.entity_y += state.entity_velocity

        floor_hit = False
        ceiling_hit = False

        # Ceiling clamps without touching velocity; floor clamps and is fatal
        if state.entity_y <= 0:
            state.entity_y = 0.0
            ceiling_hit = True
        elif state.entity_y >= self._floor_y:
            state.entity_y = self._floor_y
            floor_hit = True

        return PhysicsResult(floor_hit=floor_hit, ceiling_hit=ceiling_hit)

    def advance_obstacles(self, state: SessionState) -> List[Obstacle]:
        """Step 4: scroll every obstacle and return the ones passed this tick."""
        for obstacle in state.obstacles:
            obstacle.x -= self._speed
        return self._obstacles.collect_passes(state.obstacles)

    def step(self, state: SessionState) -> PhysicsResult:
        """
        Run one full physics tick.

        Args:
            state: Session state to mutate.

        Returns:
            PhysicsResult with boundary flags and pass events.
        """
        result = self.integrate_entity(state)
        result.passed = self.advance_obstacles(state)
        result.retired = self._obstacles.retire_offscreen(state)
        return result
