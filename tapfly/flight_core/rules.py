"""
Game Rules
==========

Handles entity-vs-obstacle collision and session termination conditions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import Obstacle


@dataclass
class TerminationResult:
    """Result of termination check."""
    terminated: bool
    reason: str

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, "")

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(True, reason)


class CollisionRules:
    """
    Axis-aligned overlap test between the entity and obstacle pairs.

    The entity never moves horizontally, so its left/right edges are fixed.
    An obstacle only matters while it overlaps the entity horizontally; the
    entity is then safe only if it lies entirely inside the gap.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize collision rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._entity_left = config.entity.x
        self._entity_right = config.entity.x + config.entity.size
        self._entity_size = config.entity.size
        self._obstacle_width = config.obstacles.width
        self._gap_height = config.obstacles.gap_height

    @property
    def entity_span(self) -> Tuple[float, float]:
        """Fixed (left, right) edges of the entity."""
        return (self._entity_left, self._entity_right)

    def overlaps_horizontally(self, obstacle: Obstacle) -> bool:
        obstacle_left = obstacle.x
        obstacle_right = obstacle.x + self._obstacle_width
        return self._entity_right > obstacle_left and self._entity_left < obstacle_right

    def collides_with(self, entity_y: float, obstacle: Obstacle) -> bool:
        """True if the entity at entity_y hits the given obstacle pair."""
        if not self.overlaps_horizontally(obstacle):
            return False

        entity_top = entity_y
        entity_bottom = entity_y + self._entity_size
        gap_bottom = obstacle.gap_top + self._gap_height
        return entity_top < obstacle.gap_top or entity_bottom > gap_bottom

    def check_collision(self, entity_y: float, obstacles: Iterable[Obstacle]) -> bool:
        """
        True if the entity collides with any obstacle.

        The result is a pure OR over obstacles, so evaluation order is irrelevant.
        """
        return any(self.collides_with(entity_y, o) for o in obstacles)


class TerminationRules:
    """
    Handles session termination conditions.

    - Floor: the entity reached the floor (always fatal, any velocity)
    - Collision: the entity overlaps an obstacle outside its gap

    The ceiling is only a clamp and never ends a session.
    """

    FLOOR = "floor"
    COLLISION = "collision"
    QUIT = "quit"

    def check_termination(
        self,
        floor_hit: bool,
        collided: bool
    ) -> TerminationResult:
        """
        Check all termination conditions.

        Args:
            floor_hit: True if the physics step clamped the entity to the floor.
            collided: True if the collision check found any overlap.

        Returns:
            TerminationResult indicating session state.
        """
        if floor_hit:
            return TerminationResult.game_over(self.FLOOR)

        if collided:
            return TerminationResult.game_over(self.COLLISION)

        return TerminationResult.none()


class GameRules:
    """
    Combined interface for all game rules.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize game rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self.collision = CollisionRules(config)
        self.termination = TerminationRules()
