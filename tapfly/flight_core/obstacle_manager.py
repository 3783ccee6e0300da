"""
Obstacle Manager
================

Spawns obstacle pairs with seeded random gap placement, detects pass
events and retires obstacles that have left the screen.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import Obstacle, SessionState

logger = logging.getLogger(__name__)


class ObstacleManager:
    """
    Owns obstacle creation and the one-shot pass detection.

    Randomness is injectable: pass a seed for a reproducible sequence, or a
    ready-made random.Random to share one stream with other code.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize obstacle manager.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
            rng: Explicit random source. Takes precedence over seed.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = rng if rng is not None else random.Random(seed)
        self._next_id: int = 0

        self._width = config.obstacles.width
        self._reference_x = config.entity.x
        self._gap_low, self._gap_high = config.gap_top_range

    @property
    def next_id(self) -> int:
        """Id the next spawned obstacle will receive."""
        return self._next_id

    def next_gap_top(self) -> float:
        """Draw a gap top uniformly from the configured range."""
        return self._rng.uniform(self._gap_low, self._gap_high)

    def spawn(self, state: SessionState) -> Obstacle:
        """
        Append a new obstacle at the right edge of the world.

        Args:
            state: Session state that owns the obstacle sequence.

        Returns:
            The spawned obstacle.
        """
        obstacle = Obstacle(
            id=self._next_id,
            x=self._config.world.width,
            gap_top=self.next_gap_top()
        )
        self._next_id += 1
        state.obstacles.append(obstacle)
        logger.debug("Spawned obstacle %d with gap_top=%.1f", obstacle.id, obstacle.gap_top)
        return obstacle

    def collect_passes(self, obstacles: List[Obstacle]) -> List[Obstacle]:
        """
        Mark and return obstacles whose trailing edge has crossed the entity.

        Each obstacle is reported at most once over its lifetime: the flag is
        consulted before the edge, so later ticks never count it again.
        """
        passed = []
        for obstacle in obstacles:
            if obstacle.passed:
                continue
            if obstacle.right(self._width) < self._reference_x:
                obstacle.passed = True
                passed.append(obstacle)
        return passed

    def retire_offscreen(self, state: SessionState) -> int:
        """
        Drop obstacles that are fully past the left edge.

        Returns:
            Number of obstacles removed.
        """
        before = len(state.obstacles)
        state.obstacles[:] = [o for o in state.obstacles if o.x > -self._width]
        return before - len(state.obstacles)

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Restart id allocation, optionally reseeding.

        Args:
            seed: New random seed. Keeps current stream if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
        self._next_id = 0
