"""
State Snapshot
==============

Immutable copies of the session state for renderers and agents, and
packing into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import Phase, SessionState

PHASE_INDEX = {
    Phase.NOT_STARTED: 0,
    Phase.RUNNING: 1,
    Phase.PAUSED: 2,
    Phase.OVER: 3,
}


@dataclass(frozen=True)
class ObstacleView:
    """Read-only copy of an obstacle."""
    id: int
    x: float
    gap_top: float
    passed: bool


@dataclass(frozen=True)
class GameSnapshot:
    """
    Complete session state at a tick boundary.

    Taking a snapshot never aliases the live state, so renderers may keep
    it around while the simulation continues.
    """
    # Core state
    phase: Phase
    entity_x: float
    entity_y: float
    entity_velocity: float
    entity_size: float
    obstacles: Tuple[ObstacleView, ...]

    # Running totals
    score: int
    coins: float
    xp: int
    obstacles_passed: int
    ticks: int

    # Energy
    energy_consumed: int
    energy_remaining: int

    # World info (for normalization)
    world_width: float
    world_height: float
    obstacle_width: float
    gap_height: float

    def next_obstacle(self) -> Optional[ObstacleView]:
        """First obstacle whose trailing edge is still ahead of the entity."""
        for obstacle in self.obstacles:
            if obstacle.x + self.obstacle_width >= self.entity_x:
                return obstacle
        return None

    def to_obs_dict(self, max_obstacles: int) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        obs_x = np.zeros(max_obstacles, dtype=np.float32)
        obs_gap_top = np.zeros(max_obstacles, dtype=np.float32)
        obs_passed = np.zeros(max_obstacles, dtype=np.int8)
        obs_mask = np.zeros(max_obstacles, dtype=np.int8)

        for i, obstacle in enumerate(self.obstacles[:max_obstacles]):
            obs_x[i] = obstacle.x
            obs_gap_top[i] = obstacle.gap_top
            obs_passed[i] = int(obstacle.passed)
            obs_mask[i] = 1

        upcoming = self.next_obstacle()
        if upcoming is not None:
            next_gap_top = upcoming.gap_top
            next_dx = upcoming.x - self.entity_x
        else:
            # No obstacle yet: aim for the middle of the world
            next_gap_top = (self.world_height - self.gap_height) / 2
            next_dx = self.world_width

        return {
            # Core state
            "phase": np.array(PHASE_INDEX[self.phase], dtype=np.int32),
            "entity_y": np.array(self.entity_y, dtype=np.float32),
            "entity_velocity": np.array(self.entity_velocity, dtype=np.float32),
            "score": np.array(self.score, dtype=np.int64),
            "coins": np.array(self.coins, dtype=np.float64),
            "xp": np.array(self.xp, dtype=np.int64),
            "ticks": np.array(self.ticks, dtype=np.int64),

            # World info
            "entity_x": np.array(self.entity_x, dtype=np.float32),
            "entity_size": np.array(self.entity_size, dtype=np.float32),
            "world_width": np.array(self.world_width, dtype=np.float32),
            "world_height": np.array(self.world_height, dtype=np.float32),
            "obstacle_width": np.array(self.obstacle_width, dtype=np.float32),
            "gap_height": np.array(self.gap_height, dtype=np.float32),

            # Derived
            "next_gap_top": np.array(next_gap_top, dtype=np.float32),
            "next_obstacle_dx": np.array(next_dx, dtype=np.float32),

            # Obstacle arrays
            "obs_x": obs_x,
            "obs_gap_top": obs_gap_top,
            "obs_passed": obs_passed,
            "obs_mask": obs_mask,
        }


class SnapshotBuilder:
    """Builds snapshots from live session state."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config

    def build(
        self,
        state: SessionState,
        obstacles_passed: int,
        energy_remaining: int
    ) -> GameSnapshot:
        config = self._config
        return GameSnapshot(
            phase=state.phase,
            entity_x=config.entity.x,
            entity_y=state.entity_y,
            entity_velocity=state.entity_velocity,
            entity_size=config.entity.size,
            obstacles=tuple(
                ObstacleView(id=o.id, x=o.x, gap_top=o.gap_top, passed=o.passed)
                for o in state.obstacles
            ),
            score=state.score,
            coins=state.coins,
            xp=state.xp,
            obstacles_passed=obstacles_passed,
            ticks=state.ticks,
            energy_consumed=state.energy_consumed,
            energy_remaining=energy_remaining,
            world_width=config.world.width,
            world_height=config.world.height,
            obstacle_width=config.obstacles.width,
            gap_height=config.obstacles.gap_height,
        )
