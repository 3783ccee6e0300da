"""
Reward System
=============

Converts pass events into score, coins and XP.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import SessionState


@dataclass
class RewardEvent:
    """Record of a single pass event."""
    obstacle_id: int
    points: int
    coins: float
    xp: int

    def __repr__(self) -> str:
        return f"RewardEvent(obstacle={self.obstacle_id}, coins={self.coins}, xp={self.xp})"


class RewardTracker:
    """
    Applies per-pass rewards to a SessionState.

    Each pass is worth:
    - 1 point
    - coin_reward_base * player_level coins (kept as a float, never rounded)
    - xp_per_pass XP

    The player level is snapshotted when the session starts; later changes
    to the player's profile only apply to the next session.
    """

    POINTS_PER_PASS = 1

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize reward tracker.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._player_level: int = 1
        self._passes: int = 0

    @property
    def player_level(self) -> int:
        """Level snapshot used for the current session."""
        return self._player_level

    @property
    def passes(self) -> int:
        """Pass events recorded in the current session."""
        return self._passes

    @property
    def coins_per_pass(self) -> float:
        return self._config.rewards.coin_reward_base * self._player_level

    def apply_pass(self, state: SessionState, obstacle_id: int) -> RewardEvent:
        """
        Apply the reward for one passed obstacle.

        Args:
            state: Session state holding the running totals.
            obstacle_id: Id of the obstacle that was passed.

        Returns:
            RewardEvent describing what was awarded.
        """
        event = RewardEvent(
            obstacle_id=obstacle_id,
            points=self.POINTS_PER_PASS,
            coins=self.coins_per_pass,
            xp=self._config.rewards.xp_per_pass
        )

        state.score += event.points
        state.coins += event.coins
        state.xp += event.xp
        self._passes += 1
        return event

    def reset(self, player_level: int = 1) -> None:
        """Start a new session with the given level snapshot."""
        self._player_level = player_level
        self._passes = 0
