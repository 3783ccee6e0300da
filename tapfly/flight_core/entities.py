"""
Entity State
============

Mutable session state owned by the simulation, plus the value types
exchanged with the surrounding app (player context in, summary out).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Phase(Enum):
    """Session lifecycle phase. Ticking only happens while RUNNING."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    OVER = "over"


@dataclass
class Obstacle:
    """
    A pair of obstacles (top and bottom) separated by a vertical gap.

    x is the left edge. The gap spans [gap_top, gap_top + gap_height].
    """
    id: int
    x: float
    gap_top: float
    passed: bool = False  # Set once, the first tick the trailing edge crosses the entity

    def right(self, width: float) -> float:
        """Trailing (right) edge for the given obstacle width."""
        return self.x + width


@dataclass
class SessionState:
    """
    All state mutated by the tick functions.

    Obstacles are kept in spawn order, which is also decreasing x.
    """
    phase: Phase = Phase.NOT_STARTED
    entity_y: float = 0.0
    entity_velocity: float = 0.0
    obstacles: List[Obstacle] = field(default_factory=list)
    score: int = 0
    coins: float = 0.0
    xp: int = 0
    energy_consumed: int = 0
    ticks: int = 0

    def reset(self, start_y: float) -> None:
        """Reset the session body. Phase and energy are left to the caller."""
        self.entity_y = start_y
        self.entity_velocity = 0.0
        self.obstacles.clear()
        self.score = 0
        self.coins = 0.0
        self.xp = 0
        self.ticks = 0


@dataclass(frozen=True)
class PlayerContext:
    """Starting parameters supplied by the player-progression app."""
    player_level: int = 1
    available_energy: int = 5
    max_energy: int = 5
    entity_variant: str = "bird"  # Cosmetic only

    def __post_init__(self) -> None:
        if self.player_level < 1:
            raise ValueError(f"player_level must be >= 1, got {self.player_level}")
        if self.available_energy < 0:
            raise ValueError(f"available_energy must be >= 0, got {self.available_energy}")
        if self.max_energy < 0:
            raise ValueError(f"max_energy must be >= 0, got {self.max_energy}")


@dataclass(frozen=True)
class SessionSummary:
    """Terminal result reported once per session."""
    score: int
    coins_earned: float
    xp_earned: int
    obstacles_passed: int
    duration_seconds: float
    termination_reason: str
    player_level: int
    entity_variant: str

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "coins_earned": self.coins_earned,
            "xp_earned": self.xp_earned,
            "obstacles_passed": self.obstacles_passed,
            "duration_seconds": self.duration_seconds,
            "termination_reason": self.termination_reason,
            "player_level": self.player_level,
            "entity_variant": self.entity_variant,
        }
