"""
Core Game
=========

Main game orchestrator combining the scheduler, physics, obstacles,
rules and rewards behind the session lifecycle.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.entities import (
    Obstacle,
    Phase,
    PlayerContext,
    SessionState,
    SessionSummary,
)
from tapfly.flight_core.obstacle_manager import ObstacleManager
from tapfly.flight_core.physics_world import PhysicsWorld
from tapfly.flight_core.rules import GameRules, TerminationResult
from tapfly.flight_core.scheduler import TickScheduler
from tapfly.flight_core.scoring import RewardEvent, RewardTracker
from tapfly.flight_core.state_snapshot import GameSnapshot, SnapshotBuilder

logger = logging.getLogger(__name__)

SessionEndCallback = Callable[[SessionSummary], None]


@dataclass
class TickResult:
    """Result of a single physics tick."""
    ran: bool
    terminated: bool = False
    termination_reason: str = ""
    delta_score: int = 0
    rewards: List[RewardEvent] = field(default_factory=list)

    @staticmethod
    def idle() -> "TickResult":
        return TickResult(ran=False)


class FlightGame:
    """
    Main game simulation class.

    Orchestrates:
    - Tick scheduler (physics clock and spawn clock)
    - Physics world
    - Obstacle manager (seeded gap placement, pass events)
    - Collision and termination rules
    - Rewards
    - Energy-gated session lifecycle

    Lifecycle: NOT_STARTED -> RUNNING <-> PAUSED, RUNNING/PAUSED -> OVER,
    OVER -> RUNNING via start()/restart(). Starting consumes one unit of
    energy and silently fails when none is left.

    Every tick handler checks the phase first, so a tick that arrives after
    the session ended is a no-op.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        player: Optional[PlayerContext] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        on_session_end: Optional[SessionEndCallback] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            player: Player level, energy and cosmetic variant.
            seed: Random seed for the obstacle sequence.
            rng: Explicit random source for gap placement (overrides seed).
            on_session_end: Called exactly once per session with its summary.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._player = player if player is not None else PlayerContext()
        self._seed = seed
        self._on_session_end = on_session_end

        # Initialize subsystems
        self._obstacles = ObstacleManager(config, seed=seed, rng=rng)
        self._physics = PhysicsWorld(self._obstacles, config)
        self._rules = GameRules(config)
        self._rewards = RewardTracker(config)
        self._snapshot_builder = SnapshotBuilder(config)

        self._scheduler = TickScheduler()
        self._scheduler.add_task("physics", config.physics.tick_ms, self._on_physics_tick)
        self._scheduler.add_task("spawn", config.obstacles.spawn_interval_ms, self._on_spawn_tick)

        # Session state
        self._state = SessionState(entity_y=config.entity.start_y)
        self._termination_reason: str = ""
        self._summary_emitted: bool = False
        self._last_summary: Optional[SessionSummary] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def player(self) -> PlayerContext:
        """Current player context (applies from the next session start)."""
        return self._player

    @property
    def state(self) -> SessionState:
        """Live session state. Treat as read-only; use snapshot() to keep a copy."""
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def coins(self) -> float:
        return self._state.coins

    @property
    def xp(self) -> int:
        return self._state.xp

    @property
    def obstacles_passed(self) -> int:
        return self._rewards.passes

    @property
    def energy_consumed(self) -> int:
        return self._state.energy_consumed

    @property
    def energy_remaining(self) -> int:
        """Energy left for further sessions, as shown to the player."""
        return max(0, self._player.available_energy - self._state.energy_consumed)

    @property
    def can_start(self) -> bool:
        """True if the energy precondition for starting a session holds."""
        return self._state.energy_consumed < self._player.available_energy

    @property
    def is_over(self) -> bool:
        return self._state.phase is Phase.OVER

    @property
    def termination_reason(self) -> str:
        """Reason for session end, or empty string."""
        return self._termination_reason

    @property
    def duration_seconds(self) -> float:
        """Simulated time spent running in the current session."""
        return self._state.ticks * self._config.physics.tick_ms / 1000.0

    @property
    def last_summary(self) -> Optional[SessionSummary]:
        """Summary of the most recently ended session."""
        return self._last_summary

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    @property
    def obstacle_manager(self) -> ObstacleManager:
        return self._obstacles

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def trigger(self) -> bool:
        """
        The single gameplay input.

        Starts a session from NOT_STARTED, jumps while RUNNING, and does
        nothing while PAUSED or OVER.

        Returns:
            True if the trigger had an effect.
        """
        phase = self._state.phase
        if phase is Phase.NOT_STARTED:
            return self.start()
        if phase is Phase.RUNNING:
            self._physics.apply_impulse(self._state)
            return True
        return False

    def start(self) -> bool:
        """
        Start a new session from NOT_STARTED or OVER.

        Returns:
            True if a session started. False (with no state change) if a
            session is in progress or no energy is left.
        """
        if self._state.phase not in (Phase.NOT_STARTED, Phase.OVER):
            logger.debug("start() ignored in phase %s", self._state.phase.value)
            return False
        return self._begin_session("start")

    def restart(self) -> bool:
        """
        Start a new session after the previous one ended.

        Returns:
            True if a session started. False if not OVER or no energy is left.
        """
        if self._state.phase is not Phase.OVER:
            logger.debug("restart() ignored in phase %s", self._state.phase.value)
            return False
        return self._begin_session("restart")

    def pause(self) -> bool:
        """Pause a running session; both clocks stop."""
        if self._state.phase is not Phase.RUNNING:
            return False
        self._state.phase = Phase.PAUSED
        self._scheduler.stop()
        logger.info("Session paused at tick %d", self._state.ticks)
        return True

    def resume(self) -> bool:
        """Resume a paused session; both clocks are re-armed."""
        if self._state.phase is not Phase.PAUSED:
            return False
        self._state.phase = Phase.RUNNING
        self._scheduler.start()
        logger.info("Session resumed at tick %d", self._state.ticks)
        return True

    def toggle_pause(self) -> bool:
        """Pause if running, resume if paused."""
        if self._state.phase is Phase.RUNNING:
            return self.pause()
        return self.resume()

    def quit(self) -> bool:
        """End a running or paused session early. The summary is still emitted."""
        if self._state.phase not in (Phase.RUNNING, Phase.PAUSED):
            return False
        self._end_session(TerminationResult.game_over(self._rules.termination.QUIT))
        return True

    def update_player(self, player: PlayerContext) -> None:
        """
        Replace the player context.

        Energy figures apply immediately to the start precondition; the
        player level only affects rewards from the next session start.
        """
        self._player = player

    def reset(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Return to a freshly mounted game: NOT_STARTED, no energy consumed.

        Args:
            seed: New random seed for the obstacle sequence. Uses the
                previous seed if None.

        Returns:
            Initial game snapshot.
        """
        if seed is not None:
            self._seed = seed

        self._scheduler.reset()
        self._obstacles.reset(self._seed)
        self._rewards.reset(self._player.player_level)

        self._state = SessionState(entity_y=self._config.entity.start_y)
        self._termination_reason = ""
        self._summary_emitted = False
        self._last_summary = None

        return self.snapshot()

    def close(self) -> None:
        """
        Teardown: stop both clocks and end any session in progress.

        The session is moved to OVER without a summary, so direct tick
        calls after close are no-ops as well.
        """
        self._scheduler.stop()
        if self._state.phase in (Phase.RUNNING, Phase.PAUSED):
            self._state.phase = Phase.OVER
            logger.info("Session closed at tick %d without summary", self._state.ticks)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def advance(self, elapsed_ms: float) -> int:
        """
        Feed elapsed time to the scheduler.

        Args:
            elapsed_ms: Milliseconds since the previous call.

        Returns:
            Number of tick callbacks fired.
        """
        return self._scheduler.advance(elapsed_ms)

    def tick_physics(self) -> TickResult:
        """
        Advance physics by one tick, then apply rewards and rules.

        Returns:
            TickResult (ran=False if the session is not running).
        """
        state = self._state
        if state.phase is not Phase.RUNNING:
            return TickResult.idle()

        score_before = state.score

        physics_result = self._physics.step(state)
        state.ticks += 1

        rewards = [
            self._rewards.apply_pass(state, obstacle.id)
            for obstacle in physics_result.passed
        ]

        collided = self._rules.collision.check_collision(state.entity_y, state.obstacles)
        term_result = self._rules.termination.check_termination(
            floor_hit=physics_result.floor_hit,
            collided=collided
        )

        if term_result.terminated:
            self._end_session(term_result)

        return TickResult(
            ran=True,
            terminated=term_result.terminated,
            termination_reason=term_result.reason,
            delta_score=state.score - score_before,
            rewards=rewards
        )

    def tick_spawn(self) -> Optional[Obstacle]:
        """
        Spawn one obstacle if the session is running.

        Returns:
            The new obstacle, or None if the session is not running.
        """
        if self._state.phase is not Phase.RUNNING:
            return None
        return self._obstacles.spawn(self._state)

    def _on_physics_tick(self) -> None:
        self.tick_physics()

    def _on_spawn_tick(self) -> None:
        self.tick_spawn()

    # ------------------------------------------------------------------
    # Session internals
    # ------------------------------------------------------------------

    def _begin_session(self, command: str) -> bool:
        if not self.can_start:
            logger.debug(
                "%s() refused: energy consumed %d of %d",
                command, self._state.energy_consumed, self._player.available_energy
            )
            return False

        state = self._state
        state.reset(self._config.entity.start_y)
        state.energy_consumed += 1
        state.phase = Phase.RUNNING

        # Level is fixed for the whole session
        self._rewards.reset(self._player.player_level)
        self._termination_reason = ""
        self._summary_emitted = False

        self._scheduler.start()
        logger.info(
            "Session started via %s (level=%d, energy %d/%d)",
            command, self._player.player_level,
            state.energy_consumed, self._player.available_energy
        )
        return True

    def _end_session(self, result: TerminationResult) -> None:
        state = self._state
        state.phase = Phase.OVER
        self._scheduler.stop()
        self._termination_reason = result.reason

        if self._summary_emitted:
            return
        self._summary_emitted = True

        summary = SessionSummary(
            score=state.score,
            coins_earned=state.coins,
            xp_earned=state.xp,
            obstacles_passed=self._rewards.passes,
            duration_seconds=self.duration_seconds,
            termination_reason=result.reason,
            player_level=self._rewards.player_level,
            entity_variant=self._player.entity_variant
        )
        self._last_summary = summary
        logger.info(
            "Session over (%s): score=%d coins=%.2f xp=%d",
            result.reason, summary.score, summary.coins_earned, summary.xp_earned
        )

        if self._on_session_end is not None:
            self._on_session_end(summary)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Immutable copy of the current state."""
        return self._snapshot_builder.build(
            self._state,
            obstacles_passed=self._rewards.passes,
            energy_remaining=self.energy_remaining
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "phase": self._state.phase.value,
            "score": self._state.score,
            "coins": self._state.coins,
            "xp": self._state.xp,
            "obstacles_passed": self._rewards.passes,
            "ticks": self._state.ticks,
            "energy_consumed": self._state.energy_consumed,
            "energy_remaining": self.energy_remaining,
            "terminated_reason": self._termination_reason,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with entity, obstacles, HUD values and world info.
        """
        config = self._config
        return {
            "world_width": config.world.width,
            "world_height": config.world.height,
            "entity_x": config.entity.x,
            "entity_y": self._state.entity_y,
            "entity_size": config.entity.size,
            "entity_velocity": self._state.entity_velocity,
            "entity_variant": self._player.entity_variant,
            "obstacle_width": config.obstacles.width,
            "gap_height": config.obstacles.gap_height,
            "obstacles": [
                {"id": o.id, "x": o.x, "gap_top": o.gap_top}
                for o in self._state.obstacles
            ],
            "phase": self._state.phase.value,
            "score": self._state.score,
            "coins": self._state.coins,
            "xp": self._state.xp,
            "player_level": self._player.player_level,
            "energy_remaining": self.energy_remaining,
            "max_energy": self._player.max_energy,
            "can_start": self.can_start,
        }
