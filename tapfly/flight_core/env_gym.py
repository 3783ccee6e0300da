"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the tap-to-fly game.
Each step advances one physics period; spawns fire on their own cadence.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

import gymnasium as gym
from gymnasium import spaces

from tapfly.flight_core.config_loader import GameConfig, load_config
from tapfly.flight_core.entities import PlayerContext
from tapfly.flight_core.game import FlightGame

logger = logging.getLogger(__name__)

IDLE = 0
TRIGGER = 1


class FlightEnv(gym.Env):
    """
    Tap-to-fly game as a Gymnasium environment.

    Action Space:
        Discrete(2): 0 = do nothing, 1 = trigger (jump).

    Observation Space:
        Dict containing entity state, world info and padded obstacle arrays.

    Reward:
        Score gained during the step (one per obstacle passed).

    Info:
        Contains score, coins, xp, delta_score, ticks, terminated_reason, etc.
    """

    metadata = {
        "render_modes": [],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        player_level: int = 1,
        debug: bool = False,
    ):
        """
        Initialize environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            config: Already-loaded configuration (takes precedence over path).
            player_level: Level used for coin rewards.
            debug: If True, logs every step at INFO level.
        """
        super().__init__()

        self._config = config if config is not None else load_config(config_path)
        self._debug = debug
        self._max_obstacles = self._config.observation.max_obstacles
        self._max_ticks = self._config.caps.max_ticks

        # One energy unit per episode; reset() remounts the game
        self._player = PlayerContext(
            player_level=player_level,
            available_energy=1,
            max_energy=1
        )
        self._game = FlightGame(config=self._config, player=self._player)

        self.action_space = spaces.Discrete(2)
        self.observation_space = self._build_observation_space()

        if self._debug:
            logger.info(
                "FlightEnv initialized: world %sx%s, tick %.3f ms",
                self._config.world.width, self._config.world.height,
                self._config.physics.tick_ms
            )

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        max_obs = self._max_obstacles
        world = self._config.world
        big = np.iinfo(np.int64).max

        return spaces.Dict({
            # Core state
            "phase": spaces.Box(low=0, high=3, shape=(), dtype=np.int32),
            "entity_y": spaces.Box(low=0, high=world.height, shape=(), dtype=np.float32),
            "entity_velocity": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),
            "score": spaces.Box(low=0, high=big, shape=(), dtype=np.int64),
            "coins": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float64),
            "xp": spaces.Box(low=0, high=big, shape=(), dtype=np.int64),
            "ticks": spaces.Box(low=0, high=big, shape=(), dtype=np.int64),

            # World info
            "entity_x": spaces.Box(low=0, high=world.width, shape=(), dtype=np.float32),
            "entity_size": spaces.Box(low=0, high=world.height, shape=(), dtype=np.float32),
            "world_width": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "world_height": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "obstacle_width": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "gap_height": spaces.Box(low=0, high=world.height, shape=(), dtype=np.float32),

            # Derived
            "next_gap_top": spaces.Box(low=0, high=world.height, shape=(), dtype=np.float32),
            "next_obstacle_dx": spaces.Box(low=-np.inf, high=np.inf, shape=(), dtype=np.float32),

            # Obstacle arrays
            "obs_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_obs,), dtype=np.float32),
            "obs_gap_top": spaces.Box(low=0, high=world.height, shape=(max_obs,), dtype=np.float32),
            "obs_passed": spaces.MultiBinary(max_obs),
            "obs_mask": spaces.MultiBinary(max_obs),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment and start a session.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        self._game.reset(seed=seed)
        self._game.start()

        obs = self._observe()
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: 1 to trigger a jump before the tick, 0 to do nothing.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        if isinstance(action, np.ndarray):
            action = int(action.item() if action.ndim == 0 else action[0])

        score_before = self._game.score

        if int(action) == TRIGGER:
            self._game.trigger()

        self._game.advance(self._config.physics.tick_ms)

        delta_score = self._game.score - score_before
        terminated = self._game.is_over
        truncated = not terminated and self._game.state.ticks >= self._max_ticks

        obs = self._observe()
        info = self._game.get_info()
        info["delta_score"] = delta_score

        if self._debug:
            logger.info(
                "Step: action=%d y=%.1f v=%.2f score=%d",
                int(action), self._game.state.entity_y,
                self._game.state.entity_velocity, self._game.score
            )
            if terminated:
                logger.info("TERMINATED: %s", info["terminated_reason"])

        return obs, float(delta_score), terminated, truncated, info

    def _observe(self) -> Dict[str, np.ndarray]:
        return self._game.snapshot().to_obs_dict(self._max_obstacles)

    def close(self) -> None:
        """Clean up resources."""
        self._game.close()

    @property
    def game(self) -> FlightGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
