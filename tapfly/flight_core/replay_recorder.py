"""
Replay Recorder
===============

Records FlightEnv episodes so their outcome can be audited later.

A session is fully determined by the configuration, the obstacle seed, the
player level and the per-tick trigger stream, so a replay stores exactly those and the
reported result. verify_replay() re-simulates the stream and checks that
score, coins and XP come out the same.

Usage:
    from tapfly.flight_core import FlightEnv, ReplayRecorder

    env = FlightEnv()
    recorder = ReplayRecorder(env, agent_name="my_agent")

    obs, info = recorder.reset(seed=42)

    done = False
    while not done:
        action = your_agent(obs)
        obs, reward, terminated, truncated, info = recorder.step(action)
        done = terminated or truncated

    recorder.save("my_replay.json")
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from tapfly.flight_core.config_loader import GameConfig, get_config
from tapfly.flight_core.env_gym import FlightEnv

logger = logging.getLogger(__name__)

REPLAY_VERSION = 2


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[int] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """
    Generate a timestamped replay filename.

    Format: {agent_name}_{YYYYMMDD_HHMMSS}_s{seed}.json

    Args:
        agent_name: Name of the agent.
        seed: Random seed (optional, included if provided).
        directory: Directory for the file. Defaults to current directory.

    Returns:
        Path object for the replay file.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if seed is not None:
        filename = f"{agent_name}_{timestamp}_s{seed}.json"
    else:
        filename = f"{agent_name}_{timestamp}.json"

    if directory:
        return Path(directory) / filename
    return Path(filename)


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """Hash every tunable that affects the simulated outcome."""
    if config is None:
        config = get_config()

    hash_data = {
        "world": [config.world.width, config.world.height],
        "entity": [config.entity.size, config.entity.x, config.entity.start_y],
        "physics": [
            config.physics.gravity,
            config.physics.jump_impulse,
            config.physics.tick_rate_hz,
        ],
        "obstacles": [
            config.obstacles.speed,
            config.obstacles.width,
            config.obstacles.gap_height,
            config.obstacles.spawn_interval_ms,
            config.obstacles.margin_top,
            config.obstacles.margin_bottom,
        ],
        "rewards": [config.rewards.coin_reward_base, config.rewards.xp_per_pass],
        "caps": [config.caps.max_ticks],
    }
    return hashlib.md5(json.dumps(hash_data, sort_keys=True).encode()).hexdigest()[:8]


class ReplayRecorder:
    """
    Wrapper that records environment interactions for replay.

    Attributes:
        env: The wrapped FlightEnv.
        recording: Whether currently recording.
    """

    def __init__(
        self,
        env: FlightEnv,
        agent_name: str = "unknown",
        auto_save_path: Optional[str] = None
    ):
        """
        Initialize the replay recorder.

        Args:
            env: The environment to wrap.
            agent_name: Name of the agent (stored in replay metadata).
            auto_save_path: If provided, automatically save replay on episode end.
        """
        self.env = env
        self.agent_name = agent_name
        self.auto_save_path = auto_save_path

        self._recording = False
        self._seed: Optional[int] = None
        self._player_level: int = env.game.player.player_level
        self._actions: List[int] = []
        self._final_info: Dict[str, Any] = {}
        self._config_hash = compute_config_hash(env.config)

    @property
    def recording(self) -> bool:
        """Whether currently recording."""
        return self._recording

    @property
    def actions(self) -> List[int]:
        return list(self._actions)

    @property
    def observation_space(self):
        """Forward observation space from wrapped env."""
        return self.env.observation_space

    @property
    def action_space(self):
        """Forward action space from wrapped env."""
        return self.env.action_space

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Any, Dict]:
        """
        Reset the environment and start recording.

        Args:
            seed: Random seed for the episode. Required for a verifiable replay.
            options: Additional reset options.

        Returns:
            Initial observation and info dict.
        """
        if seed is None:
            logger.warning("Recording without a seed; the replay cannot be verified")

        self._actions = []
        self._final_info = {}
        self._seed = seed
        self._recording = True

        result = self.env.reset(seed=seed, options=options)
        # Level in force for the session that reset just started
        self._player_level = self.env.game.player.player_level
        return result

    def step(self, action: Union[int, np.ndarray]) -> Tuple[Any, float, bool, bool, Dict]:
        """Step the environment, recording the action."""
        if isinstance(action, np.ndarray):
            action = int(action.item() if action.ndim == 0 else action[0])

        obs, reward, terminated, truncated, info = self.env.step(action)

        if self._recording:
            self._actions.append(int(action))
            if terminated or truncated:
                self._final_info = dict(info)
                self._recording = False
                if self.auto_save_path:
                    self.save(self.auto_save_path)

        return obs, reward, terminated, truncated, info

    def get_replay_data(self) -> Dict[str, Any]:
        """Build the replay dictionary."""
        info = self._final_info
        return {
            "version": REPLAY_VERSION,
            "agent_name": self.agent_name,
            "timestamp": datetime.now().isoformat(),
            "seed": self._seed,
            "config_hash": self._config_hash,
            "player_level": self._player_level,
            "actions": list(self._actions),
            "total_steps": len(self._actions),
            "final_score": info.get("score", 0),
            "final_coins": info.get("coins", 0.0),
            "final_xp": info.get("xp", 0),
            "termination_reason": info.get("terminated_reason", ""),
        }

    def save(self, path: Union[str, Path]) -> Path:
        """
        Save the recorded episode to JSON.

        Args:
            path: Output file path.

        Returns:
            Path the replay was written to.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.get_replay_data(), f, indent=2)

        logger.info("Replay saved to %s (%d steps)", path, len(self._actions))
        return path

    def close(self) -> None:
        self.env.close()


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a replay file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Replay file not found: {path}")

    with open(path, "r") as f:
        return json.load(f)


def verify_replay(
    replay: Dict[str, Any],
    config: Optional[GameConfig] = None
) -> bool:
    """
    Re-simulate a replay and check the recorded outcome.

    Args:
        replay: Replay dictionary (from load_replay or get_replay_data).
        config: Configuration to simulate with. Uses default if None.

    Returns:
        True if score, coins and XP match the recorded values.

    Raises:
        ValueError: If the replay has no seed or was recorded with different
            tunables.
    """
    if config is None:
        config = get_config()

    if replay.get("seed") is None:
        raise ValueError("Replay has no seed; only sessions reset with an explicit seed can be verified")

    expected_hash = compute_config_hash(config)
    if replay.get("config_hash") != expected_hash:
        raise ValueError(
            f"Replay config hash {replay.get('config_hash')} does not match "
            f"current config {expected_hash}"
        )

    env = FlightEnv(config=config, player_level=replay.get("player_level", 1))
    try:
        _, info = env.reset(seed=replay["seed"])
        for action in replay["actions"]:
            _, _, terminated, truncated, info = env.step(action)
            if terminated or truncated:
                break
    finally:
        env.close()

    matches = (
        info["score"] == replay["final_score"]
        and info["xp"] == replay["final_xp"]
        and abs(info["coins"] - replay["final_coins"]) < 1e-9
    )
    if not matches:
        logger.warning(
            "Replay mismatch: recorded score=%s coins=%s xp=%s, simulated score=%s coins=%s xp=%s",
            replay["final_score"], replay["final_coins"], replay["final_xp"],
            info["score"], info["coins"], info["xp"]
        )
    return matches
