"""
Tests for Gymnasium environment API.
"""

import dataclasses

import numpy as np
import pytest

from tapfly.flight_core.config_loader import load_config
from tapfly.flight_core.env_gym import IDLE, TRIGGER, FlightEnv


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env():
    env = FlightEnv()
    yield env
    env.close()


class TestFlightEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert isinstance(info, dict)
        assert info["phase"] == "running"
        assert info["delta_score"] == 0

    def test_observation_structure(self, env, config):
        """Observation should have expected keys and shapes."""
        obs, _ = env.reset(seed=42)

        for key in ("phase", "entity_y", "entity_velocity", "score", "coins", "xp",
                    "next_gap_top", "next_obstacle_dx"):
            assert key in obs

        max_obs = config.observation.max_obstacles
        assert obs["obs_x"].shape == (max_obs,)
        assert obs["obs_gap_top"].shape == (max_obs,)
        assert obs["obs_mask"].shape == (max_obs,)
        assert float(obs["entity_y"]) == config.entity.start_y

    def test_observation_in_space(self, env):
        obs, _ = env.reset(seed=42)
        assert env.observation_space.contains(obs)

        for _ in range(120):
            obs, _, terminated, truncated, _ = env.step(TRIGGER if float(obs["entity_velocity"]) > 4 else IDLE)
            assert env.observation_space.contains(obs)
            if terminated or truncated:
                break

    def test_step_returns_five_tuple(self, env):
        env.reset(seed=42)
        result = env.step(IDLE)

        assert len(result) == 5
        obs, reward, terminated, truncated, info = result
        assert isinstance(reward, float)
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert info["ticks"] == 1

    def test_numpy_action_accepted(self, env):
        env.reset(seed=42)
        obs, _, _, _, _ = env.step(np.array(TRIGGER))
        assert float(obs["entity_velocity"]) == -7.5

    def test_idle_run_hits_floor(self, env):
        env.reset(seed=42)

        steps = 0
        terminated = False
        while not terminated:
            _, reward, terminated, truncated, info = env.step(IDLE)
            steps += 1
            assert not truncated
            assert reward == 0.0

        assert steps == 35
        assert info["terminated_reason"] == "floor"
        assert info["phase"] == "over"

    def test_reset_after_game_over(self, env):
        env.reset(seed=1)
        terminated = False
        while not terminated:
            _, _, terminated, _, _ = env.step(IDLE)

        obs, info = env.reset(seed=1)
        assert info["phase"] == "running"
        assert info["energy_consumed"] == 1
        assert int(obs["ticks"]) == 0

    def test_same_seed_same_trajectory(self, config):
        def run(seed):
            env = FlightEnv(config=config)
            obs, _ = env.reset(seed=seed)
            gaps = []
            for i in range(400):
                action = TRIGGER if float(obs["entity_y"]) > 300 else IDLE
                obs, _, terminated, truncated, _ = env.step(action)
                gaps.append(obs["obs_gap_top"].copy())
                if terminated or truncated:
                    break
            env.close()
            return gaps

        first = run(7)
        second = run(7)

        assert len(first) == len(second)
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_truncation_at_tick_cap(self, config):
        capped = dataclasses.replace(
            config,
            physics=dataclasses.replace(config.physics, gravity=0.0),
            caps=dataclasses.replace(config.caps, max_ticks=5),
        )
        env = FlightEnv(config=capped)
        env.reset(seed=3)

        results = [env.step(IDLE) for _ in range(5)]
        env.close()

        assert [r[3] for r in results] == [False, False, False, False, True]
        assert not any(r[2] for r in results)

    def test_reward_is_score_delta(self, config):
        safe = dataclasses.replace(
            config,
            physics=dataclasses.replace(config.physics, gravity=0.0),
            obstacles=dataclasses.replace(config.obstacles, margin_top=140, margin_bottom=200),
        )
        env = FlightEnv(config=safe, player_level=2)
        env.reset(seed=9)

        total = 0.0
        for _ in range(600):
            _, reward, terminated, _, info = env.step(IDLE)
            total += reward
            assert not terminated
        env.close()

        assert total == info["score"]
        assert total > 0
        assert info["coins"] == pytest.approx(0.1 * info["score"])
