"""
Tests for obstacle spawning and pass detection.
"""

import dataclasses
import random

import pytest

from tapfly.flight_core.config_loader import load_config
from tapfly.flight_core.entities import Obstacle, Phase, SessionState
from tapfly.flight_core.game import FlightGame
from tapfly.flight_core.obstacle_manager import ObstacleManager


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def safe_config(config):
    """Zero gravity and gaps that always contain the resting entity."""
    # Entity rests at y in [250, 290]; gap_top in [140, 250] always contains it
    return dataclasses.replace(
        config,
        physics=dataclasses.replace(config.physics, gravity=0.0),
        obstacles=dataclasses.replace(config.obstacles, margin_top=140, margin_bottom=200),
    )


class TestSpawning:
    """Seeded gap placement."""

    def test_deterministic_with_seed(self, config):
        m1 = ObstacleManager(config, seed=42)
        m2 = ObstacleManager(config, seed=42)

        assert [m1.next_gap_top() for _ in range(50)] == [m2.next_gap_top() for _ in range(50)]

    def test_different_seeds_differ(self, config):
        m1 = ObstacleManager(config, seed=42)
        m2 = ObstacleManager(config, seed=123)

        assert [m1.next_gap_top() for _ in range(50)] != [m2.next_gap_top() for _ in range(50)]

    def test_injected_rng(self, config):
        m1 = ObstacleManager(config, rng=random.Random(7))
        m2 = ObstacleManager(config, rng=random.Random(7))

        assert m1.next_gap_top() == m2.next_gap_top()

    def test_gap_within_range(self, config):
        manager = ObstacleManager(config, seed=5)
        low, high = config.gap_top_range

        for _ in range(1000):
            gap_top = manager.next_gap_top()
            assert low <= gap_top <= high
            assert gap_top <= config.world.height - config.obstacles.gap_height - config.obstacles.margin_bottom

    def test_spawn_appends_at_right_edge(self, config):
        manager = ObstacleManager(config, seed=1)
        state = SessionState()

        first = manager.spawn(state)
        second = manager.spawn(state)

        assert first.x == config.world.width
        assert state.obstacles == [first, second]
        assert second.id > first.id
        assert not first.passed

    def test_reset_restores_sequence(self, config):
        manager = ObstacleManager(config, seed=42)
        initial = [manager.next_gap_top() for _ in range(10)]

        manager.reset(seed=42)

        assert [manager.next_gap_top() for _ in range(10)] == initial
        assert manager.next_id == 0

    def test_ids_keep_increasing_across_sessions(self, config):
        game = FlightGame(config=config, seed=3)
        game.start()
        ids = [game.tick_spawn().id, game.tick_spawn().id]

        game.quit()
        game.start()
        ids.append(game.tick_spawn().id)

        assert ids == [0, 1, 2]


class TestPassDetection:
    """Each obstacle is counted exactly once."""

    def test_collect_passes_is_one_shot(self, config):
        manager = ObstacleManager(config, seed=1)
        width = config.obstacles.width
        reference = config.entity.x

        obstacle = Obstacle(id=0, x=reference - width - 1, gap_top=100)
        assert manager.collect_passes([obstacle]) == [obstacle]
        assert obstacle.passed

        obstacle.x -= 3
        assert manager.collect_passes([obstacle]) == []

    def test_trailing_edge_on_reference_is_not_a_pass(self, config):
        manager = ObstacleManager(config, seed=1)
        obstacle = Obstacle(id=0, x=config.entity.x - config.obstacles.width, gap_top=100)

        assert manager.collect_passes([obstacle]) == []

    def test_score_matches_crossed_obstacles(self, safe_config):
        """Over a long seeded run, every crossing scores once and only once."""
        game = FlightGame(config=safe_config, seed=2024)
        game.start()

        width = safe_config.obstacles.width
        reference = safe_config.entity.x
        spawn_every = 90  # 1500 ms at 60 Hz

        crossed = set()
        rewarded = []

        for tick in range(1, 1801):
            if tick % spawn_every == 0:
                game.tick_spawn()
            result = game.tick_physics()
            rewarded.extend(event.obstacle_id for event in result.rewards)
            for obstacle in game.state.obstacles:
                if obstacle.x + width < reference:
                    crossed.add(obstacle.id)

        assert game.phase is Phase.RUNNING
        assert len(rewarded) == len(set(rewarded))
        assert set(rewarded) == crossed
        assert game.score == len(crossed)
        assert game.score > 10

    def test_scheduler_driven_run_counts_passes(self, safe_config):
        game = FlightGame(config=safe_config, seed=11)
        game.start()

        for _ in range(60 * 20):
            game.advance(safe_config.physics.tick_ms)

        assert game.phase is Phase.RUNNING
        assert game.obstacles_passed == game.score
        assert game.score > 0
