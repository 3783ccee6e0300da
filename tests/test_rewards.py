"""
Tests for score, coin and XP rewards.
"""

import pytest

from tapfly.flight_core.config_loader import load_config
from tapfly.flight_core.entities import PlayerContext, SessionState
from tapfly.flight_core.game import FlightGame
from tapfly.flight_core.scoring import RewardTracker


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def tracker(config):
    return RewardTracker(config)


class TestRewardTracker:
    """Per-pass reward arithmetic."""

    def test_single_pass_level_three(self, tracker):
        state = SessionState()
        tracker.reset(player_level=3)

        event = tracker.apply_pass(state, obstacle_id=0)

        assert state.score == 1
        assert state.xp == 10
        assert state.coins == pytest.approx(0.15)
        assert state.coins == 0.05 * 3
        assert event.coins == pytest.approx(0.15)

    def test_coins_are_not_truncated(self, tracker):
        state = SessionState()
        tracker.reset(player_level=1)

        for i in range(3):
            tracker.apply_pass(state, obstacle_id=i)

        assert state.coins == pytest.approx(0.15)
        assert state.coins != int(state.coins)
        assert isinstance(state.coins, float)

    def test_accumulates(self, tracker):
        state = SessionState()
        tracker.reset(player_level=2)

        for i in range(5):
            tracker.apply_pass(state, obstacle_id=i)

        assert state.score == 5
        assert state.xp == 50
        assert state.coins == pytest.approx(0.5)
        assert tracker.passes == 5

    def test_reset_clears_passes(self, tracker):
        state = SessionState()
        tracker.reset(player_level=1)
        tracker.apply_pass(state, obstacle_id=0)

        tracker.reset(player_level=4)

        assert tracker.passes == 0
        assert tracker.player_level == 4
        assert tracker.coins_per_pass == pytest.approx(0.2)


class TestLevelSnapshot:
    """Player level is fixed when the session starts."""

    def test_level_change_applies_next_session(self, config):
        game = FlightGame(config=config, player=PlayerContext(player_level=3), seed=1)
        game.start()

        game.update_player(PlayerContext(player_level=5))
        game._rewards.apply_pass(game.state, obstacle_id=0)
        assert game.coins == pytest.approx(0.15)

        game.quit()
        assert game.last_summary.player_level == 3

        game.start()
        game._rewards.apply_pass(game.state, obstacle_id=1)
        assert game.coins == pytest.approx(0.25)
