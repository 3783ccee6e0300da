"""
Tests for the session lifecycle: energy gating, pause, quit and summaries.
"""

import pytest

from tapfly.flight_core.config_loader import load_config
from tapfly.flight_core.entities import Phase, PlayerContext
from tapfly.flight_core.game import FlightGame


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def summaries():
    return []


def make_game(config, summaries, energy=5, level=1, seed=42):
    player = PlayerContext(player_level=level, available_energy=energy, max_energy=max(energy, 1))
    return FlightGame(config=config, player=player, seed=seed, on_session_end=summaries.append)


def run_until_over(game, config, limit=10000):
    for _ in range(limit):
        if game.phase is Phase.OVER:
            return
        game.advance(config.physics.tick_ms)
    raise AssertionError("session did not end")


class TestEnergy:
    """Starting consumes energy; without energy nothing happens."""

    def test_last_unit_of_energy(self, config, summaries):
        game = make_game(config, summaries, energy=1)

        assert game.start()
        assert game.energy_consumed == 1
        assert game.energy_remaining == 0

        run_until_over(game, config)
        before = game.snapshot()

        assert not game.restart()
        assert game.snapshot() == before
        assert game.phase is Phase.OVER

    def test_no_energy_never_mutates(self, config, summaries):
        game = make_game(config, summaries, energy=0)
        before = game.snapshot()

        for _ in range(5):
            assert not game.start()
            assert not game.trigger()

        assert game.snapshot() == before
        assert game.phase is Phase.NOT_STARTED
        assert game.energy_consumed == 0
        assert summaries == []

    def test_energy_update_applies_immediately(self, config, summaries):
        game = make_game(config, summaries, energy=0)
        assert not game.can_start

        game.update_player(PlayerContext(available_energy=2, max_energy=5))

        assert game.can_start
        assert game.start()


class TestCommands:
    """Lifecycle transitions."""

    def test_trigger_starts_from_not_started(self, config, summaries):
        game = make_game(config, summaries)

        assert game.trigger()

        assert game.phase is Phase.RUNNING
        assert game.state.entity_velocity == 0
        assert game.scheduler.running

    def test_start_while_running_is_ignored(self, config, summaries):
        game = make_game(config, summaries)
        game.start()

        assert not game.start()
        assert not game.restart()
        assert game.energy_consumed == 1

    def test_pause_stops_both_clocks(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.advance(config.physics.tick_ms * 3)
        before = game.snapshot()

        assert game.pause()
        assert game.advance(5000) == 0
        assert not game.trigger()
        assert game.snapshot().entity_y == before.entity_y
        assert game.snapshot().ticks == before.ticks

    def test_resume_continues(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.pause()

        assert game.resume()
        assert game.phase is Phase.RUNNING
        assert game.advance(config.physics.tick_ms) == 1
        assert game.state.ticks == 1

    def test_toggle_pause(self, config, summaries):
        game = make_game(config, summaries)
        game.start()

        game.toggle_pause()
        assert game.phase is Phase.PAUSED
        game.toggle_pause()
        assert game.phase is Phase.RUNNING

    def test_trigger_ignored_when_over(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        run_until_over(game, config)
        energy = game.energy_consumed

        assert not game.trigger()
        assert game.phase is Phase.OVER
        assert game.energy_consumed == energy

    def test_quit_from_pause(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.advance(config.physics.tick_ms * 10)
        game.pause()

        assert game.quit()

        assert game.phase is Phase.OVER
        assert game.termination_reason == "quit"
        assert len(summaries) == 1
        assert summaries[0].termination_reason == "quit"
        assert not game.quit()

    def test_restart_starts_fresh(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        run_until_over(game, config)

        assert game.restart()

        assert game.phase is Phase.RUNNING
        assert game.state.entity_y == config.entity.start_y
        assert game.state.entity_velocity == 0
        assert game.state.obstacles == []
        assert game.score == 0
        assert game.energy_consumed == 2

    def test_reset_returns_to_not_started(self, config, summaries):
        game = make_game(config, summaries, energy=1)
        game.start()
        run_until_over(game, config)

        snapshot = game.reset()

        assert snapshot.phase is Phase.NOT_STARTED
        assert snapshot.energy_consumed == 0
        assert game.start()


    def test_close_freezes_running_session(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.tick_spawn()
        game.advance(config.physics.tick_ms * 5)
        before = game.snapshot()

        game.close()

        assert game.phase is Phase.OVER
        assert not game.scheduler.running
        assert not game.tick_physics().ran
        assert game.tick_spawn() is None
        assert game.advance(1000) == 0
        after = game.snapshot()
        assert after.entity_y == before.entity_y
        assert after.ticks == before.ticks
        assert after.obstacles == before.obstacles
        assert summaries == []

    def test_close_while_paused(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.pause()

        game.close()

        assert game.phase is Phase.OVER
        assert not game.resume()
        assert summaries == []

    def test_close_before_start(self, config, summaries):
        game = make_game(config, summaries)

        game.close()

        assert game.phase is Phase.NOT_STARTED
        assert game.start()


class TestSummary:
    """Exactly one summary per session."""

    def test_free_fall_summary(self, config, summaries):
        game = make_game(config, summaries, level=2)
        game.start()
        run_until_over(game, config)

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.termination_reason == "floor"
        assert summary.score == 0
        assert summary.coins_earned == 0
        assert summary.player_level == 2
        assert summary.entity_variant == "bird"
        assert summary.duration_seconds == pytest.approx(35 * config.physics.tick_ms / 1000)
        assert game.last_summary is summary

    def test_stale_ticks_do_not_emit_again(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        run_until_over(game, config)

        for _ in range(10):
            assert not game.tick_physics().ran
            assert game.tick_spawn() is None
        game.advance(10000)
        game.close()

        assert len(summaries) == 1

    def test_one_summary_per_session(self, config, summaries):
        game = make_game(config, summaries, energy=3)

        for _ in range(3):
            assert game.start()
            run_until_over(game, config)

        assert not game.start()
        assert len(summaries) == 3

    def test_summary_dict(self, config, summaries):
        game = make_game(config, summaries)
        game.start()
        game.quit()

        data = summaries[0].to_dict()
        assert data["termination_reason"] == "quit"
        assert set(data) == {
            "score", "coins_earned", "xp_earned", "obstacles_passed",
            "duration_seconds", "termination_reason", "player_level", "entity_variant",
        }


class TestPlayerContext:
    def test_invalid_level(self):
        with pytest.raises(ValueError):
            PlayerContext(player_level=0)

    def test_negative_energy(self):
        with pytest.raises(ValueError):
            PlayerContext(available_energy=-1)
