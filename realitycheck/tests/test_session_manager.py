"""
Tests for the session registry.
"""

import time

import pytest

from ..engine.state_machine import TurnPhase
from ..engine.timers import ManualTimerScheduler
from ..exceptions import GameAlreadyStarted, GameFull, GameNotFound, NotEnoughPlayers
from ..session.manager import SessionManager, SessionStatus
from ..session.player import BACKGROUNDS, DRAWBACKS, TRAITS


@pytest.fixture
def manager(timers) -> SessionManager:
    return SessionManager(timers=timers)


class TestSessionLifecycle:
    """Tests for create, join, start, end."""

    def test_create_session(self, manager):
        session = manager.create_session("Friday")

        assert session.status == SessionStatus.WAITING
        assert session.players == []
        assert manager.get_session(session.game_id) is session
        assert session.orchestrator.lock is session.lock
        assert session.orchestrator.machine.lock is session.lock

    def test_join_deals_character(self, manager):
        session = manager.create_session("Friday")

        player = manager.join(session.game_id, "alice")

        background = player.character["background"]
        assert background in BACKGROUNDS
        assert player.stats.money == background["money"]
        assert player.stats.mental == 5
        assert len(set(player.character["traits"])) == 2
        assert set(player.character["traits"]) <= set(TRAITS)
        assert player.character["drawback"] in DRAWBACKS
        assert session.players == [player]

    def test_join_full_game(self, manager):
        session = manager.create_session("Duel", max_players=2)
        manager.join(session.game_id, "alice")
        manager.join(session.game_id, "bob")

        with pytest.raises(GameFull):
            manager.join(session.game_id, "carol")

    def test_join_after_start(self, manager):
        session = manager.create_session("Friday")
        manager.join(session.game_id, "alice")
        manager.start_game(session.game_id)

        with pytest.raises(GameAlreadyStarted):
            manager.join(session.game_id, "bob")
        with pytest.raises(GameAlreadyStarted):
            manager.start_game(session.game_id)

    def test_start_without_players(self, manager):
        session = manager.create_session("Empty")

        with pytest.raises(NotEnoughPlayers):
            manager.start_game(session.game_id)
        assert session.status == SessionStatus.WAITING

    def test_start_game(self, manager):
        session = manager.create_session("Friday")
        alice = manager.join(session.game_id, "alice")

        manager.start_game(session.game_id)

        assert session.status == SessionStatus.ACTIVE
        assert session.orchestrator.phase == TurnPhase.ROLL
        assert session.orchestrator.current_player is alice

    def test_unknown_game(self, manager):
        assert manager.get_session("nope") is None
        with pytest.raises(GameNotFound):
            manager.join("nope", "alice")

    def test_end_session_cancels_timers(self, manager, timers):
        session = manager.create_session("Friday")
        manager.join(session.game_id, "alice")
        manager.start_game(session.game_id)

        assert manager.end_session(session.game_id)

        assert session.status == SessionStatus.FINISHED
        assert manager.get_session(session.game_id) is None
        assert timers.pending_count == 0
        assert not manager.end_session(session.game_id)

    def test_end_session_early_is_abandoned(self, manager):
        session = manager.create_session("Friday")
        manager.end_session(session.game_id, reason="host left")
        assert session.status == SessionStatus.ABANDONED


class TestRegistry:
    """Tests for listing and cleanup."""

    def test_sessions_are_independent(self, manager):
        first = manager.create_session("One", seed=1)
        second = manager.create_session("Two", seed=1)

        assert first.game_id != second.game_id
        assert first.lock is not second.lock
        assert first.orchestrator.scheduler is not second.orchestrator.scheduler

    def test_seed_makes_characters_reproducible(self):
        def characters(seed):
            manager = SessionManager(timers=ManualTimerScheduler())
            session = manager.create_session("Seeded", seed=seed)
            return [manager.join(session.game_id, name).character for name in ("a", "b", "c")]

        assert characters(42) == characters(42)

    def test_list_active_sessions(self, manager):
        ids = {manager.create_session(f"game {i}").game_id for i in range(3)}
        assert set(manager.list_active_sessions()) == ids

    def test_cleanup_stale_sessions(self, manager):
        stale = manager.create_session("Old")
        stale.created_at = time.time() - 7200
        running = manager.create_session("Old but running")
        running.created_at = time.time() - 7200
        manager.join(running.game_id, "alice")
        manager.start_game(running.game_id)
        fresh = manager.create_session("New")

        removed = manager.cleanup_stale_sessions(max_age_seconds=3600)

        assert removed == [stale.game_id]
        assert manager.get_session(running.game_id) is running
        assert manager.get_session(fresh.game_id) is fresh
