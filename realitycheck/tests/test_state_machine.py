"""
Tests for the turn state machine.

Tests:
- Transition table and guards
- Rejected transitions leave the machine untouched
- Roll and decision timeouts
- Stale timer handles
- Context handling
"""

import random

import pytest

from ..engine.state_machine import TurnContext, TurnPhase, TurnStateMachine
from ..engine.timers import ManualTimerScheduler

# Every row of the default table, keyed by source
TABLE = {
    TurnPhase.IDLE: [TurnPhase.ROLL],
    TurnPhase.ROLL: [TurnPhase.TILE],
    TurnPhase.TILE: [TurnPhase.CARD],
    TurnPhase.CARD: [TurnPhase.DECISION, TurnPhase.END_TURN],
    TurnPhase.DECISION: [TurnPhase.END_TURN],
    TurnPhase.END_TURN: [TurnPhase.IDLE],
}


def walk_to(machine: TurnStateMachine, *phases: TurnPhase) -> None:
    for phase in phases:
        assert machine.transition(phase), f"could not reach {phase}"


class TestTransitions:
    """Tests for the transition table."""

    def test_starts_idle(self, machine):
        assert machine.get_current_state() == TurnPhase.IDLE
        assert machine.get_context() == TurnContext()

    def test_full_turn_without_decision(self, machine):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD,
                TurnPhase.END_TURN, TurnPhase.IDLE)
        assert machine.phase == TurnPhase.IDLE

    def test_full_turn_with_decision(self, machine):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD)
        machine.update_context(pending_decision={"card": "gossip"})
        walk_to(machine, TurnPhase.DECISION, TurnPhase.END_TURN, TurnPhase.IDLE)

    def test_successful_result(self, machine):
        result = machine.transition(TurnPhase.ROLL)

        assert result.success
        assert result.source == TurnPhase.IDLE
        assert result.target == TurnPhase.ROLL
        assert not result.forced

    @pytest.mark.parametrize("source", list(TurnPhase))
    def test_rows_outside_table_are_rejected(self, source, timers):
        machine = TurnStateMachine(timers=timers)
        machine._phase = source

        for target in TurnPhase:
            if target in TABLE[source]:
                continue
            before = machine.get_context()
            result = machine.transition(target)

            assert not result
            assert result.error_code == "INVALID_TRANSITION"
            assert machine.phase == source
            assert machine.get_context() == before

    def test_decision_guard_needs_pending_decision(self, machine):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD)

        assert not machine.transition(TurnPhase.DECISION)
        assert machine.phase == TurnPhase.CARD

    def test_end_turn_guard_needs_no_pending_decision(self, machine):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD)
        machine.update_context(pending_decision={"card": "gossip"})

        assert not machine.transition(TurnPhase.END_TURN)
        assert machine.phase == TurnPhase.CARD

    def test_random_walks_match_replay(self):
        """Random legal walks land where replaying the table says."""
        rng = random.Random(99)
        for _ in range(20):
            machine = TurnStateMachine(timers=ManualTimerScheduler())
            expected = TurnPhase.IDLE
            for _ in range(40):
                options = TABLE[expected]
                target = rng.choice(options)
                if expected == TurnPhase.CARD:
                    pending = {"card": "x"} if target == TurnPhase.DECISION else None
                    machine.update_context(pending_decision=pending)
                if target == TurnPhase.IDLE:
                    machine.update_context(pending_decision=None)
                assert machine.transition(target)
                expected = target
            assert machine.phase == expected

    def test_enter_and_exit_callbacks(self, machine):
        calls = []
        machine.on_exit(TurnPhase.IDLE, lambda: calls.append("exit idle"))
        machine.on_enter(TurnPhase.ROLL, lambda: calls.append("enter roll"))

        machine.transition(TurnPhase.ROLL)

        assert calls == ["exit idle", "enter roll"]

    def test_custom_transition_with_action(self, machine):
        calls = []
        machine.add_transition(TurnPhase.IDLE, TurnPhase.END_TURN, action=lambda: calls.append("skip"))

        assert machine.transition(TurnPhase.END_TURN)
        assert calls == ["skip"]

    def test_input_phases(self, machine):
        assert not machine.is_waiting_for_input()
        machine.transition(TurnPhase.ROLL)
        assert machine.can_player_act()
        assert machine.is_waiting_for_input()
        machine.transition(TurnPhase.TILE)
        assert not machine.can_player_act()


class TestTimeouts:
    """Tests for timeout-driven progression."""

    def test_roll_times_out_to_tile(self, machine, timers):
        machine.transition(TurnPhase.ROLL)

        timers.advance(4999)
        assert machine.phase == TurnPhase.ROLL

        timers.advance(1)
        assert machine.phase == TurnPhase.TILE

    def test_roll_timeout_long_after(self, machine, timers):
        machine.transition(TurnPhase.ROLL)
        timers.advance(60000)

        assert machine.phase == TurnPhase.TILE

    def test_decision_times_out_to_end_turn(self, machine, timers):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD)
        machine.update_context(pending_decision={"card": "gossip"})
        machine.transition(TurnPhase.DECISION)

        timers.advance(29999)
        assert machine.phase == TurnPhase.DECISION

        timers.advance(1)
        assert machine.phase == TurnPhase.END_TURN
        assert machine.get_context().pending_decision is None

    def test_timeout_listener_gets_forced_result(self, machine, timers):
        results = []
        machine.on_timeout(TurnPhase.ROLL, results.append)
        machine.transition(TurnPhase.ROLL)

        timers.advance(5000)

        assert len(results) == 1
        assert results[0].forced
        assert results[0].source == TurnPhase.ROLL
        assert results[0].target == TurnPhase.TILE

    def test_leaving_phase_cancels_timer(self, machine, timers):
        machine.transition(TurnPhase.ROLL)
        handle = machine.pending_timeout(TurnPhase.ROLL)
        machine.transition(TurnPhase.TILE)

        assert handle.cancelled
        assert machine.pending_timeout(TurnPhase.ROLL) is None
        assert timers.pending_count == 0

        timers.advance(10000)
        assert machine.phase == TurnPhase.TILE

    def test_stale_handle_is_a_no_op(self, machine, timers):
        """A firing from an earlier Roll must not move a later Roll."""
        machine.transition(TurnPhase.ROLL)
        stale = machine.pending_timeout(TurnPhase.ROLL)
        walk_to(machine, TurnPhase.TILE, TurnPhase.CARD, TurnPhase.END_TURN,
                TurnPhase.IDLE, TurnPhase.ROLL)

        machine._on_timer(TurnPhase.ROLL, stale)

        assert machine.phase == TurnPhase.ROLL
        assert machine.pending_timeout(TurnPhase.ROLL) is not stale

    def test_reentering_roll_rearms(self, machine, timers):
        machine.transition(TurnPhase.ROLL)
        timers.advance(3000)
        walk_to(machine, TurnPhase.TILE, TurnPhase.CARD, TurnPhase.END_TURN,
                TurnPhase.IDLE, TurnPhase.ROLL)

        timers.advance(3000)
        assert machine.phase == TurnPhase.ROLL

        timers.advance(2000)
        assert machine.phase == TurnPhase.TILE

    def test_arming_sets_time_remaining(self, machine):
        machine.transition(TurnPhase.ROLL)
        assert machine.get_context().time_remaining == 5

    def test_custom_timeouts(self, timers):
        machine = TurnStateMachine(timers=timers, roll_timeout_ms=100)
        machine.transition(TurnPhase.ROLL)

        timers.advance(100)
        assert machine.phase == TurnPhase.TILE

    def test_force_timeout_outside_input_phase(self, machine):
        result = machine.force_timeout()

        assert not result
        assert result.error_code == "INVALID_PHASE"
        assert machine.phase == TurnPhase.IDLE

    def test_force_timeout_from_decision(self, machine, timers):
        walk_to(machine, TurnPhase.ROLL, TurnPhase.TILE, TurnPhase.CARD)
        machine.update_context(pending_decision={"card": "gossip"})
        machine.transition(TurnPhase.DECISION)

        result = machine.force_timeout()

        assert result.forced
        assert machine.phase == TurnPhase.END_TURN
        assert machine.get_context().pending_decision is None
        assert timers.pending_count == 0


class TestContext:
    """Tests for context handling."""

    def test_initial_context(self, timers):
        machine = TurnStateMachine(initial_context={"current_player": "alice"}, timers=timers)
        assert machine.get_context().current_player == "alice"

    def test_get_context_returns_copy(self, machine):
        context = machine.get_context()
        context.current_player = "mallory"

        assert machine.get_context().current_player == ""

    def test_update_context_rejects_unknown_fields(self, machine):
        with pytest.raises(ValueError):
            machine.update_context(score=10)

    def test_reset(self, machine, timers):
        machine.update_context(current_player="alice", turn_number=7)
        machine.transition(TurnPhase.ROLL)

        machine.reset()

        assert machine.phase == TurnPhase.IDLE
        assert machine.get_context() == TurnContext()
        assert timers.pending_count == 0
