"""
Turn State Machine - Sequences a single player's turn.

Phases cycle:
    Idle -> Roll -> Tile -> Card -> (Decision) -> EndTurn -> Idle

Two phases wait on the player and carry a timeout so an unresponsive
player cannot stall the game:
- Roll: after 5s the machine is forced to Tile
- Decision: after 30s pending_decision is cleared and the machine is
  forced to EndTurn

Design principles:
- Transitions come from one table; anything else is rejected and reported
- Rejections are results, not exceptions
- Every timer goes through a TimerHandle; a stale firing is a no-op
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable
import logging
import threading

from .. import config
from .timers import TimerHandle, TimerScheduler, ThreadTimerScheduler

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    """Phases of one player's turn."""
    IDLE = "Idle"
    ROLL = "Roll"
    TILE = "Tile"
    CARD = "Card"
    DECISION = "Decision"
    END_TURN = "EndTurn"


# Phases where the active player is expected to send something
INPUT_PHASES = frozenset({TurnPhase.ROLL, TurnPhase.DECISION})


@dataclass
class TurnContext:
    """Mutable per-turn data owned by the state machine."""
    current_player: str = ""
    turn_number: int = 1
    time_remaining: int = 30  # seconds
    last_tile_result: Any = None
    last_card: Any = None
    pending_decision: Any = None


_CONTEXT_FIELDS = frozenset(f.name for f in fields(TurnContext))


@dataclass(frozen=True)
class Transition:
    """One row of the transition table."""
    source: TurnPhase
    target: TurnPhase
    guard: Callable[[TurnContext], bool] | None = None
    action: Callable[[], None] | None = None


@dataclass
class TransitionResult:
    """
    Outcome of a transition request.

    Truthy on success, so callers can write `if machine.transition(...)`.
    """
    success: bool
    source: TurnPhase
    target: TurnPhase
    forced: bool = False
    error: str | None = None
    error_code: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def invalid(cls, source: TurnPhase, target: TurnPhase) -> TransitionResult:
        return cls(
            success=False,
            source=source,
            target=target,
            error=f"Invalid transition from {source.value} to {target.value}",
            error_code="INVALID_TRANSITION",
        )


class TurnStateMachine:
    """
    Finite-state machine over TurnPhase with timeout-driven progression.

    The machine shares `lock` with its owning session. Explicit
    transitions and timer callbacks both run under it.

    Usage:
        machine = TurnStateMachine(timers=ManualTimerScheduler())
        machine.transition(TurnPhase.ROLL)
        machine.transition(TurnPhase.TILE)
        machine.transition(TurnPhase.CARD)
        machine.transition(TurnPhase.END_TURN)  # no pending decision
    """

    def __init__(
        self,
        initial_context: dict[str, Any] | None = None,
        timers: TimerScheduler | None = None,
        lock: threading.RLock | None = None,
        roll_timeout_ms: int = config.ROLL_TIMEOUT_MS,
        decision_timeout_ms: int = config.DECISION_TIMEOUT_MS,
    ):
        self.timers = timers or ThreadTimerScheduler()
        self.lock = lock or threading.RLock()
        self.roll_timeout_ms = roll_timeout_ms
        self.decision_timeout_ms = decision_timeout_ms

        self._phase = TurnPhase.IDLE
        self._context = TurnContext()
        if initial_context:
            self.update_context(**initial_context)

        self._transitions: list[Transition] = []
        self._enter_callbacks: dict[TurnPhase, list[Callable[[], None]]] = {
            phase: [] for phase in TurnPhase
        }
        self._exit_callbacks: dict[TurnPhase, list[Callable[[], None]]] = {
            phase: [] for phase in TurnPhase
        }
        self._timeout_listeners: dict[TurnPhase, list[Callable[[TransitionResult], None]]] = {
            phase: [] for phase in TurnPhase
        }
        self._timers: dict[TurnPhase, TimerHandle | None] = {
            phase: None for phase in TurnPhase
        }

        self._setup_default_transitions()

    def _setup_default_transitions(self) -> None:
        """Core turn flow plus the two timeouts."""
        self.add_transition(TurnPhase.IDLE, TurnPhase.ROLL)
        self.add_transition(TurnPhase.ROLL, TurnPhase.TILE)
        self.add_transition(TurnPhase.TILE, TurnPhase.CARD)
        self.add_transition(
            TurnPhase.CARD, TurnPhase.DECISION,
            guard=lambda ctx: ctx.pending_decision is not None,
        )
        self.add_transition(
            TurnPhase.CARD, TurnPhase.END_TURN,
            guard=lambda ctx: ctx.pending_decision is None,
        )
        self.add_transition(TurnPhase.DECISION, TurnPhase.END_TURN)
        self.add_transition(TurnPhase.END_TURN, TurnPhase.IDLE)

        self.on_enter(TurnPhase.ROLL, lambda: self._arm_timeout(TurnPhase.ROLL, self.roll_timeout_ms))
        self.on_enter(
            TurnPhase.DECISION,
            lambda: self._arm_timeout(TurnPhase.DECISION, self.decision_timeout_ms),
        )

    # =========================================================================
    # Registration
    # =========================================================================

    def add_transition(
        self,
        source: TurnPhase,
        target: TurnPhase,
        guard: Callable[[TurnContext], bool] | None = None,
        action: Callable[[], None] | None = None,
    ) -> None:
        self._transitions.append(Transition(source, target, guard, action))

    def on_enter(self, phase: TurnPhase, callback: Callable[[], None]) -> None:
        self._enter_callbacks[phase].append(callback)

    def on_exit(self, phase: TurnPhase, callback: Callable[[], None]) -> None:
        self._exit_callbacks[phase].append(callback)

    def on_timeout(self, phase: TurnPhase, callback: Callable[[TransitionResult], None]) -> None:
        """Run `callback` after a forced transition out of `phase`."""
        self._timeout_listeners[phase].append(callback)

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(self, target: TurnPhase) -> TransitionResult:
        """
        Move to `target` if the table allows it from the current phase.

        On failure the phase and context are left untouched.
        """
        with self.lock:
            source = self._phase
            row = self._find_transition(source, target)
            if row is None:
                logger.warning("Invalid transition from %s to %s", source.value, target.value)
                return TransitionResult.invalid(source, target)

            for callback in self._exit_callbacks[source]:
                callback()
            self._cancel_timeout(source)

            self._phase = target
            logger.debug("State transition: %s -> %s", source.value, target.value)

            if row.action:
                row.action()
            for callback in self._enter_callbacks[target]:
                callback()

            return TransitionResult(success=True, source=source, target=target)

    def _find_transition(self, source: TurnPhase, target: TurnPhase) -> Transition | None:
        for row in self._transitions:
            if row.source != source or row.target != target:
                continue
            if row.guard is None or row.guard(self._context):
                return row
        return None

    def force_timeout(self) -> TransitionResult:
        """
        Apply the timeout fallback for the current phase right away.

        Roll goes to Tile. Decision clears the pending decision and goes
        to EndTurn. Timeout listeners for the phase run afterwards.
        """
        with self.lock:
            phase = self._phase
            if phase == TurnPhase.ROLL:
                result = self.transition(TurnPhase.TILE)
            elif phase == TurnPhase.DECISION:
                self._context.pending_decision = None
                result = self.transition(TurnPhase.END_TURN)
            else:
                return TransitionResult(
                    success=False,
                    source=phase,
                    target=phase,
                    error=f"No timeout defined for {phase.value}",
                    error_code="INVALID_PHASE",
                )

            if result:
                result.forced = True
                for listener in self._timeout_listeners[phase]:
                    listener(result)
            return result

    # =========================================================================
    # Timers
    # =========================================================================

    def _arm_timeout(self, phase: TurnPhase, delay_ms: int) -> TimerHandle:
        self._cancel_timeout(phase)
        handle: TimerHandle | None = None

        def _expire():
            self._on_timer(phase, handle)

        handle = self.timers.schedule(delay_ms, _expire, label=f"{phase.value} timeout")
        self._timers[phase] = handle
        self._context.time_remaining = delay_ms // 1000
        return handle

    def _cancel_timeout(self, phase: TurnPhase) -> None:
        handle = self._timers[phase]
        if handle is not None:
            handle.cancel()
            self._timers[phase] = None

    def _on_timer(self, phase: TurnPhase, handle: TimerHandle | None) -> None:
        with self.lock:
            # Stale wake: cancelled, re-armed, or phase already left
            if handle is None or handle.cancelled:
                return
            if self._timers[phase] is not handle or self._phase != phase:
                return
            self._timers[phase] = None
            logger.info("Auto-transitioning from %s (timeout)", phase.value)
            self.force_timeout()

    def pending_timeout(self, phase: TurnPhase) -> TimerHandle | None:
        """The armed timer for `phase`, if any."""
        return self._timers[phase]

    # =========================================================================
    # Context & queries
    # =========================================================================

    @property
    def phase(self) -> TurnPhase:
        return self._phase

    def get_current_state(self) -> TurnPhase:
        return self._phase

    def get_context(self) -> TurnContext:
        """Copy of the context; edits go through update_context()."""
        return replace(self._context)

    def update_context(self, **updates: Any) -> None:
        unknown = set(updates) - _CONTEXT_FIELDS
        if unknown:
            raise ValueError(f"Unknown context field(s): {sorted(unknown)}")
        with self.lock:
            self._context = replace(self._context, **updates)

    def can_player_act(self) -> bool:
        return self._phase in INPUT_PHASES

    def is_waiting_for_input(self) -> bool:
        return self._phase in INPUT_PHASES

    def reset(self) -> None:
        """Cancel every timer and return to Idle with a fresh context."""
        with self.lock:
            for phase in TurnPhase:
                self._cancel_timeout(phase)
            self._phase = TurnPhase.IDLE
            self._context = TurnContext()
