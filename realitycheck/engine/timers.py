"""
Timers - Scheduled wakes with cancellation handles.

Arming a timer returns a TimerHandle. Cancelling the handle marks it
dead; a callback that still fires afterwards (a thread that was already
running, for instance) must check the handle and do nothing.

Two schedulers:
- ThreadTimerScheduler: wall-clock timers on background threads
- ManualTimerScheduler: a virtual clock advanced explicitly (tests,
  headless simulation)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable
import itertools
import threading

_timer_ids = itertools.count(1)


@dataclass(eq=False)
class TimerHandle:
    """Handle for one armed timer."""
    timer_id: int
    delay_ms: int
    label: str = ""
    cancelled: bool = False
    fired: bool = False
    _cancel: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        """Invalidate the handle. Safe to call more than once."""
        self.cancelled = True
        if self._cancel:
            self._cancel()
            self._cancel = None


class TimerScheduler(ABC):
    """Interface for anything that can run a callback after a delay."""

    @abstractmethod
    def schedule(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        label: str = "",
    ) -> TimerHandle:
        """Arm a timer. The callback runs at most once."""


class ThreadTimerScheduler(TimerScheduler):
    """Wall-clock timers backed by threading.Timer."""

    def schedule(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        label: str = "",
    ) -> TimerHandle:
        handle = TimerHandle(timer_id=next(_timer_ids), delay_ms=delay_ms, label=label)

        def _fire():
            if handle.cancelled:
                return
            handle.fired = True
            callback()

        timer = threading.Timer(delay_ms / 1000.0, _fire)
        timer.daemon = True
        handle._cancel = timer.cancel
        timer.start()
        return handle


class ManualTimerScheduler(TimerScheduler):
    """
    Virtual clock.

    Nothing fires until advance() is called. Timers armed by a callback
    during advance() fire in the same call if they fall inside the window.

    Usage:
        timers = ManualTimerScheduler()
        machine = TurnStateMachine(timers=timers)
        machine.transition(TurnPhase.ROLL)
        timers.advance(5000)  # roll timeout fires
    """

    def __init__(self):
        self.now_ms = 0
        self._pending: list[tuple[int, int, TimerHandle, Callable[[], None]]] = []

    def schedule(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        label: str = "",
    ) -> TimerHandle:
        handle = TimerHandle(timer_id=next(_timer_ids), delay_ms=delay_ms, label=label)
        self._pending.append((self.now_ms + delay_ms, handle.timer_id, handle, callback))
        return handle

    @property
    def pending_count(self) -> int:
        """Number of armed timers that have not fired or been cancelled."""
        return sum(1 for _, _, handle, _ in self._pending if handle.active)

    def advance(self, ms: int) -> int:
        """
        Move the clock forward by `ms` and fire every due timer in order.

        Returns the number of callbacks run.
        """
        target = self.now_ms + ms
        fired = 0
        while True:
            self._pending = [entry for entry in self._pending if entry[2].active]
            due = [entry for entry in self._pending if entry[0] <= target]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._pending.remove(entry)
            due_at, _, handle, callback = entry
            self.now_ms = due_at
            handle.fired = True
            callback()
            fired += 1
        self.now_ms = target
        return fired
