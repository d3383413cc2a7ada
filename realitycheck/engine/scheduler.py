"""
Ring Event Scheduler - Periodic world events on independent clocks.

Every ring owns a clock with a fixed interval in turns. Each time the
turn counter reaches a clock's next trigger, one event is generated for
that ring and queued for the current turn. Processing a turn moves its
events from the queue into the history, exactly once.

The random source is injected so that a seeded Random gives a fully
reproducible event stream.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Mapping
import bisect
import itertools
import logging
import random
import string
import time
from types import MappingProxyType

from .event_templates import (
    EVENT_TEMPLATES,
    RING_INTERVALS,
    SEED_EVENTS,
    EventKind,
    Ring,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class RingClock:
    """Scheduling state for one ring."""
    ring: Ring
    interval: int
    last_trigger: int = 0
    next_trigger: int = 0

    def __post_init__(self):
        if self.interval <= 0:
            raise ValueError(f"Clock interval must be positive, got {self.interval}")
        self.next_trigger = self.last_trigger + self.interval

    def is_due(self, turn: int) -> bool:
        return self.next_trigger <= turn

    def fire(self, turn: int) -> None:
        if turn < self.last_trigger:
            raise ValueError(f"Clock for {self.ring.value} cannot move back to turn {turn}")
        self.last_trigger = turn
        self.next_trigger = turn + self.interval


@dataclass(frozen=True)
class RingEvent:
    """A world event. Immutable once created."""
    event_id: str
    ring: Ring
    kind: EventKind
    title: str
    description: str
    effects: Mapping[str, int] = field(default_factory=dict)
    trigger_turn: int = 0

    def __post_init__(self):
        # Read-only view over a private copy of the effects
        object.__setattr__(self, "effects", MappingProxyType(dict(self.effects)))

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "ring": self.ring.value,
            "type": self.kind.value,
            "title": self.title,
            "description": self.description,
            "effects": dict(self.effects),
            "trigger_turn": self.trigger_turn,
        }


class RingEventScheduler:
    """
    Owns the ring clocks, the event queue and the event history.

    Usage:
        scheduler = RingEventScheduler(rng=random.Random(7))
        scheduler.advance_turn()
        fired = scheduler.process_events()
        rings = scheduler.triggered_rings(fired)
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        intervals: Mapping[Ring, int] | None = None,
        seed_initial_events: bool = True,
    ):
        self.rng = rng or random.Random()
        self._current_turn = 1
        self._sequence = itertools.count()
        # (trigger_turn, insertion sequence, event); insertion sequence breaks ties
        self._queue: list[tuple[int, int, RingEvent]] = []
        self._history: list[RingEvent] = []

        intervals = {**RING_INTERVALS, **(intervals or {})}
        self._clocks: dict[Ring, RingClock] = {
            ring: RingClock(ring=ring, interval=intervals[ring]) for ring in Ring
        }

        if seed_initial_events:
            self._seed_initial_events()

    def _seed_initial_events(self) -> None:
        for seed in SEED_EVENTS:
            self.schedule_event(RingEvent(
                event_id=seed.event_id,
                ring=seed.ring,
                kind=EventKind.GLOBAL,
                title=seed.title,
                description=seed.description,
                effects=dict(seed.effects),
                trigger_turn=self._clocks[seed.ring].interval,
            ))

    # =========================================================================
    # Mutators
    # =========================================================================

    def schedule_event(self, event: RingEvent) -> None:
        """Queue an event, keeping trigger-turn order stable."""
        entry = (event.trigger_turn, next(self._sequence), event)
        bisect.insort(self._queue, entry, key=lambda e: (e[0], e[1]))

    def advance_turn(self) -> list[RingEvent]:
        """
        Move to the next turn and fire every clock that is due.

        Returns the events generated by this advance.
        """
        self._current_turn += 1
        generated = []
        for ring, clock in self._clocks.items():
            if clock.is_due(self._current_turn):
                event = self._generate_ring_event(ring)
                self.schedule_event(event)
                clock.fire(self._current_turn)
                generated.append(event)
                logger.info(
                    "Ring %s fired on turn %d: %s",
                    ring.value, self._current_turn, event.title,
                )
        return generated

    def _generate_ring_event(self, ring: Ring) -> RingEvent:
        template = self.rng.choice(EVENT_TEMPLATES[ring])
        return RingEvent(
            event_id=self._generate_event_id(ring),
            ring=ring,
            kind=template.kind,
            title=template.title,
            description=template.description,
            effects=template.roll_effects(self.rng),
            trigger_turn=self._current_turn,
        )

    def _generate_event_id(self, ring: Ring) -> str:
        suffix = "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))
        return f"{ring.value}_{int(time.time() * 1000)}_{suffix}"

    def process_events(self, turn: int | None = None) -> list[RingEvent]:
        """
        Retire the events of `turn` (default: current turn).

        Returns the same events as get_active_events(turn) and moves them
        from the queue to the history. A second call for the same turn
        returns an empty list.
        """
        turn = self._current_turn if turn is None else turn
        active = [entry for entry in self._queue if entry[0] == turn]
        if not active:
            return []
        self._queue = [entry for entry in self._queue if entry[0] != turn]
        events = [event for _, _, event in active]
        self._history.extend(events)
        return events

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def current_turn(self) -> int:
        return self._current_turn

    def get_current_turn(self) -> int:
        return self._current_turn

    def get_active_events(self, turn: int | None = None) -> list[RingEvent]:
        turn = self._current_turn if turn is None else turn
        return [event for trigger, _, event in self._queue if trigger == turn]

    def get_upcoming_events(self, lookahead: int = 5) -> list[RingEvent]:
        max_turn = self._current_turn + lookahead
        return [
            event for trigger, _, event in self._queue
            if self._current_turn < trigger <= max_turn
        ]

    def get_clock_status(self) -> list[RingClock]:
        return [
            RingClock(ring=c.ring, interval=c.interval, last_trigger=c.last_trigger)
            for c in self._clocks.values()
        ]

    def get_clock(self, ring: Ring) -> RingClock:
        return self._clocks[ring]

    def get_event_history(self) -> list[RingEvent]:
        return list(self._history)

    @property
    def total_queued_events(self) -> int:
        return len(self._queue)

    @staticmethod
    def triggered_rings(events: Iterable[RingEvent]) -> list[Ring]:
        """Distinct rings among `events`, in first-seen order."""
        rings: list[Ring] = []
        for event in events:
            if event.ring not in rings:
                rings.append(event.ring)
        return rings
