"""
Ring Event Templates - Seed events and per-ring template pools.

Each ring has a pool of templates. When the ring's clock fires, one
template is picked at random and turned into a RingEvent. A template's
effect values are either fixed integers or a Swing, which resolves to
one of two values on a coin flip.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping
import random


class Ring(Enum):
    """Thematic rings, each with its own clock."""
    CAREER = "career"
    HEALTH = "health"
    SOCIAL = "social"
    PERSONAL = "personal"
    BABEL = "babel"


class EventKind(Enum):
    """Who an event hits: the active player's tile, or every player."""
    TILE = "tile"
    GLOBAL = "global"


RING_INTERVALS: dict[Ring, int] = {
    Ring.CAREER: 4,
    Ring.HEALTH: 6,
    Ring.SOCIAL: 8,
    Ring.PERSONAL: 10,
    Ring.BABEL: 12,
}


@dataclass(frozen=True)
class Swing:
    """Randomized magnitude: `high` if the coin lands above 0.5, else `low`."""
    high: int
    low: int

    def roll(self, rng: random.Random) -> int:
        return self.high if rng.random() > 0.5 else self.low


@dataclass(frozen=True)
class EventTemplate:
    title: str
    description: str
    effects: Mapping[str, int | Swing] = field(default_factory=dict)
    kind: EventKind = EventKind.GLOBAL

    def roll_effects(self, rng: random.Random) -> dict[str, int]:
        """Resolve every Swing into a concrete value."""
        return {
            stat: value.roll(rng) if isinstance(value, Swing) else value
            for stat, value in self.effects.items()
        }


@dataclass(frozen=True)
class SeedEvent:
    event_id: str
    ring: Ring
    title: str
    description: str
    effects: Mapping[str, int]


# ============================================================================
# Seed events (one per ring, fire the first time the clock would)
# ============================================================================

SEED_EVENTS: tuple[SeedEvent, ...] = (
    SeedEvent(
        event_id="career_1",
        ring=Ring.CAREER,
        title="Company Restructuring",
        description="Your company announces layoffs. Everyone loses money but gains stress.",
        effects={"money": -1000, "mental": -2},
    ),
    SeedEvent(
        event_id="health_1",
        ring=Ring.HEALTH,
        title="Flu Season",
        description="A nasty bug is going around. Mental health takes a hit.",
        effects={"mental": -3},
    ),
    SeedEvent(
        event_id="social_1",
        ring=Ring.SOCIAL,
        title="Wedding Season",
        description="Everyone is getting married. Expensive gifts required.",
        effects={"money": -500, "mental": 1},
    ),
    SeedEvent(
        event_id="personal_1",
        ring=Ring.PERSONAL,
        title="New Year Resolutions",
        description=(
            "Time for self-improvement! Everyone gains virtue but loses money "
            "on gym memberships."
        ),
        effects={"money": -200, "virtue": 2},
    ),
    SeedEvent(
        event_id="babel_1",
        ring=Ring.BABEL,
        title="Social Media Drama",
        description="A celebrity scandal dominates the news cycle. Everyone picks sides.",
        effects={"sin": 1, "mental": -1},
    ),
)


# ============================================================================
# Template pools
# ============================================================================

EVENT_TEMPLATES: dict[Ring, tuple[EventTemplate, ...]] = {
    Ring.CAREER: (
        EventTemplate(
            "Performance Review",
            "Your annual review is here. Results vary wildly.",
            {"money": Swing(high=2000, low=-500)},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Office Politics",
            "Someone threw you under the bus in a meeting.",
            {"mental": -2, "sin": 1},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Promotion Opportunity",
            "A new position opened up. Competition is fierce.",
            {"mental": 1, "virtue": -1},
        ),
    ),
    Ring.HEALTH: (
        EventTemplate(
            "Doctor Visit",
            "Routine checkup reveals you need to exercise more.",
            {"money": -300, "mental": -1},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Gym Membership",
            "You finally joined a gym. Motivation pending.",
            {"money": -50, "virtue": 1},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Injury",
            "You hurt yourself doing something stupid.",
            {"money": -800, "mental": -2},
            kind=EventKind.TILE,
        ),
    ),
    Ring.SOCIAL: (
        EventTemplate(
            "Friend Drama",
            "Someone in your friend group started beef.",
            {"mental": -2},
        ),
        EventTemplate(
            "Networking Event",
            "You went to a professional mixer and collected business cards.",
            {"money": 200, "mental": 1},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Party Invitation",
            "You have to choose between a fun party and responsibility.",
            {"mental": 2, "virtue": -1},
        ),
    ),
    Ring.PERSONAL: (
        EventTemplate(
            "Self-Help Phase",
            "You bought seven self-help books. Read zero.",
            {"money": -150, "virtue": 1},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Hobby Pursuit",
            "You started learning something new and actually stuck with it.",
            {"mental": 3, "virtue": 2},
            kind=EventKind.TILE,
        ),
        EventTemplate(
            "Existential Crisis",
            "You question all your life choices at 3 AM.",
            {"mental": -3, "sin": 1},
            kind=EventKind.TILE,
        ),
    ),
    Ring.BABEL: (
        EventTemplate(
            "Viral Meme",
            "A new meme format has taken over social media.",
            {"mental": 1, "sin": 1},
        ),
        EventTemplate(
            "Economic News",
            "The stock market did something unpredictable.",
            {"money": Swing(high=500, low=-500)},
        ),
        EventTemplate(
            "Cultural Shift",
            "Society collectively changed its mind about something.",
            {"virtue": Swing(high=2, low=-2)},
        ),
    ),
}
