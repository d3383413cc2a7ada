"""
Players - Roster entries and random character generation.

A player joins with a username and is dealt a random character: a
background (which sets starting money), two traits and a drawback.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import random
import uuid

from ..engine.stats import PlayerStats

BACKGROUNDS = (
    {"type": "privileged", "money": 15000, "description": "Trust fund kid"},
    {"type": "working_class", "money": 3000, "description": "Blue collar family"},
    {"type": "immigrant", "money": 1000, "description": "Recent immigrant"},
    {"type": "middle_class", "money": 8000, "description": "Suburban upbringing"},
)

TRAITS = ("Optimistic", "Stubborn", "Creative", "Analytical", "Charismatic", "Cautious")

DRAWBACKS = ("Addictive Personality", "Trust Issues", "Impulsive", "Anxious", "Prideful")


@dataclass
class Player:
    """One seat in a game."""
    player_id: str
    username: str
    stats: PlayerStats = field(default_factory=PlayerStats)
    tags: list[str] = field(default_factory=list)
    position: int = 0
    character: dict[str, Any] = field(default_factory=dict)
    is_alive: bool = True


def generate_character(rng: random.Random) -> dict[str, Any]:
    """Random background, two distinct traits and one drawback."""
    background = dict(rng.choice(BACKGROUNDS))
    return {
        "background": background,
        "traits": rng.sample(TRAITS, 2),
        "drawback": rng.choice(DRAWBACKS),
        "age": 18,
        "documentation": (
            "work_permit" if background["type"] == "immigrant" else "drivers_license"
        ),
    }


def create_player(username: str, rng: random.Random) -> Player:
    """New player with a random character; starting money comes from the background."""
    character = generate_character(rng)
    return Player(
        player_id=str(uuid.uuid4()),
        username=username,
        stats=PlayerStats(money=character["background"]["money"]),
        character=character,
    )
