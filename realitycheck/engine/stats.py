"""
Player Stats - The stat vector that cards and ring events modify.

Stats:
- money: can go negative (debt)
- mental: mental health, signed
- sin / virtue: non-negative accumulators

An effect-delta is a partial mapping of stat name to a signed integer.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Mapping

STAT_NAMES = ("money", "mental", "sin", "virtue")

# Stats that never drop below zero
ACCUMULATORS = frozenset({"sin", "virtue"})

EffectDelta = Mapping[str, int]


@dataclass
class PlayerStats:
    """Stat vector for one player."""
    money: int = 5000
    mental: int = 5
    sin: int = 0
    virtue: int = 0

    def __post_init__(self):
        for name in ACCUMULATORS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {getattr(self, name)}")

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    def copy(self) -> PlayerStats:
        return PlayerStats(**self.to_dict())


def validate_delta(delta: EffectDelta) -> None:
    """Raise ValueError if the delta names a stat that does not exist."""
    unknown = set(delta) - set(STAT_NAMES)
    if unknown:
        raise ValueError(f"Unknown stat(s) in effect: {sorted(unknown)}")


def describe_delta(delta: EffectDelta) -> str:
    """Human-readable summary, e.g. 'money -500, mental +1'."""
    parts = [f"{name} {delta[name]:+d}" for name in STAT_NAMES if delta.get(name)]
    return ", ".join(parts) if parts else "no effect"
