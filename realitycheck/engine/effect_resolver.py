"""
Effect Resolver - Applies effect deltas to player stats.

This module handles:
- Plain deltas (ring events, single-choice cards)
- Choice preconditions (requires_money)
- Dice triggers: a d6 roll selects one of the card's effect branches
- Tag additions (tags are a multiset, order preserved)

The resolver keeps no state between calls. It never mutates its inputs;
new stats and a new tag list come back in the result.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Sequence, TYPE_CHECKING
import logging
import random

from .stats import ACCUMULATORS, STAT_NAMES, PlayerStats, validate_delta

if TYPE_CHECKING:
    from ..cards.models import Card, ChoiceConditions

logger = logging.getLogger(__name__)


@dataclass
class ResolutionResult:
    """
    Result of resolving a card choice.

    On failure `stats` and `tags` are the untouched inputs.
    """
    success: bool
    stats: PlayerStats
    tags: list[str] = field(default_factory=list)
    card_id: str | None = None
    choice_index: int | None = None

    applied_effects: dict[str, int] = field(default_factory=dict)
    added_tags: list[str] = field(default_factory=list)
    dice_roll: int | None = None

    error: str | None = None
    error_code: str | None = None

    @classmethod
    def failure(
        cls,
        stats: PlayerStats,
        tags: Sequence[str],
        error: str,
        error_code: str,
        card_id: str | None = None,
        choice_index: int | None = None,
    ) -> ResolutionResult:
        return cls(
            success=False,
            stats=stats,
            tags=list(tags),
            card_id=card_id,
            choice_index=choice_index,
            error=error,
            error_code=error_code,
        )


def combine_deltas(*deltas: Mapping[str, int]) -> dict[str, int]:
    """Sum several deltas stat by stat."""
    combined: dict[str, int] = {}
    for delta in deltas:
        for stat, value in delta.items():
            combined[stat] = combined.get(stat, 0) + value
    return combined


class EffectResolver:
    """
    Stateless effect application.

    Usage:
        resolver = EffectResolver(rng=random.Random(3))
        new_stats = resolver.apply(stats, {"money": -500, "mental": 1})
        result = resolver.resolve_choice(stats, tags, card, choice_index=0)
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def apply(self, stats: PlayerStats, effects: Mapping[str, int]) -> PlayerStats:
        """
        Add `effects` to `stats`; stats not named stay as they are.

        sin and virtue are floored at zero.
        """
        validate_delta(effects)
        values = stats.to_dict()
        for stat in STAT_NAMES:
            if stat not in effects:
                continue
            value = values[stat] + int(effects[stat])
            if stat in ACCUMULATORS:
                value = max(0, value)
            values[stat] = value
        return PlayerStats(**values)

    def check_conditions(self, stats: PlayerStats, conditions: ChoiceConditions) -> str | None:
        """Return an error message if a precondition fails, None otherwise."""
        if conditions.requires_money is not None and stats.money < conditions.requires_money:
            return (
                f"Requires ${conditions.requires_money}, "
                f"player has ${stats.money}"
            )
        return None

    def roll_die(self) -> int:
        return self.rng.randint(1, 6)

    def resolve_choice(
        self,
        stats: PlayerStats,
        tags: Sequence[str],
        card: Card,
        choice_index: int,
    ) -> ResolutionResult:
        """
        Resolve one choice of a card against a player's stats and tags.

        Order: bounds check, preconditions, dice branch, effects, tags.
        """
        choice = card.get_choice(choice_index)
        if choice is None:
            return ResolutionResult.failure(
                stats, tags,
                f"Card {card.card_id} has no choice {choice_index}",
                "INVALID_CHOICE",
                card_id=card.card_id,
                choice_index=choice_index,
            )

        error = self.check_conditions(stats, choice.conditions)
        if error:
            logger.info("Precondition failed for %s[%d]: %s", card.card_id, choice_index, error)
            return ResolutionResult.failure(
                stats, tags, error, "PRECONDITION_FAILED",
                card_id=card.card_id,
                choice_index=choice_index,
            )

        effects = dict(choice.effects)
        dice_roll = None
        if choice.triggers.dice is not None:
            dice_roll = self.roll_die()
            branch = choice.triggers.dice.branch_for(dice_roll)
            effects = combine_deltas(effects, branch.effects)

        new_stats = self.apply(stats, effects)
        added_tags = list(choice.triggers.add_tags)

        return ResolutionResult(
            success=True,
            stats=new_stats,
            tags=list(tags) + added_tags,
            card_id=card.card_id,
            choice_index=choice_index,
            applied_effects=effects,
            added_tags=added_tags,
            dice_roll=dice_roll,
        )
