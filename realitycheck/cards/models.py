"""
Card Models - Card and choice definitions.

Card structure (storage format):
    {
        "id": "easy_money",
        "name": "Easy Money",
        "deck": "sin",
        "type": "immediate",
        "category": "career",
        "description": "...",
        "rarity": "common",
        "min_round": 1,
        "choices": [
            {
                "text": "Take the job",
                "effects": {"money": 2000, "sin": 2},
                "conditions": {"requires_money": 500},
                "triggers": {
                    "add_tags": ["shady_contact"],
                    "dice": [
                        {"range": [1, 2], "effects": {"money": -1000}},
                        {"range": [3, 6], "effects": {"money": 1000}}
                    ]
                }
            }
        ]
    }
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..engine.stats import validate_delta


class Deck(Enum):
    SIN = "sin"
    VIRTUE = "virtue"


class CardType(Enum):
    IMMEDIATE = "immediate"
    DELAYED = "delayed"


class Rarity(Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


RARITY_WEIGHTS = {
    Rarity.COMMON: 3,
    Rarity.UNCOMMON: 2,
    Rarity.RARE: 1,
}

DIE_FACES = range(1, 7)


@dataclass(frozen=True)
class DiceBranch:
    """Effects applied when a d6 roll lands in [low, high]."""
    low: int
    high: int
    effects: Mapping[str, int] = field(default_factory=dict)

    def covers(self, roll: int) -> bool:
        return self.low <= roll <= self.high


@dataclass(frozen=True)
class DiceTrigger:
    """A d6 roll picking one of several effect branches."""
    branches: tuple[DiceBranch, ...]

    def __post_init__(self):
        for face in DIE_FACES:
            matches = [b for b in self.branches if b.covers(face)]
            if len(matches) != 1:
                raise ValueError(
                    f"Dice branches must cover each face 1-6 exactly once (face {face})"
                )

    def branch_for(self, roll: int) -> DiceBranch:
        for branch in self.branches:
            if branch.covers(roll):
                return branch
        raise ValueError(f"Roll {roll} outside 1-6")


@dataclass(frozen=True)
class ChoiceConditions:
    requires_money: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.requires_money is None


@dataclass(frozen=True)
class ChoiceTriggers:
    add_tags: tuple[str, ...] = ()
    dice: DiceTrigger | None = None


@dataclass(frozen=True)
class CardChoice:
    text: str
    effects: Mapping[str, int] = field(default_factory=dict)
    conditions: ChoiceConditions = field(default_factory=ChoiceConditions)
    triggers: ChoiceTriggers = field(default_factory=ChoiceTriggers)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"text": self.text, "effects": dict(self.effects)}
        if not self.conditions.is_empty:
            data["conditions"] = {"requires_money": self.conditions.requires_money}
        triggers: dict[str, Any] = {}
        if self.triggers.add_tags:
            triggers["add_tags"] = list(self.triggers.add_tags)
        if self.triggers.dice:
            triggers["dice"] = [
                {"range": [b.low, b.high], "effects": dict(b.effects)}
                for b in self.triggers.dice.branches
            ]
        if triggers:
            data["triggers"] = triggers
        return data


@dataclass(frozen=True)
class Card:
    card_id: str
    name: str
    deck: Deck
    choices: tuple[CardChoice, ...]
    card_type: CardType = CardType.IMMEDIATE
    category: str = ""
    description: str = ""
    rarity: Rarity = Rarity.COMMON
    min_round: int = 1

    @property
    def requires_choice(self) -> bool:
        """True when the player has to pick between options."""
        return len(self.choices) > 1

    def get_choice(self, index: int) -> CardChoice | None:
        if 0 <= index < len(self.choices):
            return self.choices[index]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.card_id,
            "name": self.name,
            "deck": self.deck.value,
            "type": self.card_type.value,
            "category": self.category,
            "description": self.description,
            "rarity": self.rarity.value,
            "min_round": self.min_round,
            "choices": [choice.to_dict() for choice in self.choices],
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any], default_deck: Deck | None = None) -> Card:
        """
        Build a Card from a storage record.

        The record's `deck` wins over `default_deck`; older records carry
        the deck only in the file they come from.
        """
        deck_value = record.get("deck") or (default_deck.value if default_deck else None)
        if deck_value is None:
            raise ValueError(f"Card {record.get('id')!r} has no deck")

        choices = tuple(_parse_choice(c) for c in record.get("choices", []))
        if not choices:
            raise ValueError(f"Card {record.get('id')!r} has no choices")

        return cls(
            card_id=str(record["id"]),
            name=record.get("name", record["id"]),
            deck=Deck(deck_value),
            choices=choices,
            card_type=CardType(record.get("type", CardType.IMMEDIATE.value)),
            category=record.get("category", ""),
            description=record.get("description", ""),
            rarity=Rarity(record.get("rarity", Rarity.COMMON.value)),
            min_round=int(record.get("min_round", record.get("minRound", 1))),
        )


def _parse_choice(data: Mapping[str, Any]) -> CardChoice:
    effects = {k: int(v) for k, v in (data.get("effects") or {}).items()}
    validate_delta(effects)

    raw_conditions = data.get("conditions") or {}
    requires_money = raw_conditions.get("requires_money")
    conditions = ChoiceConditions(
        requires_money=int(requires_money) if requires_money is not None else None,
    )

    raw_triggers = data.get("triggers") or {}
    dice = None
    if raw_triggers.get("dice"):
        branches = []
        for raw in raw_triggers["dice"]:
            low, high = raw["range"]
            branch_effects = {k: int(v) for k, v in (raw.get("effects") or {}).items()}
            validate_delta(branch_effects)
            branches.append(DiceBranch(low=int(low), high=int(high), effects=branch_effects))
        dice = DiceTrigger(branches=tuple(branches))
    triggers = ChoiceTriggers(
        add_tags=tuple(raw_triggers.get("add_tags", ())),
        dice=dice,
    )

    return CardChoice(
        text=data.get("text", ""),
        effects=effects,
        conditions=conditions,
        triggers=triggers,
    )
