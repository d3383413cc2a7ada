"""
Card Catalog - Where the orchestrator draws cards from.

CardCatalog is the interface the engine depends on. InMemoryCardCatalog
is the shipped implementation: cards held in memory, random draws
weighted by rarity, random source injected.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping
import json
import logging
import random

from .models import Card, Deck, RARITY_WEIGHTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardFilters:
    """
    Optional filters for a random draw.

    min_round is the current round: cards that unlock in a later round
    are excluded.
    """
    type: str | None = None
    category: str | None = None
    min_round: int | None = None

    def matches(self, card: Card) -> bool:
        if self.type is not None and card.card_type.value != self.type:
            return False
        if self.category is not None and card.category != self.category:
            return False
        if self.min_round is not None and card.min_round > self.min_round:
            return False
        return True


class CardCatalog(ABC):
    """Interface for card sources."""

    @abstractmethod
    def get_random_card(self, deck_name: str, filters: CardFilters | None = None) -> Card | None:
        """Random card from `deck_name` matching `filters`, or None."""

    @abstractmethod
    def get_cards_by_category(self, category: str) -> list[Card]:
        """Every card in `category`, across decks."""

    @abstractmethod
    def get_card(self, card_id: str) -> Card | None:
        """Card by id, or None."""


class InMemoryCardCatalog(CardCatalog):
    """Card catalog backed by a list of cards."""

    def __init__(self, cards: Iterable[Card], rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._cards: dict[str, Card] = {}
        for card in cards:
            if card.card_id in self._cards:
                raise ValueError(f"Duplicate card id: {card.card_id}")
            self._cards[card.card_id] = card

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        rng: random.Random | None = None,
        default_deck: Deck | None = None,
    ) -> InMemoryCardCatalog:
        return cls([Card.from_record(r, default_deck=default_deck) for r in records], rng=rng)

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def cards(self) -> list[Card]:
        return list(self._cards.values())

    def get_card(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def get_random_card(self, deck_name: str, filters: CardFilters | None = None) -> Card | None:
        filters = filters or CardFilters()
        candidates = [
            card for card in self._cards.values()
            if card.deck.value == deck_name and filters.matches(card)
        ]
        if not candidates:
            return None
        weights = [RARITY_WEIGHTS[card.rarity] for card in candidates]
        return self.rng.choices(candidates, weights=weights, k=1)[0]

    def get_cards_by_category(self, category: str) -> list[Card]:
        return [card for card in self._cards.values() if card.category == category]


def load_catalog(path: str | Path, rng: random.Random | None = None) -> InMemoryCardCatalog:
    """
    Load a catalog from a JSON file.

    Accepts either a list of records, each carrying its `deck`, or an
    object keyed by deck name: {"sin": [...], "virtue": [...]}.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        catalog = InMemoryCardCatalog.from_records(data, rng=rng)
    elif isinstance(data, dict):
        cards = []
        for deck_name, records in data.items():
            deck = Deck(deck_name)
            cards.extend(Card.from_record(r, default_deck=deck) for r in records)
        catalog = InMemoryCardCatalog(cards, rng=rng)
    else:
        raise ValueError(f"Unsupported card file layout in {path}")

    logger.info("Loaded %d cards from %s", len(catalog), path)
    return catalog
