"""
Cards - Card model, catalog interface and the starter deck.

The engine only depends on the CardCatalog interface. Card data
normally comes from JSON records produced by the card tooling.
"""

from .models import (
    Card,
    CardChoice,
    CardType,
    ChoiceConditions,
    ChoiceTriggers,
    Deck,
    DiceBranch,
    DiceTrigger,
    Rarity,
)
from .catalog import CardCatalog, CardFilters, InMemoryCardCatalog, load_catalog
from .deck import STARTER_DECK, create_default_catalog

__all__ = [
    "Card",
    "CardChoice",
    "CardType",
    "ChoiceConditions",
    "ChoiceTriggers",
    "Deck",
    "DiceBranch",
    "DiceTrigger",
    "Rarity",
    "CardCatalog",
    "CardFilters",
    "InMemoryCardCatalog",
    "load_catalog",
    "STARTER_DECK",
    "create_default_catalog",
]
