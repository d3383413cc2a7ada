"""
Tests for card models, parsing and the catalog.
"""

import json
import random
from collections import Counter

import pytest

from ..cards.catalog import CardFilters, InMemoryCardCatalog, load_catalog
from ..cards.deck import STARTER_DECK, create_default_catalog
from ..cards.models import Card, CardType, Deck, DiceBranch, DiceTrigger, Rarity
from ..engine.event_templates import Ring

RECORD = {
    "id": "late_night",
    "name": "Late Night",
    "type": "delayed",
    "category": "health",
    "rarity": "uncommon",
    "minRound": 2,
    "choices": [
        {"text": "Sleep", "effects": {"mental": 1}},
        {
            "text": "Party",
            "effects": {"money": -300},
            "conditions": {"requires_money": 300},
            "triggers": {
                "add_tags": ["night_owl"],
                "dice": [
                    {"range": [1, 3], "effects": {"mental": -2}},
                    {"range": [4, 6], "effects": {"mental": 2}},
                ],
            },
        },
    ],
}


class TestCardParsing:
    """Tests for Card.from_record."""

    def test_full_record(self):
        card = Card.from_record(RECORD, default_deck=Deck.SIN)

        assert card.card_id == "late_night"
        assert card.deck == Deck.SIN
        assert card.card_type == CardType.DELAYED
        assert card.rarity == Rarity.UNCOMMON
        assert card.min_round == 2
        assert card.requires_choice

        party = card.choices[1]
        assert party.conditions.requires_money == 300
        assert party.triggers.add_tags == ("night_owl",)
        assert party.triggers.dice.branch_for(2).effects == {"mental": -2}

    def test_record_deck_wins(self):
        card = Card.from_record({**RECORD, "deck": "virtue"}, default_deck=Deck.SIN)
        assert card.deck == Deck.VIRTUE

    def test_missing_deck(self):
        with pytest.raises(ValueError):
            Card.from_record(RECORD)

    def test_missing_choices(self):
        with pytest.raises(ValueError):
            Card.from_record({"id": "empty", "deck": "sin", "choices": []})

    def test_unknown_stat(self):
        record = {"id": "bad", "deck": "sin", "choices": [{"text": "x", "effects": {"luck": 1}}]}
        with pytest.raises(ValueError):
            Card.from_record(record)

    def test_to_dict_matches_storage_format(self):
        card = Card.from_record(RECORD, default_deck=Deck.SIN)
        data = card.to_dict()

        assert data["id"] == "late_night"
        assert data["min_round"] == 2
        assert data["choices"][0] == {"text": "Sleep", "effects": {"mental": 1}}
        assert data["choices"][1]["triggers"]["dice"][1] == {"range": [4, 6], "effects": {"mental": 2}}


class TestDiceTrigger:
    """Branches must cover the die exactly once."""

    def test_gap_rejected(self):
        with pytest.raises(ValueError):
            DiceTrigger(branches=(DiceBranch(1, 2), DiceBranch(4, 6)))

    def test_overlap_rejected(self):
        with pytest.raises(ValueError):
            DiceTrigger(branches=(DiceBranch(1, 4), DiceBranch(4, 6)))

    def test_starter_deck_dice_are_valid(self):
        dice_cards = [
            card for card in STARTER_DECK
            if any(choice.triggers.dice for choice in card.choices)
        ]
        assert dice_cards


class TestCatalog:
    """Tests for InMemoryCardCatalog."""

    def test_duplicate_ids_rejected(self, single_choice_card):
        with pytest.raises(ValueError):
            InMemoryCardCatalog([single_choice_card, single_choice_card])

    def test_random_card_respects_deck_and_filters(self, catalog):
        for _ in range(50):
            card = catalog.get_random_card("virtue", CardFilters(category="health"))
            assert card.deck == Deck.VIRTUE
            assert card.category == "health"

    def test_min_round_excludes_later_cards(self, catalog):
        drawn = {
            catalog.get_random_card("sin", CardFilters(category="babel", min_round=1))
            for _ in range(50)
        }
        assert catalog.get_card("crypto_tip") not in drawn

    def test_no_match_returns_none(self, catalog):
        assert catalog.get_random_card("sin", CardFilters(category="nowhere")) is None

    def test_rarity_weights(self):
        cards = [
            Card("common", "C", Deck.SIN, (), rarity=Rarity.COMMON),
            Card("rare", "R", Deck.SIN, (), rarity=Rarity.RARE),
        ]
        catalog = InMemoryCardCatalog(cards, rng=random.Random(5))

        counts = Counter(catalog.get_random_card("sin").card_id for _ in range(2000))

        assert counts["common"] > counts["rare"] * 2

    def test_cards_by_category(self, catalog):
        career = catalog.get_cards_by_category("career")
        assert career
        assert all(card.category == "career" for card in career)

    def test_every_ring_has_cards_in_both_decks(self, catalog):
        for ring in Ring:
            decks = {card.deck for card in catalog.get_cards_by_category(ring.value)}
            assert decks == {Deck.SIN, Deck.VIRTUE}, ring


class TestLoadCatalog:
    """Tests for loading card files."""

    def test_keyed_by_deck(self, tmp_path):
        path = tmp_path / "cards.json"
        path.write_text(json.dumps({"sin": [RECORD]}))

        catalog = load_catalog(path)

        assert len(catalog) == 1
        assert catalog.get_card("late_night").deck == Deck.SIN

    def test_flat_list(self, tmp_path):
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([{**RECORD, "deck": "virtue"}]))

        assert load_catalog(path).get_card("late_night").deck == Deck.VIRTUE

    def test_default_catalog_uses_card_file(self, tmp_path, monkeypatch):
        from .. import config

        path = tmp_path / "cards.json"
        path.write_text(json.dumps([{**RECORD, "deck": "virtue"}]))
        monkeypatch.setattr(config, "CARD_DATA_PATH", str(path))

        assert [c.card_id for c in create_default_catalog().cards] == ["late_night"]

    def test_default_catalog_is_starter_deck(self, monkeypatch):
        from .. import config

        monkeypatch.setattr(config, "CARD_DATA_PATH", None)
        assert len(create_default_catalog()) == len(STARTER_DECK)
