"""
Pytest fixtures for Reality Check tests.
"""

import random
import threading

import pytest

from ..cards.catalog import InMemoryCardCatalog
from ..cards.deck import STARTER_DECK
from ..cards.models import Card, CardChoice, ChoiceConditions, ChoiceTriggers, Deck
from ..engine.effect_resolver import EffectResolver
from ..engine.scheduler import RingEventScheduler
from ..engine.state_machine import TurnStateMachine
from ..engine.stats import PlayerStats
from ..engine.timers import ManualTimerScheduler
from ..session.orchestrator import GameOrchestrator
from ..session.player import Player


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(1234)


@pytest.fixture
def timers() -> ManualTimerScheduler:
    """Virtual clock; nothing fires until advanced."""
    return ManualTimerScheduler()


@pytest.fixture
def machine(timers: ManualTimerScheduler) -> TurnStateMachine:
    """State machine in Idle on the virtual clock."""
    return TurnStateMachine(timers=timers, lock=threading.RLock())


@pytest.fixture
def scheduler(rng: random.Random) -> RingEventScheduler:
    """Ring scheduler without the seed events."""
    return RingEventScheduler(rng=rng, seed_initial_events=False)


@pytest.fixture
def resolver(rng: random.Random) -> EffectResolver:
    return EffectResolver(rng=rng)


@pytest.fixture
def catalog(rng: random.Random) -> InMemoryCardCatalog:
    """The built-in starter deck."""
    return InMemoryCardCatalog(STARTER_DECK, rng=rng)


@pytest.fixture
def single_choice_card() -> Card:
    return Card(
        card_id="parking_ticket",
        name="Parking Ticket",
        deck=Deck.SIN,
        category="career",
        choices=(CardChoice(text="Pay it", effects={"money": -100}),),
    )


@pytest.fixture
def two_choice_card() -> Card:
    return Card(
        card_id="side_hustle",
        name="Side Hustle",
        deck=Deck.SIN,
        category="career",
        choices=(
            CardChoice(
                text="Take the gig",
                effects={"money": 1000, "sin": 1},
                triggers=ChoiceTriggers(add_tags=("hustler",)),
            ),
            CardChoice(
                text="Invest in it",
                effects={"money": -4000, "virtue": 1},
                conditions=ChoiceConditions(requires_money=5000),
            ),
        ),
    )


def make_player(player_id: str, **stats) -> Player:
    return Player(player_id=player_id, username=player_id, stats=PlayerStats(**stats))


@pytest.fixture
def players() -> list[Player]:
    return [make_player("alice"), make_player("bob"), make_player("carol")]


@pytest.fixture
def decision_catalog(rng: random.Random, two_choice_card: Card) -> InMemoryCardCatalog:
    """Every draw is a card that needs a decision."""
    return InMemoryCardCatalog([two_choice_card], rng=rng)


@pytest.fixture
def auto_catalog(rng: random.Random, single_choice_card: Card) -> InMemoryCardCatalog:
    """Every draw is a card that resolves on its own."""
    return InMemoryCardCatalog([single_choice_card], rng=rng)


@pytest.fixture
def orchestrator(players, auto_catalog, rng, timers) -> GameOrchestrator:
    """Three-player game with single-choice cards only, not yet started."""
    return GameOrchestrator(
        game_id="test_game",
        catalog=auto_catalog,
        players=players,
        rng=rng,
        timers=timers,
        seed_initial_events=False,
    )


@pytest.fixture
def decision_orchestrator(players, decision_catalog, rng, timers) -> GameOrchestrator:
    """Three-player game whose every card opens a decision, not yet started."""
    return GameOrchestrator(
        game_id="test_game",
        catalog=decision_catalog,
        players=players,
        rng=rng,
        timers=timers,
        seed_initial_events=False,
    )
