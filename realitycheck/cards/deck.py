"""
Starter Deck - Built-in sin and virtue cards.

Enough cards for every ring category in both decks, so a game can run
without a card file. Load a JSON file through CARD_DATA_PATH to replace
this deck.

Card structure:
- Deck (sin or virtue)
- Category (a ring name)
- One choice: applied as soon as the card is drawn
- Several choices: the player decides during the Decision phase
"""

from __future__ import annotations
import random

from .. import config
from .catalog import InMemoryCardCatalog, load_catalog
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


# ============================================================================
# Sin deck
# ============================================================================

EASY_MONEY = Card(
    card_id="easy_money",
    name="Easy Money",
    deck=Deck.SIN,
    category="career",
    description="Accept a suspicious cash job.",
    choices=(
        CardChoice(text="Take the cash", effects={"money": 2000, "sin": 2}),
    ),
)

EXPENSE_REPORT = Card(
    card_id="expense_report",
    name="Creative Expense Report",
    deck=Deck.SIN,
    category="career",
    description="Your manager never reads the receipts anyway.",
    choices=(
        CardChoice(
            text="Pad the report",
            effects={"money": 800, "sin": 1},
            triggers=ChoiceTriggers(add_tags=("expense_fraud",)),
        ),
        CardChoice(text="File it honestly", effects={"virtue": 1}),
    ),
)

ENERGY_DRINKS = Card(
    card_id="energy_drinks",
    name="Energy Drink Binge",
    deck=Deck.SIN,
    category="health",
    description="Four cans before noon. What could go wrong?",
    choices=(
        CardChoice(text="Crack another one", effects={"money": -20, "mental": -1, "sin": 1}),
    ),
)

GOSSIP = Card(
    card_id="gossip",
    name="Juicy Gossip",
    deck=Deck.SIN,
    category="social",
    description="You heard something you probably should not repeat.",
    choices=(
        CardChoice(text="Spread it", effects={"mental": 1, "sin": 2}),
        CardChoice(text="Keep it to yourself", effects={"mental": -1, "virtue": 1}),
    ),
)

CASINO_NIGHT = Card(
    card_id="casino_night",
    name="Casino Night",
    deck=Deck.SIN,
    category="personal",
    description="The table is hot and you feel lucky.",
    rarity=Rarity.UNCOMMON,
    choices=(
        CardChoice(
            text="Bet big",
            effects={"sin": 1},
            conditions=ChoiceConditions(requires_money=1000),
            triggers=ChoiceTriggers(
                dice=DiceTrigger(branches=(
                    DiceBranch(low=1, high=2, effects={"money": -1000, "mental": -2}),
                    DiceBranch(low=3, high=4, effects={"money": 0}),
                    DiceBranch(low=5, high=6, effects={"money": 2000, "mental": 2}),
                )),
            ),
        ),
        CardChoice(text="Walk away", effects={"mental": -1}),
    ),
)

CRYPTO_TIP = Card(
    card_id="crypto_tip",
    name="Hot Crypto Tip",
    deck=Deck.SIN,
    category="babel",
    description="A stranger online swears this coin is going to the moon.",
    rarity=Rarity.RARE,
    min_round=3,
    choices=(
        CardChoice(
            text="Buy in",
            conditions=ChoiceConditions(requires_money=5000),
            triggers=ChoiceTriggers(
                add_tags=("crypto_bro",),
                dice=DiceTrigger(branches=(
                    DiceBranch(low=1, high=3, effects={"money": -5000, "mental": -3}),
                    DiceBranch(low=4, high=5, effects={"money": 1000}),
                    DiceBranch(low=6, high=6, effects={"money": 10000, "sin": 1}),
                )),
            ),
        ),
        CardChoice(text="Scroll past", effects={}),
    ),
)


# ============================================================================
# Virtue deck
# ============================================================================

HELP_A_NEIGHBOR = Card(
    card_id="help_a_neighbor",
    name="Help a Neighbor",
    deck=Deck.VIRTUE,
    category="social",
    description="Spend your weekend helping someone move.",
    choices=(
        CardChoice(text="Grab a box", effects={"money": -100, "virtue": 2}),
    ),
)

MENTOR_INTERN = Card(
    card_id="mentor_intern",
    name="Mentor the Intern",
    deck=Deck.VIRTUE,
    category="career",
    description="The new intern looks completely lost.",
    choices=(
        CardChoice(
            text="Take them under your wing",
            effects={"mental": -1, "virtue": 2},
            triggers=ChoiceTriggers(add_tags=("mentor",)),
        ),
        CardChoice(text="Point them to the wiki", effects={"sin": 1}),
    ),
)

MORNING_RUN = Card(
    card_id="morning_run",
    name="Morning Run",
    deck=Deck.VIRTUE,
    category="health",
    description="You actually got up when the alarm rang.",
    choices=(
        CardChoice(text="Lace up", effects={"mental": 2, "virtue": 1}),
    ),
)

CHARITY_GALA = Card(
    card_id="charity_gala",
    name="Charity Gala",
    deck=Deck.VIRTUE,
    category="social",
    description="Black tie, silent auction, very public generosity.",
    rarity=Rarity.UNCOMMON,
    choices=(
        CardChoice(
            text="Make a big donation",
            effects={"money": -3000, "virtue": 3, "mental": 1},
            conditions=ChoiceConditions(requires_money=3000),
            triggers=ChoiceTriggers(add_tags=("philanthropist",)),
        ),
        CardChoice(text="Just go for the canapes", effects={"money": -100, "mental": 1}),
    ),
)

THERAPY = Card(
    card_id="therapy",
    name="Therapy Session",
    deck=Deck.VIRTUE,
    category="personal",
    description="Talking about it helps. So does the invoice, apparently.",
    choices=(
        CardChoice(text="Book the session", effects={"money": -200, "mental": 3}),
    ),
)

FACT_CHECK = Card(
    card_id="fact_check",
    name="Fact Check",
    deck=Deck.VIRTUE,
    category="babel",
    description="Your uncle shared a very questionable article.",
    choices=(
        CardChoice(text="Post the correction", effects={"mental": -1, "virtue": 2}),
        CardChoice(text="Mute the thread", effects={"mental": 1}),
    ),
)

VOLUNTEER_ROULETTE = Card(
    card_id="volunteer_roulette",
    name="Volunteer Shift",
    deck=Deck.VIRTUE,
    category="personal",
    description="The shelter needs hands. You never know what job you get.",
    card_type=CardType.DELAYED,
    rarity=Rarity.UNCOMMON,
    choices=(
        CardChoice(
            text="Sign up",
            triggers=ChoiceTriggers(
                add_tags=("volunteer",),
                dice=DiceTrigger(branches=(
                    DiceBranch(low=1, high=2, effects={"mental": -1, "virtue": 1}),
                    DiceBranch(low=3, high=4, effects={"virtue": 2}),
                    DiceBranch(low=5, high=6, effects={"mental": 2, "virtue": 3}),
                )),
            ),
        ),
        CardChoice(text="Maybe next week", effects={"sin": 1}),
    ),
)


STARTER_DECK: tuple[Card, ...] = (
    EASY_MONEY,
    EXPENSE_REPORT,
    ENERGY_DRINKS,
    GOSSIP,
    CASINO_NIGHT,
    CRYPTO_TIP,
    HELP_A_NEIGHBOR,
    MENTOR_INTERN,
    MORNING_RUN,
    CHARITY_GALA,
    THERAPY,
    FACT_CHECK,
    VOLUNTEER_ROULETTE,
)


def create_default_catalog(rng: random.Random | None = None) -> InMemoryCardCatalog:
    """Catalog from CARD_DATA_PATH if set, otherwise the starter deck."""
    if config.CARD_DATA_PATH:
        return load_catalog(config.CARD_DATA_PATH, rng=rng)
    return InMemoryCardCatalog(STARTER_DECK, rng=rng)
