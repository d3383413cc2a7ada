"""
Game Orchestrator - Drives one game's turns.

Per game it owns:
- One TurnStateMachine (phase of the current turn)
- One RingEventScheduler (ring clocks, event queue)
- The roster and the index of whose turn it is

Turn flow:
1. Turn starts: Idle -> Roll (5s to roll)
2. Roll action: advance the ring clocks, apply fired events, draw up to
   3 cards (one per triggered ring), Roll -> Tile -> Card
3. Cards with several choices open a decision: Card -> Decision (30s)
   Otherwise: Card -> EndTurn
4. Card-choice action: resolve it, Decision -> EndTurn
5. EndTurn -> Idle, next player, next turn starts

If the roll times out the orchestrator rolls for the player. If the
decision times out the turn ends with no card played.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable
import logging
import random
import threading

from .. import config
from ..cards.catalog import CardCatalog, CardFilters
from ..cards.models import Card, CardChoice, Deck
from ..engine.effect_resolver import EffectResolver, ResolutionResult
from ..engine.event_templates import EventKind, Ring
from ..engine.scheduler import RingEvent, RingEventScheduler
from ..engine.state_machine import TransitionResult, TurnPhase, TurnStateMachine
from ..engine.stats import PlayerStats, describe_delta
from ..engine.timers import TimerScheduler
from ..exceptions import NotEnoughPlayers
from .player import Player

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]


@dataclass
class PendingDecision:
    """Cards waiting for the active player to pick one."""
    player_id: str
    cards: list[Card] = field(default_factory=list)

    def find(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.card_id == card_id:
                return card
        return None


@dataclass
class TurnResult:
    """Outcome of a roll, sent to every client as `turn_result`."""
    player_id: str
    roll_result: int
    triggered_rings: list[Ring]
    cards: list[Card]
    next_player: int

    events: list[RingEvent] = field(default_factory=list)
    auto_resolved: list[ResolutionResult] = field(default_factory=list)
    awaiting_decision: bool = False
    forced: bool = False
    round_number: int = 1

    def to_payload(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "roll_result": self.roll_result,
            "triggered_rings": [ring.value for ring in self.triggered_rings],
            "cards": [card.to_dict() for card in self.cards],
            "next_player": self.next_player,
            "events": [event.to_dict() for event in self.events],
            "awaiting_decision": self.awaiting_decision,
            "forced": self.forced,
            "round": self.round_number,
        }


@dataclass
class CardResolved:
    """Outcome of a card choice, sent to every client as `card_resolved`."""
    player_id: str
    card_id: str
    choice: CardChoice
    new_stats: PlayerStats
    tags: list[str]
    dice_roll: int | None = None
    applied_effects: dict[str, int] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "card_id": self.card_id,
            "choice": self.choice.to_dict(),
            "new_stats": self.new_stats.to_dict(),
            "tags": list(self.tags),
            "dice_roll": self.dice_roll,
            "applied_effects": dict(self.applied_effects),
        }


@dataclass
class ActionOutcome:
    """
    Result of an inbound player action.

    Failures leave the game untouched and carry an error code:
    INVALID_PHASE, NOT_YOUR_TURN, INVALID_ROLL, UNKNOWN_CARD,
    INVALID_CHOICE, PRECONDITION_FAILED.
    """
    success: bool
    turn_result: TurnResult | None = None
    card_resolved: CardResolved | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def failure(cls, error: str, error_code: str) -> ActionOutcome:
        return cls(success=False, error=error, error_code=error_code)


class GameOrchestrator:
    """
    Composition of state machine, scheduler, resolver and card catalog
    for one game.

    All public methods take the game's lock; timer callbacks take the
    same lock, so one game handles one thing at a time.
    """

    def __init__(
        self,
        game_id: str,
        catalog: CardCatalog,
        players: list[Player] | None = None,
        rng: random.Random | None = None,
        timers: TimerScheduler | None = None,
        lock: threading.RLock | None = None,
        cards_per_turn: int = config.CARDS_PER_TURN,
        seed_initial_events: bool = True,
    ):
        self.game_id = game_id
        self.catalog = catalog
        self.players: list[Player] = list(players or [])
        self.rng = rng or random.Random()
        self.lock = lock or threading.RLock()
        self.cards_per_turn = cards_per_turn

        self.machine = TurnStateMachine(timers=timers, lock=self.lock)
        self.scheduler = RingEventScheduler(rng=self.rng, seed_initial_events=seed_initial_events)
        self.resolver = EffectResolver(rng=self.rng)

        self.current_player_idx = 0
        self.round_number = 1
        self.turns_played = 0
        self.started = False

        self._listeners: list[Listener] = []

        self.machine.on_timeout(TurnPhase.ROLL, self._on_roll_timeout)
        self.machine.on_timeout(TurnPhase.DECISION, self._on_decision_timeout)

    # =========================================================================
    # Roster & listeners
    # =========================================================================

    def add_player(self, player: Player) -> None:
        with self.lock:
            self.players.append(player)

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_idx]

    @property
    def phase(self) -> TurnPhase:
        return self.machine.phase

    @property
    def pending_decision(self) -> PendingDecision | None:
        return self.machine.get_context().pending_decision

    def subscribe(self, listener: Listener) -> None:
        """Receive every outbound message as (message_type, payload)."""
        self._listeners.append(listener)

    def _publish(self, message_type: str, payload: dict[str, Any]) -> None:
        for listener in self._listeners:
            try:
                listener(message_type, payload)
            except Exception:
                logger.exception("Listener failed for %s in game %s", message_type, self.game_id)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the first turn for the first player in the roster."""
        with self.lock:
            if not self.players:
                raise NotEnoughPlayers("Need at least one player to start")
            self.current_player_idx = 0
            self.round_number = 1
            self.started = True
            self._begin_turn()

    def stop(self) -> None:
        """Cancel pending timers and return the machine to Idle."""
        with self.lock:
            self.machine.reset()
            self.started = False

    def _begin_turn(self) -> None:
        player = self.current_player
        self.machine.update_context(
            current_player=player.player_id,
            turn_number=self.turns_played + 1,
            last_tile_result=None,
            last_card=None,
            pending_decision=None,
        )
        self.machine.transition(TurnPhase.ROLL)
        self._publish("turn_started", {
            "player_id": player.player_id,
            "player_index": self.current_player_idx,
            "round": self.round_number,
            "turn": self.turns_played + 1,
        })

    def _finish_turn(self) -> None:
        """EndTurn -> Idle, rotate the active player, start the next turn."""
        result = self.machine.transition(TurnPhase.IDLE)
        if not result:
            return
        self.turns_played += 1
        self.current_player_idx = self._next_index()
        if self.current_player_idx == 0:
            self.round_number += 1
            logger.info("Game %s entering round %d", self.game_id, self.round_number)
        if self.started:
            self._begin_turn()

    def _next_index(self) -> int:
        return (self.current_player_idx + 1) % len(self.players)

    # =========================================================================
    # Inbound actions
    # =========================================================================

    def handle_roll(self, player_id: str, roll_result: int) -> ActionOutcome:
        """Roll action from the active player."""
        with self.lock:
            error = self._check_actor(player_id, TurnPhase.ROLL)
            if error:
                return error
            if not 1 <= roll_result <= 6:
                return ActionOutcome.failure(
                    f"Roll must be between 1 and 6, got {roll_result}",
                    "INVALID_ROLL",
                )
            return ActionOutcome(success=True, turn_result=self._play_roll(roll_result))

    def handle_card_choice(self, player_id: str, card_id: str, choice_index: int) -> ActionOutcome:
        """Card-choice action from the active player during Decision."""
        with self.lock:
            error = self._check_actor(player_id, TurnPhase.DECISION)
            if error:
                return error

            pending = self.pending_decision
            card = pending.find(card_id) if pending else None
            if card is None:
                return ActionOutcome.failure(
                    f"Card {card_id} is not awaiting a decision",
                    "UNKNOWN_CARD",
                )

            player = self.current_player
            result = self.resolver.resolve_choice(player.stats, player.tags, card, choice_index)
            if not result.success:
                return ActionOutcome.failure(result.error, result.error_code)

            player.stats = result.stats
            player.tags = result.tags
            self.machine.update_context(pending_decision=None, last_card=card.card_id)
            self.machine.transition(TurnPhase.END_TURN)

            resolved = CardResolved(
                player_id=player.player_id,
                card_id=card.card_id,
                choice=card.choices[choice_index],
                new_stats=player.stats.copy(),
                tags=list(player.tags),
                dice_roll=result.dice_roll,
                applied_effects=result.applied_effects,
            )
            self._publish("card_resolved", resolved.to_payload())
            self._finish_turn()
            return ActionOutcome(success=True, card_resolved=resolved)

    def _check_actor(self, player_id: str, phase: TurnPhase) -> ActionOutcome | None:
        if self.machine.phase != phase:
            return ActionOutcome.failure(
                f"Expected phase {phase.value}, game is in {self.machine.phase.value}",
                "INVALID_PHASE",
            )
        if player_id != self.current_player.player_id:
            return ActionOutcome.failure(f"Not {player_id}'s turn", "NOT_YOUR_TURN")
        return None

    # =========================================================================
    # Turn body
    # =========================================================================

    def _play_roll(self, roll_result: int, forced: bool = False) -> TurnResult:
        player = self.current_player
        player.position += roll_result
        self.machine.update_context(
            last_tile_result={"roll": roll_result, "position": player.position},
        )

        self.scheduler.advance_turn()
        events = self.scheduler.process_events()
        rings = self.scheduler.triggered_rings(events)
        self._apply_events(events, player)
        cards = self._draw_cards(rings)

        # A roll timeout has already moved the machine to Tile
        if self.machine.phase == TurnPhase.ROLL:
            self.machine.transition(TurnPhase.TILE)
        self.machine.transition(TurnPhase.CARD)

        auto_resolved = []
        decision_cards = []
        for card in cards:
            if card.requires_choice:
                decision_cards.append(card)
                continue
            result = self.resolver.resolve_choice(player.stats, player.tags, card, 0)
            if result.success:
                player.stats = result.stats
                player.tags = result.tags
            else:
                logger.info("Card %s skipped for %s: %s", card.card_id, player.player_id, result.error)
            auto_resolved.append(result)

        if decision_cards:
            self.machine.update_context(
                pending_decision=PendingDecision(player.player_id, decision_cards),
                last_card=decision_cards[0].card_id,
            )
            self.machine.transition(TurnPhase.DECISION)
        else:
            self.machine.update_context(last_card=cards[-1].card_id if cards else None)
            self.machine.transition(TurnPhase.END_TURN)

        turn_result = TurnResult(
            player_id=player.player_id,
            roll_result=roll_result,
            triggered_rings=rings,
            cards=cards,
            next_player=self._next_index(),
            events=events,
            auto_resolved=auto_resolved,
            awaiting_decision=bool(decision_cards),
            forced=forced,
            round_number=self.round_number,
        )
        self._publish("turn_result", turn_result.to_payload())

        if not decision_cards:
            self._finish_turn()
        return turn_result

    def _apply_events(self, events: list[RingEvent], active: Player) -> None:
        """Global events hit every living player; tile events hit the active one."""
        for event in events:
            if event.kind == EventKind.GLOBAL:
                targets = [p for p in self.players if p.is_alive]
            else:
                targets = [active]
            logger.debug(
                "Event %s hits %d player(s) in game %s: %s",
                event.title, len(targets), self.game_id, describe_delta(event.effects),
            )
            for target in targets:
                target.stats = self.resolver.apply(target.stats, event.effects)

    def _draw_cards(self, rings: list[Ring]) -> list[Card]:
        """One draw per triggered ring, up to cards_per_turn; one random card if none fired."""
        cards: list[Card] = []
        if rings:
            for ring in rings[:self.cards_per_turn]:
                card = self._draw_any_deck(CardFilters(category=ring.value, min_round=self.round_number))
                if card is not None:
                    cards.append(card)
        else:
            card = self._draw_any_deck(CardFilters(min_round=self.round_number))
            if card is not None:
                cards.append(card)
        return cards

    def _draw_any_deck(self, filters: CardFilters) -> Card | None:
        decks = [Deck.SIN, Deck.VIRTUE]
        self.rng.shuffle(decks)
        for deck in decks:
            card = self.catalog.get_random_card(deck.value, filters)
            if card is not None:
                return card
        return None

    # =========================================================================
    # Timeouts
    # =========================================================================

    def _on_roll_timeout(self, result: TransitionResult) -> None:
        roll = self.resolver.roll_die()
        logger.info(
            "Roll timed out for %s in game %s, auto-rolled %d",
            self.current_player.player_id, self.game_id, roll,
        )
        self._play_roll(roll, forced=True)

    def _on_decision_timeout(self, result: TransitionResult) -> None:
        player = self.current_player
        logger.info("Decision timed out for %s in game %s", player.player_id, self.game_id)
        self._publish("decision_timeout", {"player_id": player.player_id})
        self._finish_turn()
