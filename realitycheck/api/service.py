"""
API Service - Business logic layer between the transport and the engine.

The service:
1. Translates API requests to session and orchestrator calls
2. Converts engine objects to response schemas
3. Forwards outbound game messages to registered listeners

Lobby errors (unknown game, full game, ...) propagate as exceptions from
realitycheck.exceptions. Gameplay rejections come back as ErrorResponse.

This layer is framework-agnostic.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable

from ..cards.models import Card, CardChoice
from ..engine.scheduler import RingClock, RingEvent
from ..exceptions import PlayerNotFound
from ..session import GameSession, Player, SessionManager
from ..session.orchestrator import ActionOutcome
from .schemas import (
    CardChoiceRequest,
    CardInfo,
    CardResolvedResponse,
    ChoiceInfo,
    ClockInfo,
    CreateGameRequest,
    ErrorCode,
    ErrorResponse,
    EventsResponse,
    GameListResponse,
    GameResponse,
    GameStatus,
    JoinGameRequest,
    PlayerInfo,
    RingEventInfo,
    RollRequest,
    StatsInfo,
    TurnResultResponse,
)

GameListener = Callable[[str, str, dict[str, Any]], None]


@dataclass
class GameService:
    """
    Main API service.

    Usage:
        service = GameService()
        game = service.create_game(CreateGameRequest(name="Friday"))
        alice = service.join_game(game.game_id, JoinGameRequest(username="alice"))
        service.start_game(game.game_id)
        result = service.roll(game.game_id, RollRequest(player_id=alice.player_id, roll_result=3))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Receives (game_id, message_type, payload) for every game
    _listeners: list[GameListener] = field(default_factory=list)

    def add_listener(self, listener: GameListener) -> None:
        self._listeners.append(listener)

    def _forward(self, game_id: str) -> Callable[[str, dict[str, Any]], None]:
        def _send(message_type: str, payload: dict[str, Any]) -> None:
            for listener in self._listeners:
                listener(game_id, message_type, payload)
        return _send

    # =========================================================================
    # Lobby
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> GameResponse:
        session = self.session_manager.create_session(
            name=request.name,
            max_players=request.max_players,
            seed=request.seed,
        )
        session.orchestrator.subscribe(self._forward(session.game_id))
        return game_to_response(session)

    def list_games(self) -> GameListResponse:
        games = self.session_manager.list_active_sessions()
        return GameListResponse(games=games, count=len(games))

    def get_game(self, game_id: str) -> GameResponse:
        return game_to_response(self.session_manager.require_session(game_id))

    def join_game(self, game_id: str, request: JoinGameRequest) -> PlayerInfo:
        player = self.session_manager.join(game_id, request.username)
        return player_to_info(player)

    def get_player(self, game_id: str, player_id: str) -> PlayerInfo:
        session = self.session_manager.require_session(game_id)
        player = session.orchestrator.get_player(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        return player_to_info(player, is_current=_is_current(session, player))

    def start_game(self, game_id: str) -> GameResponse:
        return game_to_response(self.session_manager.start_game(game_id))

    def end_game(self, game_id: str, reason: str = "completed") -> bool:
        return self.session_manager.end_session(game_id, reason)

    # =========================================================================
    # Turn actions
    # =========================================================================

    def roll(self, game_id: str, request: RollRequest) -> TurnResultResponse | ErrorResponse:
        session = self.session_manager.require_session(game_id)
        outcome = session.orchestrator.handle_roll(request.player_id, request.roll_result)
        if not outcome.success:
            return outcome_to_error(outcome)

        result = outcome.turn_result
        return TurnResultResponse(
            game_id=game_id,
            player_id=result.player_id,
            roll_result=result.roll_result,
            triggered_rings=[ring.value for ring in result.triggered_rings],
            cards=[card_to_info(card) for card in result.cards],
            next_player=result.next_player,
            events=[event_to_info(event) for event in result.events],
            awaiting_decision=result.awaiting_decision,
            forced=result.forced,
            round_number=result.round_number,
        )

    def choose(self, game_id: str, request: CardChoiceRequest) -> CardResolvedResponse | ErrorResponse:
        session = self.session_manager.require_session(game_id)
        outcome = session.orchestrator.handle_card_choice(
            request.player_id, request.card_id, request.choice_index,
        )
        if not outcome.success:
            return outcome_to_error(outcome)

        resolved = outcome.card_resolved
        return CardResolvedResponse(
            game_id=game_id,
            player_id=resolved.player_id,
            card_id=resolved.card_id,
            choice=choice_to_info(resolved.choice),
            new_stats=StatsInfo.model_validate(resolved.new_stats),
            tags=resolved.tags,
            dice_roll=resolved.dice_roll,
        )

    def get_events(self, game_id: str, lookahead: int = 5) -> EventsResponse:
        session = self.session_manager.require_session(game_id)
        scheduler = session.orchestrator.scheduler
        with session.lock:
            return EventsResponse(
                game_id=game_id,
                current_turn=scheduler.current_turn,
                active=[event_to_info(e) for e in scheduler.get_active_events()],
                upcoming=[event_to_info(e) for e in scheduler.get_upcoming_events(lookahead)],
                history=[event_to_info(e) for e in scheduler.get_event_history()],
                clocks=[clock_to_info(c) for c in scheduler.get_clock_status()],
            )


# =============================================================================
# Conversion helpers
# =============================================================================

def _is_current(session: GameSession, player: Player) -> bool:
    orchestrator = session.orchestrator
    return (
        orchestrator.started
        and bool(orchestrator.players)
        and orchestrator.current_player.player_id == player.player_id
    )


def game_to_response(session: GameSession) -> GameResponse:
    orchestrator = session.orchestrator
    with session.lock:
        pending = orchestrator.pending_decision
        current_id = orchestrator.current_player.player_id if orchestrator.started else None
        return GameResponse(
            game_id=session.game_id,
            name=session.name,
            status=GameStatus(session.status.value),
            phase=orchestrator.phase.value,
            players=[
                player_to_info(p, is_current=p.player_id == current_id)
                for p in orchestrator.players
            ],
            current_player_index=orchestrator.current_player_idx,
            current_player_id=current_id,
            round_number=orchestrator.round_number,
            turn=orchestrator.scheduler.current_turn,
            pending_cards=[card_to_info(c) for c in pending.cards] if pending else [],
            max_players=session.max_players,
            created_at=session.created_at,
        )


def player_to_info(player: Player, is_current: bool = False) -> PlayerInfo:
    return PlayerInfo(
        player_id=player.player_id,
        username=player.username,
        stats=StatsInfo.model_validate(player.stats),
        tags=list(player.tags),
        position=player.position,
        character=player.character,
        is_alive=player.is_alive,
        is_current_turn=is_current,
    )


def choice_to_info(choice: CardChoice) -> ChoiceInfo:
    data = choice.to_dict()
    return ChoiceInfo(
        text=data["text"],
        effects=data["effects"],
        conditions=data.get("conditions"),
        triggers=data.get("triggers"),
    )


def card_to_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.card_id,
        name=card.name,
        deck=card.deck.value,
        type=card.card_type.value,
        category=card.category,
        description=card.description,
        rarity=card.rarity.value,
        choices=[choice_to_info(c) for c in card.choices],
    )


def event_to_info(event: RingEvent) -> RingEventInfo:
    return RingEventInfo(
        event_id=event.event_id,
        ring=event.ring.value,
        kind=event.kind.value,
        title=event.title,
        description=event.description,
        effects=dict(event.effects),
        trigger_turn=event.trigger_turn,
    )


def clock_to_info(clock: RingClock) -> ClockInfo:
    return ClockInfo(
        ring=clock.ring.value,
        interval=clock.interval,
        last_trigger=clock.last_trigger,
        next_trigger=clock.next_trigger,
    )


def outcome_to_error(outcome: ActionOutcome) -> ErrorResponse:
    return ErrorResponse(
        error=outcome.error or "Action rejected",
        error_code=ErrorCode(outcome.error_code or ErrorCode.INTERNAL_ERROR.value),
    )
