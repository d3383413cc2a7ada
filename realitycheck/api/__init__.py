"""
API Module - Transport for game clients.

Exposes the engine via REST and WebSocket:
1. Create and join games
2. Start a game
3. Send roll and card-choice actions
4. Receive turn results and card resolutions in real time

All state is session-scoped and in memory.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinGameRequest,
    RollRequest,
    CardChoiceRequest,
    # Responses
    GameResponse,
    TurnResultResponse,
    CardResolvedResponse,
    EventsResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CardInfo,
    RingEventInfo,
)
from .service import GameService
from .app import create_app

__all__ = [
    "CreateGameRequest",
    "JoinGameRequest",
    "RollRequest",
    "CardChoiceRequest",
    "GameResponse",
    "TurnResultResponse",
    "CardResolvedResponse",
    "EventsResponse",
    "ErrorResponse",
    "PlayerInfo",
    "CardInfo",
    "RingEventInfo",
    "GameService",
    "create_app",
]
