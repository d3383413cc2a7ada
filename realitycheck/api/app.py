"""
FastAPI Application - REST and WebSocket API for game clients.

Endpoints:
    POST   /api/v1/games                 Create a game
    GET    /api/v1/games                 List active games
    GET    /api/v1/games/{id}            Game status and roster
    DELETE /api/v1/games/{id}            End a game
    POST   /api/v1/games/{id}/players    Join a game
    POST   /api/v1/games/{id}/start      Start the first turn
    POST   /api/v1/games/{id}/roll       Roll action
    POST   /api/v1/games/{id}/choice     Card-choice action
    GET    /api/v1/games/{id}/events     Ring clocks and events
    WS     /api/v1/games/{id}/ws         Real-time updates and actions

Turn Flow:
    1. The active player has 5 seconds to roll, or the server rolls
    2. turn_result is broadcast with triggered rings and drawn cards
    3. If a card needs a decision, the player has 30 seconds to choose
    4. card_resolved is broadcast, the next player's turn starts

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
from contextlib import asynccontextmanager
import asyncio
import json
import logging

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .. import __version__, config
from ..exceptions import GameNotFound, PlayerNotFound, RealityCheckError
from .service import GameService
from .schemas import (
    CardChoiceRequest,
    CardResolvedResponse,
    CreateGameRequest,
    EndGameResponse,
    ErrorCode,
    ErrorResponse,
    EventsResponse,
    GameListResponse,
    GameResponse,
    HealthResponse,
    JoinGameRequest,
    PlayerInfo,
    RollRequest,
    TurnResultResponse,
)

logger = logging.getLogger(__name__)


def create_app(service: Optional[GameService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    config.configure_logging()
    api_service = service or GameService()

    # WebSocket connections per game
    ws_connections: dict[str, list[WebSocket]] = {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Timer callbacks run on worker threads; broadcasts hop back to this loop
        app.state.loop = asyncio.get_running_loop()
        yield
        for game_id in list(api_service.session_manager.list_active_sessions()):
            api_service.end_game(game_id, reason="shutdown")

    app = FastAPI(
        title="Reality Check Engine API",
        description="""
Turn and ring-event engine for the Reality Check board game.

## Error Codes

| Code | Description |
|------|-------------|
| `GAME_NOT_FOUND` | Game does not exist or has ended |
| `GAME_FULL` | No seats left |
| `GAME_ALREADY_STARTED` | Lobby is closed |
| `INVALID_PHASE` | Action not accepted in the current phase |
| `NOT_YOUR_TURN` | Another player is active |
| `UNKNOWN_CARD` | Card is not awaiting a decision |
| `INVALID_CHOICE` | Choice index out of range |
| `PRECONDITION_FAILED` | Choice requirements not met |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.loop = None
    app.state.ws_connections = ws_connections

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RealityCheckError)
    async def handle_lobby_error(request, exc: RealityCheckError) -> JSONResponse:
        status_code = 404 if isinstance(exc, (GameNotFound, PlayerNotFound)) else 409
        return make_error_response(ErrorCode(exc.error_code), str(exc), status_code=status_code)

    async def broadcast_to_game(game_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a game."""
        if game_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[game_id]:
                try:
                    await ws.send_json(message)
                except Exception:
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[game_id].remove(ws)
            if not ws_connections[game_id]:
                del ws_connections[game_id]

    def forward_game_message(game_id: str, message_type: str, payload: dict) -> None:
        loop = app.state.loop
        if loop is None or not ws_connections.get(game_id):
            return
        message = {"type": message_type, "payload": payload}
        asyncio.run_coroutine_threadsafe(broadcast_to_game(game_id, message), loop)

    api_service.add_listener(forward_game_message)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameResponse,
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(body: CreateGameRequest) -> GameResponse:
        """Create a game that accepts players until it is started."""
        return api_service.create_game(body)

    @app.get(
        "/api/v1/games",
        response_model=GameListResponse,
        tags=["Games"],
        summary="List active games",
    )
    async def list_games() -> GameListResponse:
        return api_service.list_games()

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get game status",
    )
    async def get_game(game_id: str) -> GameResponse:
        return api_service.get_game(game_id)

    @app.delete(
        "/api/v1/games/{game_id}",
        response_model=EndGameResponse,
        tags=["Games"],
        summary="End a game",
    )
    async def end_game(
        game_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "completed",
    ) -> EndGameResponse:
        """End a game, cancel its timers and release it."""
        success = api_service.end_game(game_id, reason)
        return EndGameResponse(success=success, game_id=game_id)

    @app.post(
        "/api/v1/games/{game_id}/players",
        response_model=PlayerInfo,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Join a game",
    )
    async def join_game(game_id: str, body: JoinGameRequest) -> PlayerInfo:
        """Take a seat; a random character is dealt."""
        player = api_service.join_game(game_id, body)
        await broadcast_to_game(game_id, {
            "type": "player_joined",
            "payload": player.model_dump(mode="json"),
        })
        return player

    @app.post(
        "/api/v1/games/{game_id}/start",
        response_model=GameResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Start the game",
    )
    async def start_game(game_id: str) -> GameResponse:
        game = api_service.start_game(game_id)
        await broadcast_to_game(game_id, {
            "type": "game_started",
            "payload": game.model_dump(mode="json"),
        })
        return game

    # =========================================================================
    # Turn Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/roll",
        response_model=TurnResultResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Turns"],
        summary="Roll the die",
    )
    async def roll(game_id: str, body: RollRequest) -> Union[TurnResultResponse, JSONResponse]:
        """Roll action for the active player. Only accepted in the Roll phase."""
        result = api_service.roll(game_id, body)
        if isinstance(result, ErrorResponse):
            return make_error_response(result.error_code, result.error)
        return result

    @app.post(
        "/api/v1/games/{game_id}/choice",
        response_model=CardResolvedResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Turns"],
        summary="Choose a card option",
    )
    async def choose(game_id: str, body: CardChoiceRequest) -> Union[CardResolvedResponse, JSONResponse]:
        """Card-choice action for the active player. Only accepted in the Decision phase."""
        result = api_service.choose(game_id, body)
        if isinstance(result, ErrorResponse):
            return make_error_response(result.error_code, result.error)
        return result

    @app.get(
        "/api/v1/games/{game_id}/events",
        response_model=EventsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Turns"],
        summary="Ring clocks and events",
    )
    async def get_events(
        game_id: str,
        lookahead: Annotated[int, Query(ge=0, le=50)] = 5,
    ) -> EventsResponse:
        return api_service.get_events(game_id, lookahead)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time play.

        Messages from server:
        - state_update: Game state on connect
        - turn_started, turn_result, card_resolved, decision_timeout
        - player_joined, game_started
        - error: Action rejected

        Messages from client:
        - roll: {"type": "roll", "player_id": ..., "roll_result": 1-6}
        - card_choice: {"type": "card_choice", "player_id": ..., "card_id": ..., "choice_index": 0}
        - ping: Keep-alive
        """
        await websocket.accept()
        ws_connections.setdefault(game_id, []).append(websocket)

        try:
            try:
                game = api_service.get_game(game_id)
            except GameNotFound as e:
                await websocket.send_json({"type": "error", "payload": {"message": str(e)}})
                return
            await websocket.send_json({
                "type": "state_update",
                "payload": game.model_dump(mode="json"),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if not isinstance(message, dict):
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Messages must be JSON objects"},
                    })
                    continue
                reply = _handle_ws_message(game_id, message)
                if reply is not None:
                    await websocket.send_json(reply)

        except WebSocketDisconnect:
            logger.debug("WebSocket closed for game %s", game_id)
        finally:
            connections = ws_connections.get(game_id, [])
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                ws_connections.pop(game_id, None)

    def _handle_ws_message(game_id: str, message: dict) -> Optional[dict]:
        """Run one inbound WebSocket message; return a direct reply if any."""
        message_type = message.get("type")
        if message_type == "ping":
            return {"type": "pong"}

        try:
            if message_type == "roll":
                result = api_service.roll(game_id, RollRequest.model_validate(message))
            elif message_type == "card_choice":
                result = api_service.choose(game_id, CardChoiceRequest.model_validate(message))
            else:
                return {"type": "error", "payload": {"message": f"Unknown message type: {message_type}"}}
        except ValidationError as e:
            return {
                "type": "error",
                "payload": {"error_code": ErrorCode.VALIDATION_ERROR.value, "message": str(e)},
            }
        except RealityCheckError as e:
            return {"type": "error", "payload": {"error_code": e.error_code, "message": str(e)}}

        if isinstance(result, ErrorResponse):
            return {"type": "error", "payload": result.model_dump(mode="json")}
        # Successful actions reach every client through the game broadcast
        return None

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="realitycheck-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        return {
            "name": "Reality Check Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn realitycheck.api.app:app
app = create_app()
