"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the engine.

Error Codes:
- GAME_NOT_FOUND: Game does not exist or has ended
- PLAYER_NOT_FOUND: Player is not seated in the game
- GAME_FULL / GAME_ALREADY_STARTED / NOT_ENOUGH_PLAYERS: lobby errors
- INVALID_PHASE: Action not accepted in the current turn phase
- NOT_YOUR_TURN: Action sent by a player who is not active
- INVALID_ROLL: Roll outside 1-6
- UNKNOWN_CARD: Card is not awaiting a decision
- INVALID_CHOICE: Choice index out of range
- PRECONDITION_FAILED: Choice requirements not met (e.g. money)
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class GameStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FINISHED = "finished"
    ABANDONED = "abandoned"


class ErrorCode(str, Enum):
    """Structured error codes."""
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    GAME_FULL = "GAME_FULL"
    GAME_ALREADY_STARTED = "GAME_ALREADY_STARTED"
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    INVALID_PHASE = "INVALID_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_ROLL = "INVALID_ROLL"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    INVALID_CHOICE = "INVALID_CHOICE"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class StatsInfo(BaseModel):
    money: int
    mental: int
    sin: int = Field(ge=0)
    virtue: int = Field(ge=0)

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: str
    username: str
    stats: StatsInfo
    tags: list[str] = Field(default_factory=list)
    position: int = 0
    character: dict[str, Any] = Field(default_factory=dict)
    is_alive: bool = True
    is_current_turn: bool = False


class ChoiceInfo(BaseModel):
    text: str
    effects: dict[str, int] = Field(default_factory=dict)
    conditions: Optional[dict[str, Any]] = None
    triggers: Optional[dict[str, Any]] = None


class CardInfo(BaseModel):
    """Card as shown to players."""
    card_id: str
    name: str
    deck: str = Field(description="sin or virtue")
    type: str = Field(description="immediate or delayed")
    category: str = ""
    description: str = ""
    rarity: str = "common"
    choices: list[ChoiceInfo] = Field(default_factory=list)


class RingEventInfo(BaseModel):
    event_id: str
    ring: str
    kind: str = Field(description="tile or global")
    title: str
    description: str
    effects: dict[str, int] = Field(default_factory=dict)
    trigger_turn: int


class ClockInfo(BaseModel):
    ring: str
    interval: int
    last_trigger: int
    next_trigger: int


# =============================================================================
# Requests
# =============================================================================

class CreateGameRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    max_players: Optional[int] = Field(None, ge=1, le=12)
    seed: Optional[int] = Field(None, description="Seed for a reproducible game")


class JoinGameRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)


class RollRequest(BaseModel):
    player_id: str
    roll_result: int = Field(ge=1, le=6)


class CardChoiceRequest(BaseModel):
    player_id: str
    card_id: str
    choice_index: int = Field(ge=0)


# =============================================================================
# Responses
# =============================================================================

class GameResponse(BaseModel):
    """Game status and roster."""
    game_id: str
    name: str
    status: GameStatus
    phase: str
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_index: int = 0
    current_player_id: Optional[str] = None
    round_number: int = 1
    turn: int = 1
    pending_cards: list[CardInfo] = Field(default_factory=list)
    max_players: int
    created_at: float
    api_version: str = "v1"


class TurnResultResponse(BaseModel):
    """Outcome of a roll."""
    game_id: str
    player_id: str
    roll_result: int
    triggered_rings: list[str] = Field(default_factory=list)
    cards: list[CardInfo] = Field(default_factory=list)
    next_player: int
    events: list[RingEventInfo] = Field(default_factory=list)
    awaiting_decision: bool = False
    forced: bool = False
    round_number: int = 1


class CardResolvedResponse(BaseModel):
    """Outcome of a card choice."""
    game_id: str
    player_id: str
    card_id: str
    choice: ChoiceInfo
    new_stats: StatsInfo
    tags: list[str] = Field(default_factory=list)
    dice_roll: Optional[int] = None


class EventsResponse(BaseModel):
    """Ring clocks plus queued and fired events."""
    game_id: str
    current_turn: int
    active: list[RingEventInfo] = Field(default_factory=list)
    upcoming: list[RingEventInfo] = Field(default_factory=list)
    history: list[RingEventInfo] = Field(default_factory=list)
    clocks: list[ClockInfo] = Field(default_factory=list)


class GameListResponse(BaseModel):
    games: list[str]
    count: int


class EndGameResponse(BaseModel):
    success: bool
    game_id: str


class ErrorResponse(BaseModel):
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
