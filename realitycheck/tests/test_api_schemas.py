"""
Tests for API Pydantic schemas.

Validates that:
- Request models reject out-of-range actions
- Response models serialize engine objects
- Error codes cover every engine failure
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    CardChoiceRequest,
    CreateGameRequest,
    ErrorCode,
    ErrorResponse,
    RollRequest,
    StatsInfo,
)
from ..api.service import card_to_info, event_to_info
from ..cards.deck import CASINO_NIGHT
from ..engine.event_templates import EventKind, Ring
from ..engine.scheduler import RingEvent
from ..engine.stats import PlayerStats
from ..exceptions import GameAlreadyStarted, GameFull, GameNotFound, NotEnoughPlayers, PlayerNotFound


class TestRequests:
    """Tests for request validation."""

    @pytest.mark.parametrize("roll", [0, 7])
    def test_roll_range(self, roll):
        with pytest.raises(ValidationError):
            RollRequest(player_id="alice", roll_result=roll)

    def test_negative_choice(self):
        with pytest.raises(ValidationError):
            CardChoiceRequest(player_id="alice", card_id="gossip", choice_index=-1)

    def test_create_game_defaults(self):
        request = CreateGameRequest(name="Friday")

        assert request.max_players is None
        assert request.seed is None

    def test_create_game_needs_name(self):
        with pytest.raises(ValidationError):
            CreateGameRequest(name="")


class TestResponses:
    """Tests for response serialization."""

    def test_stats_from_dataclass(self):
        stats = StatsInfo.model_validate(PlayerStats(money=-200, mental=3, sin=1, virtue=0))
        assert stats.model_dump() == {"money": -200, "mental": 3, "sin": 1, "virtue": 0}

    def test_card_info(self):
        info = card_to_info(CASINO_NIGHT)
        data = info.model_dump()

        assert data["card_id"] == "casino_night"
        assert data["deck"] == "sin"
        assert data["rarity"] == "uncommon"
        assert data["choices"][0]["conditions"] == {"requires_money": 1000}
        assert len(data["choices"][0]["triggers"]["dice"]) == 3
        assert data["choices"][1]["triggers"] is None

    def test_event_info(self):
        event = RingEvent("e1", Ring.BABEL, EventKind.GLOBAL, "Drama", "d", {"sin": 1}, 12)

        data = event_to_info(event).model_dump()

        assert data == {
            "event_id": "e1",
            "ring": "babel",
            "kind": "global",
            "title": "Drama",
            "description": "d",
            "effects": {"sin": 1},
            "trigger_turn": 12,
        }

    def test_error_response(self):
        response = ErrorResponse(error="Not your turn", error_code=ErrorCode.NOT_YOUR_TURN)

        data = response.model_dump(mode="json")
        assert data["error_code"] == "NOT_YOUR_TURN"
        assert data["details"] is None


class TestErrorCodes:
    """Every lifecycle exception maps to an error code."""

    @pytest.mark.parametrize("exc", [
        GameNotFound("g"),
        PlayerNotFound("p"),
        GameFull("full"),
        GameAlreadyStarted("started"),
        NotEnoughPlayers("empty"),
    ])
    def test_exception_codes(self, exc):
        assert ErrorCode(exc.error_code).value == exc.error_code

    @pytest.mark.parametrize("code", [
        "INVALID_PHASE", "NOT_YOUR_TURN", "INVALID_ROLL",
        "UNKNOWN_CARD", "INVALID_CHOICE", "PRECONDITION_FAILED",
    ])
    def test_action_codes(self, code):
        assert ErrorCode(code).value == code
