"""
Session Module - Live games and their turn orchestration.

A session represents one game:
- Created when a host opens a game
- Holds the roster, the turn state machine and the ring scheduler
- Processes roll and card-choice actions
- Discarded when the game ends

Sessions are in-memory only.
"""

from .player import Player, create_player, generate_character
from .orchestrator import (
    ActionOutcome,
    CardResolved,
    GameOrchestrator,
    PendingDecision,
    TurnResult,
)
from .manager import GameSession, SessionManager, SessionStatus

__all__ = [
    "Player",
    "create_player",
    "generate_character",
    "ActionOutcome",
    "CardResolved",
    "GameOrchestrator",
    "PendingDecision",
    "TurnResult",
    "GameSession",
    "SessionManager",
    "SessionStatus",
]
