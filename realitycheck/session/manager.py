"""
Session Manager - Registry of live games.

LIFECYCLE:
1. create_session: a new game in WAITING, empty roster
2. join: players take seats (random character each) until the game starts
3. start_game: the first turn begins, status ACTIVE
4. end_session: timers cancelled, game removed from the registry

Sessions share nothing: each has its own orchestrator, its own random
source and its own lock. Nothing is persisted; the caller decides what
to store.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
import logging
import random
import threading
import time
import uuid

from .. import config
from ..cards.catalog import InMemoryCardCatalog
from ..cards.deck import create_default_catalog
from ..cards.models import Card
from ..engine.timers import TimerScheduler
from ..exceptions import GameAlreadyStarted, GameFull, GameNotFound
from .orchestrator import GameOrchestrator
from .player import Player, create_player

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    """State of a game session."""
    WAITING = "waiting"  # Accepting players
    ACTIVE = "active"  # Turns running
    FINISHED = "finished"  # Ended normally
    ABANDONED = "abandoned"  # Ended early or cleaned up


@dataclass
class GameSession:
    """
    One live game.

    The lock is shared with the orchestrator and its state machine, so
    inbound actions and timer callbacks never run concurrently.
    """
    game_id: str
    name: str
    orchestrator: GameOrchestrator
    created_at: float
    max_players: int = config.MAX_PLAYERS
    status: SessionStatus = SessionStatus.WAITING
    lock: threading.RLock = field(default_factory=threading.RLock)

    @property
    def players(self) -> list[Player]:
        return self.orchestrator.players

    def is_active(self) -> bool:
        return self.status in {SessionStatus.WAITING, SessionStatus.ACTIVE}


class SessionManager:
    """
    Creates, tracks and discards game sessions.

    Usage:
        manager = SessionManager()
        session = manager.create_session("Friday game")
        alice = manager.join(session.game_id, "alice")
        manager.start_game(session.game_id)
        session.orchestrator.handle_roll(alice.player_id, 4)
    """

    def __init__(
        self,
        cards: Iterable[Card] | None = None,
        timers: TimerScheduler | None = None,
        max_players: int = config.MAX_PLAYERS,
        cards_per_turn: int = config.CARDS_PER_TURN,
    ):
        self._cards = tuple(cards) if cards is not None else tuple(create_default_catalog().cards)
        self._timers = timers
        self.max_players = max_players
        self.cards_per_turn = cards_per_turn
        self._sessions: dict[str, GameSession] = {}

    def create_session(
        self,
        name: str,
        max_players: int | None = None,
        seed: int | None = None,
    ) -> GameSession:
        """
        Create a new game waiting for players.

        Args:
            name: Display name of the game
            max_players: Seat limit (defaults to the manager's)
            seed: Seed for the game's random source, for reproducible games
        """
        game_id = str(uuid.uuid4())
        rng = random.Random(seed)
        lock = threading.RLock()

        orchestrator = GameOrchestrator(
            game_id=game_id,
            catalog=InMemoryCardCatalog(self._cards, rng=rng),
            rng=rng,
            timers=self._timers,
            lock=lock,
            cards_per_turn=self.cards_per_turn,
        )
        session = GameSession(
            game_id=game_id,
            name=name,
            orchestrator=orchestrator,
            created_at=time.time(),
            max_players=max_players or self.max_players,
            lock=lock,
        )
        self._sessions[game_id] = session
        logger.info("Created game %s (%s)", game_id, name)
        return session

    def get_session(self, game_id: str) -> GameSession | None:
        return self._sessions.get(game_id)

    def require_session(self, game_id: str) -> GameSession:
        session = self._sessions.get(game_id)
        if session is None:
            raise GameNotFound(game_id)
        return session

    def join(self, game_id: str, username: str) -> Player:
        """Seat a new player with a random character."""
        session = self.require_session(game_id)
        with session.lock:
            if session.status != SessionStatus.WAITING:
                raise GameAlreadyStarted(f"Game {game_id} is already {session.status.value}")
            if len(session.players) >= session.max_players:
                raise GameFull(f"Game {game_id} is full ({session.max_players} players)")
            player = create_player(username, session.orchestrator.rng)
            session.orchestrator.add_player(player)
        logger.info("Player %s (%s) joined game %s", player.player_id, username, game_id)
        return player

    def start_game(self, game_id: str) -> GameSession:
        session = self.require_session(game_id)
        with session.lock:
            if session.status != SessionStatus.WAITING:
                raise GameAlreadyStarted(f"Game {game_id} is already {session.status.value}")
            session.orchestrator.start()
            session.status = SessionStatus.ACTIVE
        logger.info("Game %s started with %d players", game_id, len(session.players))
        return session

    def end_session(self, game_id: str, reason: str = "completed") -> bool:
        """
        End a game and drop it from the registry.

        Returns False if the game did not exist.
        """
        session = self._sessions.pop(game_id, None)
        if session is None:
            return False
        with session.lock:
            session.orchestrator.stop()
            if reason == "completed":
                session.status = SessionStatus.FINISHED
            else:
                session.status = SessionStatus.ABANDONED
        logger.info("Game %s ended (%s)", game_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        return [
            game_id for game_id, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """End games older than max_age that never started."""
        now = time.time()
        stale = [
            game_id for game_id, session in self._sessions.items()
            if now - session.created_at > max_age_seconds
            and session.status == SessionStatus.WAITING
        ]
        for game_id in stale:
            self.end_session(game_id, reason="stale")
        return stale
