"""
Exceptions for session lifecycle errors.

Gameplay flow (bad transitions, wrong turn, failed preconditions) is
reported through result objects instead. These exceptions cover the
lifecycle around a game: finding it, joining it, starting it.
"""


class RealityCheckError(Exception):
    """Base class for all lifecycle errors."""
    error_code = "INTERNAL_ERROR"


class GameNotFound(RealityCheckError):
    """Game does not exist or has ended."""
    error_code = "GAME_NOT_FOUND"

    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(f"Game {game_id} not found")


class PlayerNotFound(RealityCheckError):
    """Player is not part of the game."""
    error_code = "PLAYER_NOT_FOUND"

    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Player {player_id} not found")


class GameFull(RealityCheckError):
    """Roster already holds the maximum number of players."""
    error_code = "GAME_FULL"


class GameAlreadyStarted(RealityCheckError):
    """Players cannot join and the game cannot be restarted once active."""
    error_code = "GAME_ALREADY_STARTED"


class NotEnoughPlayers(RealityCheckError):
    """A game needs at least one player to start."""
    error_code = "NOT_ENOUGH_PLAYERS"
