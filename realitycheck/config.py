"""
Configuration - Environment-driven settings.

Every value can be overridden through an environment variable.
Timeouts are in milliseconds to match the turn rules.
"""

import logging
import os

REALITYCHECK_ENV = os.getenv("REALITYCHECK_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("REALITYCHECK_LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))

# Turn rules
ROLL_TIMEOUT_MS = int(os.getenv("ROLL_TIMEOUT_MS", "5000"))
DECISION_TIMEOUT_MS = int(os.getenv("DECISION_TIMEOUT_MS", "30000"))
MAX_PLAYERS = int(os.getenv("MAX_PLAYERS", "5"))
CARDS_PER_TURN = int(os.getenv("CARDS_PER_TURN", "3"))

# Optional JSON file of card records replacing the built-in deck
CARD_DATA_PATH = os.getenv("CARD_DATA_PATH") or None

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the app or the CLI."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
