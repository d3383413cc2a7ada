"""
Reality Check - Turn and Ring Event Engine

The engine behind a multiplayer turn-based life-simulation board game.
It provides:
- A per-turn state machine (roll, tile, card, decision, end turn)
- Ring clocks that inject recurring world events on their own cadences
- Effect resolution over player stats
- Session orchestration and a REST/WebSocket API
"""

__version__ = "0.1.0"
