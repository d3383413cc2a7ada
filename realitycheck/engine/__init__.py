"""
Engine - Turn flow, ring events and effect resolution.

The engine is the runtime that:
1. Sequences a player's turn through its phases (TurnStateMachine)
2. Injects recurring ring events on independent clocks (RingEventScheduler)
3. Applies effect deltas to player stats (EffectResolver)

None of it does I/O. Randomness and timers are injected.
"""

from .stats import PlayerStats, STAT_NAMES
from .timers import TimerHandle, TimerScheduler, ThreadTimerScheduler, ManualTimerScheduler
from .state_machine import TurnStateMachine, TurnPhase, TurnContext, TransitionResult
from .event_templates import Ring, EventKind, RING_INTERVALS
from .scheduler import RingEventScheduler, RingClock, RingEvent
from .effect_resolver import EffectResolver, ResolutionResult

__all__ = [
    "PlayerStats",
    "STAT_NAMES",
    "TimerHandle",
    "TimerScheduler",
    "ThreadTimerScheduler",
    "ManualTimerScheduler",
    "TurnStateMachine",
    "TurnPhase",
    "TurnContext",
    "TransitionResult",
    "Ring",
    "EventKind",
    "RING_INTERVALS",
    "RingEventScheduler",
    "RingClock",
    "RingEvent",
    "EffectResolver",
    "ResolutionResult",
]
