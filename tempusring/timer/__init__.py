"""Timer package."""

from .engine import (
    TimerEngine,
    TimerPhase,
    TimerConfig,
    TimerSnapshot,
    Session,
    SESSION_PHASES,
)

__all__ = [
    "TimerEngine",
    "TimerPhase",
    "TimerConfig",
    "TimerSnapshot",
    "Session",
    "SESSION_PHASES",
]
