"""Timer package."""

from .engine import (
    TimerEngine,
    TimerState,
    TICK_INTERVAL_MS,
)

__all__ = [
    "TimerEngine",
    "TimerState",
    "TICK_INTERVAL_MS",
]
