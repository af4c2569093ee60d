"""Timer package."""

from .state import (
    TimerState,
    TimerConfig,
    TimerStatus,
    TimerMode,
    SessionType,
    SessionRecord,
)
from .engine import TimerEngine, TICK_INTERVAL_MS
from .recorder import SessionRecorder
from .config_reconciler import ConfigReconciler, rescale_remaining
from .supervisor import LivenessSupervisor, LIVENESS_INTERVAL_MS

__all__ = [
    "TimerState",
    "TimerConfig",
    "TimerStatus",
    "TimerMode",
    "SessionType",
    "SessionRecord",
    "TimerEngine",
    "TICK_INTERVAL_MS",
    "SessionRecorder",
    "ConfigReconciler",
    "rescale_remaining",
    "LivenessSupervisor",
    "LIVENESS_INTERVAL_MS",
]
