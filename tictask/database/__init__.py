"""Database package."""

from .db import configure_engine, get_session, init_db
from .models import Session, Task, TimerConfigRow, TimerStateRow
from .store import TimerStore

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "Session",
    "Task",
    "TimerConfigRow",
    "TimerStateRow",
    "TimerStore",
]
