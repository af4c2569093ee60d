"""Value types shared by the timer engine and its collaborators.

``TimerState`` and ``TimerConfig`` are frozen dataclasses; the engine
never mutates one in place, it builds a replacement with
``dataclasses.replace`` and commits that once it has been persisted.
``SessionRecord`` is frozen: completed intervals are write-once.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ── enums ─────────────────────────────────────────────────────────────────


class TimerStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    BREAK = "break"


class TimerMode(Enum):
    FOCUS = "focus"
    BREAK = "break"


class SessionType(Enum):
    POMODORO = "pomodoro"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


# ── constants ─────────────────────────────────────────────────────────────

DEFAULT_FOCUS_DURATION = 25 * 60
DEFAULT_SHORT_BREAK_DURATION = 5 * 60
DEFAULT_LONG_BREAK_DURATION = 15 * 60
DEFAULT_LONG_BREAK_INTERVAL = 4


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ── config ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerConfig:
    """Durations (seconds) and long-break cadence."""

    focus_duration: int = DEFAULT_FOCUS_DURATION
    short_break_duration: int = DEFAULT_SHORT_BREAK_DURATION
    long_break_duration: int = DEFAULT_LONG_BREAK_DURATION
    long_break_interval: int = DEFAULT_LONG_BREAK_INTERVAL

    def __post_init__(self) -> None:
        for name in (
            "focus_duration",
            "short_break_duration",
            "long_break_duration",
            "long_break_interval",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def is_long_break(self, pomodoros_completed: int) -> bool:
        """Every Nth completed focus session earns a long break."""
        return pomodoros_completed % self.long_break_interval == 0

    def break_type(self, pomodoros_completed: int) -> SessionType:
        if self.is_long_break(pomodoros_completed):
            return SessionType.LONG_BREAK
        return SessionType.SHORT_BREAK

    def break_duration(self, pomodoros_completed: int) -> int:
        if self.is_long_break(pomodoros_completed):
            return self.long_break_duration
        return self.short_break_duration

    def duration_for(self, mode: TimerMode, pomodoros_completed: int) -> int:
        """Full length of an interval in *mode* given the completion count."""
        if mode == TimerMode.FOCUS:
            return self.focus_duration
        return self.break_duration(pomodoros_completed)

    def to_message(self) -> dict[str, int]:
        return {
            "focusDuration": self.focus_duration,
            "shortBreakDuration": self.short_break_duration,
            "longBreakDuration": self.long_break_duration,
            "longBreakInterval": self.long_break_interval,
        }

    @classmethod
    def from_message(cls, data: dict[str, Any]) -> TimerConfig:
        """Build from the camelCase wire shape (missing keys use defaults)."""
        defaults = cls()
        return cls(
            focus_duration=data.get("focusDuration", defaults.focus_duration),
            short_break_duration=data.get(
                "shortBreakDuration", defaults.short_break_duration
            ),
            long_break_duration=data.get(
                "longBreakDuration", defaults.long_break_duration
            ),
            long_break_interval=data.get(
                "longBreakInterval", defaults.long_break_interval
            ),
        )


# ── state ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerState:
    """Snapshot of the one live timer."""

    time_remaining: int = DEFAULT_FOCUS_DURATION
    status: TimerStatus = TimerStatus.IDLE
    mode: TimerMode = TimerMode.FOCUS
    pomodoros_completed: int = 0
    current_task_id: str | None = None
    last_update_time: int = field(default_factory=now_ms)
    # armed when written; tells a restart whether a break was counting down
    ticking: bool = False

    def to_message(self) -> dict[str, Any]:
        return {
            "timeRemaining": self.time_remaining,
            "status": self.status.value,
            "mode": self.mode.value,
            "pomodorosCompleted": self.pomodoros_completed,
            "currentTaskId": self.current_task_id,
            "lastUpdateTime": self.last_update_time,
        }


# ── sessions ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SessionRecord:
    id: str
    start_time: int   # epoch ms
    end_time: int     # epoch ms
    session_type: SessionType
    completed: bool
    task_id: str | None
    date: str         # YYYY-MM-DD of start_time (local)

    @property
    def duration(self) -> int:
        """Seconds between start and end."""
        return max(0, (self.end_time - self.start_time) // 1000)

