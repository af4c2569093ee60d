"""Durable storage for the timer: state, config, sessions and tasks.

Everything goes through :func:`get_session`, so a failed write rolls
back and the SQLAlchemy error propagates to the caller untouched.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session as OrmSession

from .db import get_session
from .models import (
    SINGLETON_KEY,
    Session as SessionRow,
    Task,
    TimerConfigRow,
    TimerStateRow,
)
from ..timer.state import (
    SessionRecord,
    SessionType,
    TimerConfig,
    TimerMode,
    TimerState,
    TimerStatus,
    now_ms,
)

logger = logging.getLogger(__name__)

_TASK_FIELDS = frozenset({
    "title",
    "description",
    "status",
    "completed_at",
    "pomodoros_completed",
    "estimated_pomodoros",
    "due_date",
})


# ── row <-> value conversion ─────────────────────────────────────────────


def _state_from_row(row: TimerStateRow) -> TimerState:
    return TimerState(
        time_remaining=row.time_remaining,
        status=TimerStatus(row.status),
        mode=TimerMode(row.mode),
        pomodoros_completed=row.pomodoros_completed,
        current_task_id=row.current_task_id,
        last_update_time=row.last_update_time,
        ticking=bool(row.ticking),
    )


def _config_from_row(row: TimerConfigRow) -> TimerConfig:
    return TimerConfig(
        focus_duration=row.focus_duration,
        short_break_duration=row.short_break_duration,
        long_break_duration=row.long_break_duration,
        long_break_interval=row.long_break_interval,
    )


def _record_from_row(row: SessionRow) -> SessionRecord:
    return SessionRecord(
        id=row.id,
        start_time=row.start_time,
        end_time=row.end_time,
        session_type=SessionType(row.session_type),
        completed=row.completed,
        task_id=row.task_id,
        date=row.date,
    )


# ── store ─────────────────────────────────────────────────────────────────


class TimerStore:
    """Key/value access to the singleton rows plus the session log.

    Writes that must land together (a completion and its session record,
    a config change and its rescaled countdown) share one transaction.
    """

    # ── timer state ───────────────────────────────────────────────────

    def load_state(self) -> TimerState:
        """Persisted state, or fresh idle defaults on first activation."""
        with get_session() as db:
            row = db.get(TimerStateRow, SINGLETON_KEY)
            if row is None:
                logger.info("No persisted timer state; using defaults")
                config_row = db.get(TimerConfigRow, SINGLETON_KEY)
                config = _config_from_row(config_row) if config_row else TimerConfig()
                return TimerState(time_remaining=config.focus_duration)
            return _state_from_row(row)

    def save_state(self, state: TimerState) -> None:
        with get_session() as db:
            self._write_state(db, state)

    # ── timer config ──────────────────────────────────────────────────

    def load_config(self) -> TimerConfig:
        with get_session() as db:
            row = db.get(TimerConfigRow, SINGLETON_KEY)
            if row is None:
                return TimerConfig()
            return _config_from_row(row)

    def save_config(
        self, config: TimerConfig, *, state: TimerState | None = None
    ) -> None:
        """Persist *config*, and *state* in the same transaction if given."""
        with get_session() as db:
            self._write_config(db, config)
            if state is not None:
                self._write_state(db, state)

    # ── sessions (append-only) ────────────────────────────────────────

    def add_session(
        self, record: SessionRecord, *, state: TimerState | None = None
    ) -> None:
        """Append *record*.

        A completed focus session bound to a task bumps that task's
        pomodoro counter.  With *state*, the timer state is written in
        the same transaction: both commit or neither does.
        """
        with get_session() as db:
            if state is not None:
                self._write_state(db, state)
            self._write_session(db, record)

    def sessions_between(self, start_date: str, end_date: str) -> list[SessionRecord]:
        """Sessions whose ``date`` falls in ``[start_date, end_date]``."""
        with get_session() as db:
            rows = (
                db.query(SessionRow)
                .filter(SessionRow.date >= start_date, SessionRow.date <= end_date)
                .order_by(SessionRow.start_time)
                .all()
            )
            return [_record_from_row(r) for r in rows]

    def sessions_for_task(self, task_id: str) -> list[SessionRecord]:
        with get_session() as db:
            rows = (
                db.query(SessionRow)
                .filter(SessionRow.task_id == task_id)
                .order_by(SessionRow.start_time)
                .all()
            )
            return [_record_from_row(r) for r in rows]

    # ── row writers (caller owns the transaction) ─────────────────────

    def _write_state(self, db: OrmSession, state: TimerState) -> None:
        row = db.get(TimerStateRow, SINGLETON_KEY)
        if row is None:
            row = TimerStateRow(id=SINGLETON_KEY)
            db.add(row)
        row.time_remaining = state.time_remaining
        row.status = state.status.value
        row.mode = state.mode.value
        row.pomodoros_completed = state.pomodoros_completed
        row.current_task_id = state.current_task_id
        row.last_update_time = state.last_update_time
        row.ticking = state.ticking

    def _write_config(self, db: OrmSession, config: TimerConfig) -> None:
        row = db.get(TimerConfigRow, SINGLETON_KEY)
        if row is None:
            row = TimerConfigRow(id=SINGLETON_KEY)
            db.add(row)
        row.focus_duration = config.focus_duration
        row.short_break_duration = config.short_break_duration
        row.long_break_duration = config.long_break_duration
        row.long_break_interval = config.long_break_interval

    def _write_session(self, db: OrmSession, record: SessionRecord) -> None:
        db.add(SessionRow(
            id=record.id,
            start_time=record.start_time,
            end_time=record.end_time,
            duration=record.duration,
            session_type=record.session_type.value,
            completed=record.completed,
            task_id=record.task_id,
            date=record.date,
        ))
        if record.session_type != SessionType.POMODORO or record.task_id is None:
            return
        task = db.get(Task, record.task_id)
        if task is None:
            logger.warning(
                "Task %s not found; pomodoro count not updated", record.task_id
            )
            return
        task.pomodoros_completed += 1
        task.updated_at = now_ms()

    # ── tasks ─────────────────────────────────────────────────────────

    def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        estimated_pomodoros: int | None = None,
        due_date: int | None = None,
    ) -> Task:
        stamp = now_ms()
        task = Task(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            status="to_do",
            created_at=stamp,
            updated_at=stamp,
            pomodoros_completed=0,
            estimated_pomodoros=estimated_pomodoros,
            due_date=due_date,
        )
        with get_session() as db:
            db.add(task)
        return task

    def get_task(self, task_id: str) -> Task | None:
        with get_session() as db:
            return db.get(Task, task_id)

    def update_task(self, task_id: str, fields: dict[str, Any]) -> Task | None:
        """Apply a partial update.  Returns ``None`` for an unknown id."""
        unknown = set(fields) - _TASK_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        with get_session() as db:
            task = db.get(Task, task_id)
            if task is None:
                return None
            for key, value in fields.items():
                setattr(task, key, value)
            task.updated_at = now_ms()
            return task
