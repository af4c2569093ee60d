"""Append-only log of completed intervals."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from .state import SessionRecord, SessionType, TimerState

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Writes one immutable :class:`SessionRecord` per completed interval.

    For a completed focus session bound to a task, the store bumps the
    task's ``pomodoros_completed`` counter in the same write.  Only the
    engine's completion transitions call :meth:`record`; pause, reset
    and skipped breaks never do.
    """

    def __init__(self, store) -> None:
        self._store = store

    def record(
        self,
        session_type: SessionType,
        duration: int,
        end_time: int,
        task_id: str | None = None,
        *,
        state: TimerState | None = None,
    ) -> SessionRecord:
        """Persist one completed session.

        *state* is the timer state the completion moves to.  It is
        committed together with the record, so a failed write leaves
        neither behind and the completion can simply be retried.
        """
        duration = max(0, duration)
        start_time = end_time - duration * 1000
        record = SessionRecord(
            id=str(uuid.uuid4()),
            start_time=start_time,
            end_time=end_time,
            session_type=session_type,
            completed=True,
            task_id=task_id,
            date=datetime.fromtimestamp(start_time / 1000).date().isoformat(),
        )
        self._store.add_session(record, state=state)
        logger.info(
            "Recorded %s session (%ds, task=%s)",
            session_type.value, record.duration, task_id,
        )
        return record
