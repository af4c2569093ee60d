"""Watchdog that re-arms ticking after the process was restarted."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from sqlalchemy.exc import SQLAlchemyError

from .engine import TimerEngine

logger = logging.getLogger(__name__)

LIVENESS_INTERVAL_MS = 5000


class LivenessSupervisor(QObject):
    """Detects "persisted as counting down, but nothing is ticking here".

    That is what an unplanned restart of the host process looks like.
    The supervisor never touches time itself: it only calls
    :meth:`TimerEngine.start`, which reconciles against the persisted
    ``last_update_time`` before arming the tick handle.

    Signals
    -------
    recovered(state: TimerState)
        Emitted after an orphaned countdown has been re-armed.
    """

    recovered = pyqtSignal(object)

    def __init__(
        self,
        engine: TimerEngine,
        parent: QObject | None = None,
        *,
        interval_ms: int = LIVENESS_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._engine = engine
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(interval_ms)
        self._qt_timer.timeout.connect(self._on_timeout)

    @property
    def is_active(self) -> bool:
        return self._qt_timer.isActive()

    def start(self) -> None:
        """Run one check right away, then keep checking on the cadence."""
        self._on_timeout()
        self._qt_timer.start()

    def stop(self) -> None:
        self._qt_timer.stop()

    def check(self) -> bool:
        """One supervision pass.  Returns True if ticking was re-armed."""
        if self._engine.is_ticking:
            return False
        state = self._engine.reload()
        if not self._engine.is_orphaned:
            return False

        logger.info(
            "Timer persisted as counting down (%s) with no tick handle; recovering",
            state.status.value,
        )
        recovered = self._engine.start(state.current_task_id)
        self.recovered.emit(recovered)
        return True

    def _on_timeout(self) -> None:
        try:
            self.check()
        except SQLAlchemyError:
            logger.exception("Liveness check failed; retrying next pass")
