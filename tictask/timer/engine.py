"""Timer state machine for TicTask.

States (``status`` / ``mode``)
------------------------------
idle / focus      Waiting to start a focus session.
running / focus   Focus countdown ticking.
paused / focus    Focus countdown frozen.
break / break     Break entered.  Ticking when the tick handle is armed
                  (persisted as ``ticking``),
                  otherwise pending (full duration) or paused.
idle / break      A reset during a break; ``start`` resumes the break.

Transitions
-----------
idle → running                  (start)
running → paused                (pause)
paused → running                (start)
running, 0 left → break         (focus complete, break pending)
break → break (ticking)         (start_break)
break → idle                    (skip_break, break complete)
any → idle                      (reset)

Time is never counted in ticks.  Each tick computes whole seconds
elapsed since the persisted ``last_update_time`` and subtracts those, so
a missed tick or a process that was suspended for ten minutes both
catch up on the next reconciliation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from sqlalchemy.exc import SQLAlchemyError

from .recorder import SessionRecorder
from .state import (
    SessionType,
    TimerConfig,
    TimerMode,
    TimerState,
    TimerStatus,
    now_ms,
)

if TYPE_CHECKING:
    from ..database.store import TimerStore

logger = logging.getLogger(__name__)

TICK_INTERVAL_MS = 1000

Notifier = Callable[[str, str], None]


class TimerEngine(QObject):
    """Owns the single :class:`TimerState` and every transition on it.

    Each transition builds a new state, persists it, and only then makes
    it current, so a failed write leaves the in-memory state untouched
    and the error propagates to the caller.

    Signals
    -------
    timer_update(state: TimerState)
        Emitted after every mutation, including reconciliation ticks.
    session_recorded(record: SessionRecord)
        Emitted after a focus or break completes and is logged.
    """

    timer_update = pyqtSignal(object)
    session_recorded = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        store: TimerStore | None = None,
        recorder: SessionRecorder | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], int] | None = None,
        tick_interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)

        if store is None:
            from ..database.store import TimerStore
            store = TimerStore()
        self._store = store
        self._recorder = (
            recorder if recorder is not None else SessionRecorder(self._store)
        )
        self._notifier = notifier
        self._clock: Callable[[], int] = clock or now_ms

        self._config: TimerConfig = self._store.load_config()
        self._state: TimerState = self._store.load_state()

        # ── Qt timer (the tick handle) ───────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(tick_interval_ms)
        self._qt_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def is_ticking(self) -> bool:
        """True while a reconciliation callback is armed in this process."""
        return self._qt_timer.isActive()

    @property
    def is_orphaned(self) -> bool:
        """State was persisted as counting down, but nothing here ticks.

        That is a countdown left behind by a restart: a ``running``
        focus, or a break written while its tick handle was armed.
        """
        if self.is_ticking:
            return False
        state = self._state
        return state.status == TimerStatus.RUNNING or (
            state.status == TimerStatus.BREAK and state.ticking
        )

    @property
    def full_duration(self) -> int:
        """Length of the interval the current mode counts down."""
        return self._config.duration_for(
            self._state.mode, self._state.pomodoros_completed
        )

    def get_state(self) -> TimerState:
        return self._state

    def reload(self) -> TimerState:
        """Re-read state and config from the store.

        Only meaningful while nothing is ticking; an armed engine is
        already the last writer of what the store holds.
        """
        if self.is_ticking:
            return self._state
        self._config = self._store.load_config()
        self._state = self._store.load_state()
        return self._state

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self, task_id: str | None = None) -> TimerState:
        """Start or resume counting down.

        An orphaned countdown (see :attr:`is_orphaned`) is re-armed and
        reconciled against the stored ``last_update_time`` instead of
        restarting the clock, so time that passed while the process was
        down still counts.
        """
        state = self._state
        if self.is_ticking:
            return state
        bound_task = task_id if task_id is not None else state.current_task_id

        if self.is_orphaned:
            logger.info(
                "Re-arming orphaned %s countdown (%ds left, last update %d)",
                state.mode.value, state.time_remaining, state.last_update_time,
            )
            if (
                state.status == TimerStatus.RUNNING
                and bound_task != state.current_task_id
            ):
                self._commit(replace(state, current_task_id=bound_task))
            self._qt_timer.start()
            self._reconcile()
            self._broadcast()
            return self._state

        if state.status == TimerStatus.BREAK:
            return state

        status = (
            TimerStatus.RUNNING if state.mode == TimerMode.FOCUS
            else TimerStatus.BREAK
        )
        self._commit(replace(
            state,
            status=status,
            current_task_id=bound_task,
            last_update_time=self._clock(),
            ticking=True,
        ))
        self._qt_timer.start()
        logger.info(
            "Started %s countdown (%ds left, task=%s)",
            state.mode.value, state.time_remaining, bound_task,
        )
        if state.status == TimerStatus.IDLE and state.mode == TimerMode.FOCUS:
            self._notify("Pomodoro Timer Started", "Focus time has begun!")
        self._broadcast()
        return self._state

    def pause(self) -> TimerState:
        """Freeze the countdown.  A paused break keeps ``status == break``."""
        if not (self.is_ticking or self.is_orphaned):
            return self._state

        # bank whatever has elapsed before freezing
        changed = self._reconcile()
        state = self._state
        if not (self.is_ticking or self.is_orphaned):
            # the interval ran out while banking
            if changed:
                self._broadcast()
            return state

        status = (
            TimerStatus.PAUSED if state.mode == TimerMode.FOCUS
            else TimerStatus.BREAK
        )
        self._commit(replace(state, status=status, ticking=False))
        self._qt_timer.stop()
        logger.info("Paused with %ds left", state.time_remaining)
        self._broadcast()
        return self._state

    def reset(self) -> TimerState:
        """Abandon the current interval (nothing is recorded).

        Restores the full duration of the *current* mode, so a reset
        mid-break gives back the break, not a focus session.
        """
        state = self._state
        target = replace(
            state,
            status=TimerStatus.IDLE,
            time_remaining=self.full_duration,
            current_task_id=None,
            ticking=False,
        )
        if target == state and not self.is_ticking:
            return state

        self._commit(replace(target, last_update_time=self._clock()))
        self._qt_timer.stop()
        logger.info("Reset to idle (%s, %ds)", target.mode.value, target.time_remaining)
        self._broadcast()
        return self._state

    def start_break(self) -> TimerState:
        """Begin (or resume) ticking a pending or paused break.

        A break that was ticking when the process went down is an
        orphan: it resumes from the stored timestamp, so the downtime
        counts against it.
        """
        state = self._state
        if state.status != TimerStatus.BREAK or self.is_ticking:
            return state
        if self.is_orphaned:
            return self.start()
        self._commit(replace(state, last_update_time=self._clock(), ticking=True))
        self._qt_timer.start()
        logger.info("Break started (%ds)", state.time_remaining)
        self._broadcast()
        return self._state

    def skip_break(self) -> TimerState:
        """Drop the break and go straight back to an idle focus session."""
        state = self._state
        if state.status != TimerStatus.BREAK:
            return state
        self._commit(replace(
            state,
            status=TimerStatus.IDLE,
            mode=TimerMode.FOCUS,
            time_remaining=self._config.focus_duration,
            current_task_id=None,
            last_update_time=self._clock(),
            ticking=False,
        ))
        self._qt_timer.stop()
        logger.info("Break skipped")
        self._broadcast()
        return self._state

    # ── config hand-off (see ConfigReconciler) ───────────────────────

    def bank_elapsed(self) -> TimerState:
        """Apply any elapsed running time now, e.g. before a rescale."""
        if self.is_ticking and self._reconcile():
            self._broadcast()
        return self._state

    def adopt_config(self, config: TimerConfig, state: TimerState) -> TimerState:
        """Switch to *config* and its rescaled *state*.

        Both must already be persisted (together) by the caller.
        """
        previous = self._state
        self._config = config
        self._state = state
        if state != previous:
            logger.info("Config changed; %ds left", state.time_remaining)
            self._broadcast()
        return self._state

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — reconciliation
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        if not self.is_ticking:
            return
        try:
            changed = self._reconcile()
        except SQLAlchemyError:
            # in-memory state is unchanged; the next tick retries from
            # the same last_update_time
            logger.exception("Failed to persist reconciled timer state")
            return
        if changed:
            self._broadcast()

    def _reconcile(self) -> bool:
        """Subtract whole elapsed seconds.  Returns True if state changed.

        ``last_update_time`` advances by exactly the seconds consumed,
        so sub-second remainders carry into the next pass instead of
        being dropped.
        """
        state = self._state
        now = self._clock()
        if now < state.last_update_time:
            logger.warning(
                "Clock moved back %dms; rebasing", state.last_update_time - now
            )
            self._commit(replace(state, last_update_time=now))
            return True

        delta = (now - state.last_update_time) // 1000
        if delta <= 0:
            return False

        remaining = max(0, state.time_remaining - delta)
        logger.debug("Reconciled %ds elapsed, %ds left", delta, remaining)
        if remaining == 0:
            self._complete(state, now)
        else:
            self._commit(replace(
                state,
                time_remaining=remaining,
                last_update_time=state.last_update_time + delta * 1000,
            ))
        return True

    def _complete(self, state: TimerState, now: int) -> None:
        # the moment the countdown actually hit zero, even if we only
        # notice it after a suspension
        end_time = min(now, state.last_update_time + state.time_remaining * 1000)

        if state.mode == TimerMode.FOCUS:
            completed = state.pomodoros_completed + 1
            is_long = self._config.is_long_break(completed)
            new_state = replace(
                state,
                time_remaining=self._config.break_duration(completed),
                status=TimerStatus.BREAK,
                mode=TimerMode.BREAK,
                pomodoros_completed=completed,
                last_update_time=now,
                ticking=False,
            )
            session_type = SessionType.POMODORO
            duration = self._config.focus_duration
            logger.info(
                "Focus session %d complete; %s break pending",
                completed, "long" if is_long else "short",
            )
            title = "Long Break Time!" if is_long else "Break Time!"
            message = f"Great work! Take a {'long' if is_long else 'short'} break."
        else:
            session_type = self._config.break_type(state.pomodoros_completed)
            duration = self._config.break_duration(state.pomodoros_completed)
            new_state = replace(
                state,
                time_remaining=self._config.focus_duration,
                status=TimerStatus.IDLE,
                mode=TimerMode.FOCUS,
                current_task_id=None,
                last_update_time=now,
                ticking=False,
            )
            logger.info("%s complete", session_type.value)
            title, message = "Break Complete", "Time to focus again!"

        # state and session row commit together; on failure nothing
        # changes here and the next tick completes again
        record = self._recorder.record(
            session_type, duration, end_time, state.current_task_id,
            state=new_state,
        )
        self._state = new_state
        self._qt_timer.stop()
        self._notify(title, message)
        self.session_recorded.emit(record)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — persistence & delivery
    # ══════════════════════════════════════════════════════════════════

    def _commit(self, new_state: TimerState) -> None:
        self._store.save_state(new_state)
        self._state = new_state

    def _broadcast(self) -> None:
        self.timer_update.emit(self._state)

    def _notify(self, title: str, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(title, message)
        except Exception:
            logger.warning("Notification %r not delivered", title, exc_info=True)
