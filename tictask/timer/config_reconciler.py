"""Apply a settings change to an in-flight countdown.

Progress is preserved *relatively*: half way through a 25 minute focus
session is still half way through after switching to 50 minutes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING

from .state import TimerConfig, TimerState, TimerStatus

if TYPE_CHECKING:
    from ..database.store import TimerStore

logger = logging.getLogger(__name__)


def rescale_remaining(
    state: TimerState, old_config: TimerConfig, new_config: TimerConfig
) -> int:
    """Seconds left under *new_config* for the interval *state* is in.

    Idle timers have no progress to keep and simply take the new full
    duration.  Otherwise the remaining fraction is carried over, rounded
    half-up to whole seconds.  An unchanged duration returns
    ``time_remaining`` as-is.
    """
    new_duration = new_config.duration_for(state.mode, state.pomodoros_completed)
    if state.status == TimerStatus.IDLE:
        return new_duration

    old_duration = old_config.duration_for(state.mode, state.pomodoros_completed)
    if old_duration == new_duration:
        return state.time_remaining

    fraction = state.time_remaining / old_duration
    rescaled = math.floor(fraction * new_duration + 0.5)
    return max(0, min(new_duration, rescaled))


class ConfigReconciler:
    """Sole writer of the persisted :class:`TimerConfig`."""

    def __init__(self, engine, store: TimerStore | None = None) -> None:
        self._engine = engine
        if store is None:
            from ..database.store import TimerStore
            store = TimerStore()
        self._store = store

    def apply(
        self, new_config: TimerConfig, status_hint: str | None = None
    ) -> TimerState:
        """Persist *new_config* and rescale the engine's countdown to it.

        *status_hint* is the caller's idea of the timer status; the
        engine's own status always wins.
        """
        state = self._engine.bank_elapsed()
        if status_hint is not None and status_hint != state.status.value:
            logger.debug(
                "Status hint %r differs from engine status %r",
                status_hint, state.status.value,
            )

        old_config = self._engine.config
        if new_config == old_config:
            return state

        remaining = rescale_remaining(state, old_config, new_config)
        rescaled = replace(state, time_remaining=remaining)
        # config and rescaled countdown commit together
        self._store.save_config(new_config, state=rescaled)
        logger.info(
            "Timer config updated: focus=%ds short=%ds long=%ds every %d",
            new_config.focus_duration,
            new_config.short_break_duration,
            new_config.long_break_duration,
            new_config.long_break_interval,
        )
        return self._engine.adopt_config(new_config, rescaled)
