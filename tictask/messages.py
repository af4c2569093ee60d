"""Request/response command surface and the ``TIMER_UPDATE`` broadcast.

Messages are plain dicts with a ``type`` key, as sent by a popup, a tray
menu or any other front end::

    router.handle({"type": START_TIMER, "taskId": "abc"})
    router.handle({"type": CONFIG_CHANGED, "config": {...}, "statusHint": "running"})

Every command answers with the current timer state in its camelCase
wire shape.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .timer.config_reconciler import ConfigReconciler
from .timer.engine import TimerEngine
from .timer.state import TimerConfig, TimerState

logger = logging.getLogger(__name__)

# ── message types ────────────────────────────────────────────────────────

START_TIMER = "START_TIMER"
PAUSE_TIMER = "PAUSE_TIMER"
RESET_TIMER = "RESET_TIMER"
GET_TIMER_STATE = "GET_TIMER_STATE"
CONFIG_CHANGED = "CONFIG_CHANGED"
START_BREAK = "START_BREAK"
SKIP_BREAK = "SKIP_BREAK"
TIMER_UPDATE = "TIMER_UPDATE"

Listener = Callable[[dict[str, Any]], None]


class MessageRouter:
    """Dispatches command messages to the engine and fans out updates."""

    def __init__(self, engine: TimerEngine, reconciler: ConfigReconciler) -> None:
        self._engine = engine
        self._reconciler = reconciler
        self._listeners: list[Listener] = []
        self._handlers: dict[str, Callable[[dict[str, Any]], TimerState]] = {
            START_TIMER: lambda m: engine.start(m.get("taskId")),
            PAUSE_TIMER: lambda m: engine.pause(),
            RESET_TIMER: lambda m: engine.reset(),
            GET_TIMER_STATE: lambda m: engine.get_state(),
            CONFIG_CHANGED: self._config_changed,
            START_BREAK: lambda m: engine.start_break(),
            SKIP_BREAK: lambda m: engine.skip_break(),
        }
        engine.timer_update.connect(self._publish)

    # ── requests ──────────────────────────────────────────────────────

    def handle(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Answer one command.  Unknown message types get no response."""
        handler = self._handlers.get(message.get("type"))
        if handler is None:
            logger.debug("Ignoring message %r", message.get("type"))
            return None
        return handler(message).to_message()

    def _config_changed(self, message: dict[str, Any]) -> TimerState:
        config = TimerConfig.from_message(message.get("config") or {})
        hint = message.get("statusHint", message.get("currentStatus"))
        return self._reconciler.apply(config, hint)

    # ── broadcast ─────────────────────────────────────────────────────

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, state: TimerState) -> None:
        payload = {"type": TIMER_UPDATE, "state": state.to_message()}
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                # state stays available through GET_TIMER_STATE
                logger.warning("TIMER_UPDATE not delivered to %r", listener, exc_info=True)
