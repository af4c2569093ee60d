"""Tests for the command/broadcast message surface."""

import pytest

from tictask.messages import (
    CONFIG_CHANGED,
    GET_TIMER_STATE,
    MessageRouter,
    PAUSE_TIMER,
    RESET_TIMER,
    SKIP_BREAK,
    START_BREAK,
    START_TIMER,
    TIMER_UPDATE,
)
from tictask.timer.config_reconciler import ConfigReconciler

from helpers import complete_focus


@pytest.fixture
def router(engine):
    return MessageRouter(engine, ConfigReconciler(engine))


class TestCommands:

    def test_start_returns_state(self, router, clock):
        response = router.handle({"type": START_TIMER, "taskId": "task-1"})
        assert response == {
            "timeRemaining": 1500,
            "status": "running",
            "mode": "focus",
            "pomodorosCompleted": 0,
            "currentTaskId": "task-1",
            "lastUpdateTime": clock.now,
        }

    def test_pause_and_reset(self, router, clock):
        router.handle({"type": START_TIMER})
        clock.advance(10)
        assert router.handle({"type": PAUSE_TIMER})["timeRemaining"] == 1490
        response = router.handle({"type": RESET_TIMER})
        assert response["status"] == "idle"
        assert response["timeRemaining"] == 1500

    def test_get_state_is_pure(self, router, engine, clock):
        router.handle({"type": START_TIMER})
        clock.advance(10)
        before = engine.state
        first = router.handle({"type": GET_TIMER_STATE})
        second = router.handle({"type": GET_TIMER_STATE})
        assert first == second
        assert first["timeRemaining"] == 1500
        assert engine.state is before

    def test_break_commands(self, router, engine, clock):
        complete_focus(engine, clock)
        assert router.handle({"type": START_BREAK})["status"] == "break"
        assert engine.is_ticking
        response = router.handle({"type": SKIP_BREAK})
        assert response["status"] == "idle"
        assert response["mode"] == "focus"

    def test_config_changed(self, router, clock):
        router.handle({"type": START_TIMER})
        clock.advance(300)
        router.handle({"type": PAUSE_TIMER})
        response = router.handle({
            "type": CONFIG_CHANGED,
            "config": {
                "focusDuration": 600,
                "shortBreakDuration": 300,
                "longBreakDuration": 900,
                "longBreakInterval": 4,
            },
            "statusHint": "paused",
        })
        assert response["timeRemaining"] == 480

    def test_config_changed_rejects_bad_values(self, router):
        with pytest.raises(ValueError):
            router.handle({"type": CONFIG_CHANGED, "config": {"focusDuration": 0}})

    def test_unknown_message_gets_no_response(self, router):
        assert router.handle({"type": "OPEN_OPTIONS"}) is None
        assert router.handle({}) is None


class TestBroadcast:

    def test_listeners_receive_timer_update(self, router):
        received = []
        router.add_listener(received.append)
        router.handle({"type": START_TIMER})
        assert received[-1]["type"] == TIMER_UPDATE
        assert received[-1]["state"]["status"] == "running"

    def test_zero_listeners_is_fine(self, router):
        assert router.handle({"type": START_TIMER})["status"] == "running"

    def test_failing_listener_is_swallowed(self, router):
        received = []

        def broken(update):
            raise ConnectionError("popup closed")

        router.add_listener(broken)
        router.add_listener(received.append)
        response = router.handle({"type": START_TIMER})
        assert response["status"] == "running"
        assert len(received) == 1

    def test_remove_listener(self, router):
        received = []
        router.add_listener(received.append)
        router.remove_listener(received.append)
        router.handle({"type": START_TIMER})
        assert received == []

    def test_reads_do_not_broadcast(self, router):
        received = []
        router.add_listener(received.append)
        router.handle({"type": GET_TIMER_STATE})
        router.handle({"type": PAUSE_TIMER})  # no-op while idle
        assert received == []
