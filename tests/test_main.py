"""Tests for the tray entry point's command dispatch."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tictask.__main__ import _fmt_time, _send
from tictask.messages import MessageRouter, START_TIMER
from tictask.timer.config_reconciler import ConfigReconciler
from tictask.timer.state import TimerStatus


class FakeTray:
    def __init__(self):
        self.messages = []

    def showMessage(self, title, message):
        self.messages.append((title, message))


class BrokenRouter:
    def __init__(self, error):
        self.error = error

    def handle(self, message):
        raise self.error


class TestSend:

    def test_runs_command(self, engine):
        tray = FakeTray()
        router = MessageRouter(engine, ConfigReconciler(engine))
        _send(router, tray, START_TIMER)
        assert engine.state.status == TimerStatus.RUNNING
        assert tray.messages == []

    @pytest.mark.parametrize("error", [
        SQLAlchemyError("database is locked"),
        ValueError("focus_duration must be a positive integer"),
    ])
    def test_failure_is_reported_not_raised(self, error):
        tray = FakeTray()
        _send(BrokenRouter(error), tray, START_TIMER)
        assert len(tray.messages) == 1
        assert tray.messages[0][0] == "TicTask"

    def test_other_errors_still_propagate(self):
        with pytest.raises(KeyError):
            _send(BrokenRouter(KeyError("type")), FakeTray(), START_TIMER)


def test_fmt_time():
    assert _fmt_time(1500) == "25:00"
    assert _fmt_time(65) == "1:05"
    assert _fmt_time(-3) == "0:00"
