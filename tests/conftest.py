"""Shared pytest fixtures for TicTask tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from tictask.database.db import configure_engine, init_db
from tictask.timer.engine import TimerEngine

from helpers import T0, FakeClock, RecordingNotifier


@pytest.fixture(scope="session")
def qapp():
    """A single Qt application instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine(qapp, clock, notifier):
    """Fresh TimerEngine on the default config (1500/300/900, every 4)."""
    eng = TimerEngine(parent=None, clock=clock, notifier=notifier)
    yield eng
    eng._qt_timer.stop()
