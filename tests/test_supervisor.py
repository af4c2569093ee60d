"""Tests for restart detection and recovery."""

import pytest

from tictask.database.db import get_session
from tictask.database.models import Session as SessionRow
from tictask.database.store import TimerStore
from tictask.timer.engine import TimerEngine
from tictask.timer.state import TimerMode, TimerState, TimerStatus
from tictask.timer.supervisor import LivenessSupervisor

from helpers import T0, SignalCollector, complete_focus


def _persist(**overrides):
    fields = dict(
        time_remaining=600,
        status=TimerStatus.RUNNING,
        mode=TimerMode.FOCUS,
        pomodoros_completed=0,
        current_task_id=None,
        last_update_time=T0,
    )
    fields.update(overrides)
    TimerStore().save_state(TimerState(**fields))


@pytest.fixture
def restarted(qapp, clock):
    """A brand-new engine + supervisor, as after a process restart."""
    created = []

    def _make():
        engine = TimerEngine(clock=clock)
        supervisor = LivenessSupervisor(engine)
        created.append((engine, supervisor))
        return engine, supervisor

    yield _make
    for engine, supervisor in created:
        supervisor.stop()
        engine._qt_timer.stop()


class TestRecovery:

    def test_restart_mid_countdown_reconciles_gap(self, restarted, clock):
        _persist()
        clock.now = T0 + 45_000
        engine, supervisor = restarted()
        assert not engine.is_ticking

        assert supervisor.check() is True
        assert engine.state.time_remaining == 555
        assert engine.state.status == TimerStatus.RUNNING
        assert engine.is_ticking
        assert TimerStore().load_state().time_remaining == 555

    def test_recovery_keeps_bound_task(self, restarted, clock):
        _persist(current_task_id="task-9")
        clock.now = T0 + 10_000
        engine, supervisor = restarted()
        supervisor.check()
        assert engine.state.current_task_id == "task-9"

    def test_countdown_that_ran_out_while_down_completes(self, restarted, clock):
        _persist(time_remaining=600)
        clock.now = T0 + 700_000
        engine, supervisor = restarted()

        assert supervisor.check() is True
        state = engine.state
        assert state.status == TimerStatus.BREAK
        assert state.pomodoros_completed == 1
        assert state.time_remaining == 300
        assert not engine.is_ticking
        with get_session() as db:
            s = db.query(SessionRow).one()
            assert s.session_type == "pomodoro"
            assert s.end_time == T0 + 600_000

    def test_recovered_signal(self, restarted, clock):
        _persist()
        clock.now = T0 + 2_000
        engine, supervisor = restarted()
        c = SignalCollector()
        supervisor.recovered.connect(c)
        supervisor.check()
        assert c.last.time_remaining == 598

    def test_start_runs_first_pass_immediately(self, restarted, clock):
        _persist()
        clock.now = T0 + 45_000
        engine, supervisor = restarted()
        supervisor.start()
        assert supervisor.is_active
        assert engine.state.time_remaining == 555


class TestBreakRecovery:

    def _persist_ticking_break(self, **overrides):
        fields = dict(
            status=TimerStatus.BREAK,
            mode=TimerMode.BREAK,
            time_remaining=300,
            pomodoros_completed=1,
            ticking=True,
        )
        fields.update(overrides)
        _persist(**fields)

    def test_ticking_break_keeps_counting_through_restart(self, restarted, clock):
        self._persist_ticking_break()
        clock.now = T0 + 120_000
        engine, supervisor = restarted()
        assert supervisor.check() is True
        assert engine.is_ticking
        assert engine.state.status == TimerStatus.BREAK
        assert engine.state.time_remaining == 180

    def test_break_that_ran_out_while_down_completes(self, restarted, clock):
        self._persist_ticking_break()
        clock.now = T0 + 400_000
        engine, supervisor = restarted()
        assert supervisor.check() is True
        state = engine.state
        assert state.status == TimerStatus.IDLE
        assert state.mode == TimerMode.FOCUS
        assert state.time_remaining == 1500
        with get_session() as db:
            s = db.query(SessionRow).one()
            assert s.session_type == "short_break"
            assert s.end_time == T0 + 300_000

    def test_start_break_on_orphaned_break_counts_downtime(self, restarted, clock):
        self._persist_ticking_break()
        clock.now = T0 + 60_000
        engine, _ = restarted()
        assert engine.start_break().time_remaining == 240
        assert engine.is_ticking

    def test_break_ticking_flag_is_persisted(self, restarted, clock):
        engine, _ = restarted()
        complete_focus(engine, clock)
        assert TimerStore().load_state().ticking is False
        engine.start_break()
        assert TimerStore().load_state().ticking is True
        engine.pause()
        assert TimerStore().load_state().ticking is False


class TestNoRecovery:

    def test_idle_is_left_alone(self, restarted):
        engine, supervisor = restarted()
        assert supervisor.check() is False
        assert not engine.is_ticking

    def test_paused_is_left_alone(self, restarted, clock):
        _persist(status=TimerStatus.PAUSED)
        clock.now = T0 + 45_000
        engine, supervisor = restarted()
        assert supervisor.check() is False
        assert engine.state.time_remaining == 600

    def test_pending_break_is_left_alone(self, restarted, clock):
        _persist(status=TimerStatus.BREAK, mode=TimerMode.BREAK, time_remaining=300)
        clock.now = T0 + 45_000
        engine, supervisor = restarted()
        assert supervisor.check() is False
        assert not engine.is_ticking

    def test_live_ticking_engine_is_not_touched(self, restarted, clock):
        engine, supervisor = restarted()
        engine.start()
        clock.advance(3)
        before = engine.state
        assert supervisor.check() is False
        assert engine.state is before

    def test_second_pass_is_a_noop(self, restarted, clock):
        _persist()
        clock.now = T0 + 45_000
        engine, supervisor = restarted()
        supervisor.check()
        clock.advance(2)
        assert supervisor.check() is False
        assert engine.state.time_remaining == 555
