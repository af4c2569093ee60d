"""SQLAlchemy ORM models for TicTask."""

from sqlalchemy import (
    BigInteger, Boolean, Column, Integer, String, Text
)
from sqlalchemy.orm import DeclarativeBase


SINGLETON_KEY = "default"


class Base(DeclarativeBase):
    pass


class TimerStateRow(Base):
    """Single-row table holding the live timer state."""

    __tablename__ = "timer_state"

    id = Column(String(16), primary_key=True, default=SINGLETON_KEY)
    time_remaining = Column(Integer, nullable=False, default=25 * 60)
    status = Column(String(10), nullable=False, default="idle")   # idle | running | paused | break
    mode = Column(String(10), nullable=False, default="focus")    # focus | break
    pomodoros_completed = Column(Integer, nullable=False, default=0)
    current_task_id = Column(String(64), nullable=True)
    last_update_time = Column(BigInteger, nullable=False, default=0)  # epoch ms
    ticking = Column(Boolean, nullable=False, default=False)          # countdown armed when written

    def __repr__(self) -> str:
        return (
            f"<TimerStateRow status={self.status} mode={self.mode} "
            f"remaining={self.time_remaining}>"
        )


class TimerConfigRow(Base):
    """Single-row table holding the configured durations."""

    __tablename__ = "timer_config"

    id = Column(String(16), primary_key=True, default=SINGLETON_KEY)
    focus_duration = Column(Integer, nullable=False, default=25 * 60)
    short_break_duration = Column(Integer, nullable=False, default=5 * 60)
    long_break_duration = Column(Integer, nullable=False, default=15 * 60)
    long_break_interval = Column(Integer, nullable=False, default=4)

    def __repr__(self) -> str:
        return (
            f"<TimerConfigRow focus={self.focus_duration} "
            f"short={self.short_break_duration} long={self.long_break_duration} "
            f"every={self.long_break_interval}>"
        )


class Session(Base):
    """One completed interval (focus or break).  Never updated."""

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    start_time = Column(BigInteger, nullable=False)   # epoch ms
    end_time = Column(BigInteger, nullable=False)     # epoch ms
    duration = Column(Integer, nullable=False, default=0)  # seconds
    session_type = Column(String(20), nullable=False)  # pomodoro | short_break | long_break
    completed = Column(Boolean, nullable=False, default=True)
    task_id = Column(String(64), nullable=True, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD

    def __repr__(self) -> str:
        return (
            f"<Session id={self.id} type={self.session_type} "
            f"date={self.date} duration={self.duration}>"
        )


class Task(Base):
    """A to-do item that focus sessions can be bound to."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="to_do", index=True)  # to_do | in_progress | completed
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)
    completed_at = Column(BigInteger, nullable=True)
    pomodoros_completed = Column(Integer, nullable=False, default=0)
    estimated_pomodoros = Column(Integer, nullable=True)
    due_date = Column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Task id={self.id} title={self.title!r} "
            f"pomodoros={self.pomodoros_completed}>"
        )
