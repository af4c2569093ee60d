"""Database connection and session management."""

from pathlib import Path
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session as OrmSession

from .models import Base, SINGLETON_KEY, TimerConfigRow, TimerStateRow

# ── paths ────────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "TicTask"
DB_PATH = APP_SUPPORT_DIR / "tictask.db"

# ── engine & session factory (created lazily) ─────────────────────────────

_engine = None
_SessionFactory = None


def _get_engine():
    global _engine
    if _engine is None:
        APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(
            f"sqlite:///{DB_PATH}",
            connect_args={"check_same_thread": False},
            echo=False,
        )
    return _engine


def _get_session_factory():
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=_get_engine(), expire_on_commit=False)
    return _SessionFactory


# ── public API ────────────────────────────────────────────────────────────


def configure_engine(url: str) -> None:
    """Override the database connection URL.  Used by tests to point at
    an in-memory SQLite database, and by ``Settings.db_url``."""
    global _engine, _SessionFactory
    _SessionFactory = None
    _engine = create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )


def _run_migrations(engine) -> None:
    """Schema migrations for existing databases.

    Runs after ``create_all`` so new columns exist in fresh installs.
    Each migration is idempotent.
    """
    insp = inspect(engine)
    if "timer_state" not in set(insp.get_table_names()):
        return

    with engine.connect() as conn:
        # ── M1: add ticking column to timer_state ──────────────────────
        columns = {c["name"] for c in insp.get_columns("timer_state")}
        if "ticking" not in columns:
            conn.execute(text(
                "ALTER TABLE timer_state "
                "ADD COLUMN ticking BOOLEAN NOT NULL DEFAULT 0"
            ))
        conn.commit()


def init_db() -> None:
    """Create all tables and seed the singleton timer rows."""
    engine = _get_engine()
    Base.metadata.create_all(engine)
    _run_migrations(engine)

    factory = _get_session_factory()
    with factory() as session:
        if session.get(TimerConfigRow, SINGLETON_KEY) is None:
            session.add(TimerConfigRow(id=SINGLETON_KEY))
        if session.get(TimerStateRow, SINGLETON_KEY) is None:
            session.add(TimerStateRow(id=SINGLETON_KEY))
        session.commit()


@contextmanager
def get_session():
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    factory = _get_session_factory()
    session: OrmSession = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
