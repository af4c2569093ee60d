"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/TicTask/settings.json

Timer durations are not settings; they live in the database and change
through ``CONFIG_CHANGED``.

Usage::

    settings = load_settings()
    settings.notifications_enabled = False
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

logger = logging.getLogger(__name__)

# Same directory as the database (database/db.py)
APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "TicTask"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = True

    # ── timing ────────────────────────────────────────────────────────
    tick_interval_ms: int = 1000
    liveness_interval_ms: int = 5000

    # ── diagnostics ───────────────────────────────────────────────────
    log_level: str = "INFO"

    # ── storage ───────────────────────────────────────────────────────
    db_url: str | None = None              # None = default SQLite file


def load_settings(path: Path = SETTINGS_PATH) -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError):
        logger.warning("Unreadable settings at %s; using defaults", path, exc_info=True)
    return Settings()


def save_settings(settings: Settings, path: Path = SETTINGS_PATH) -> None:
    """Write settings to disk as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
