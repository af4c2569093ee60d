"""Allow running TicTask as a module: python -m tictask."""

import logging
import sys

from PyQt6.QtGui import QColor, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QApplication, QMenu, QSystemTrayIcon
from sqlalchemy.exc import SQLAlchemyError

from .database.db import configure_engine, init_db
from .messages import (
    MessageRouter,
    PAUSE_TIMER,
    RESET_TIMER,
    SKIP_BREAK,
    START_BREAK,
    START_TIMER,
)
from .notifications import TrayNotifier
from .settings import load_settings
from .timer.config_reconciler import ConfigReconciler
from .timer.engine import TimerEngine
from .timer.supervisor import LivenessSupervisor

logger = logging.getLogger(__name__)


def _make_icon() -> QIcon:
    # generated placeholder, accent tomato circle
    icon = QPixmap(256, 256)
    icon.fill(QColor(0, 0, 0, 0))
    p = QPainter(icon)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    p.setBrush(QColor("#F38BA8"))
    p.setPen(QColor("#F38BA8").darker(120))
    p.drawEllipse(16, 16, 224, 224)
    p.end()
    return QIcon(icon)


def _fmt_time(seconds: int) -> str:
    m, s = divmod(max(0, seconds), 60)
    return f"{m}:{s:02d}"


def _send(router: MessageRouter, tray, message_type: str) -> None:
    """Run one tray-menu command; a failure is reported, not raised."""
    try:
        router.handle({"type": message_type})
    except (SQLAlchemyError, ValueError):
        logger.exception("Tray command %s failed", message_type)
        tray.showMessage("TicTask", "That didn't work. See the log for details.")


def _build_tray_menu(router: MessageRouter, app: QApplication, tray) -> QMenu:
    menu = QMenu()
    for label, message_type in (
        ("Start", START_TIMER),
        ("Pause", PAUSE_TIMER),
        ("Reset", RESET_TIMER),
        ("Start break", START_BREAK),
        ("Skip break", SKIP_BREAK),
    ):
        action = menu.addAction(label)
        action.triggered.connect(
            lambda _checked=False, t=message_type: _send(router, tray, t)
        )
    menu.addSeparator()
    menu.addAction("Quit").triggered.connect(app.quit)
    return menu


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if settings.db_url:
        configure_engine(settings.db_url)
    init_db()

    app = QApplication(sys.argv)
    app.setApplicationName("TicTask")
    app.setOrganizationName("TicTask")
    app.setQuitOnLastWindowClosed(False)

    tray = QSystemTrayIcon(_make_icon(), app)
    tray.setToolTip("TicTask — Ready")

    engine = TimerEngine(
        notifier=TrayNotifier(tray, settings),
        tick_interval_ms=settings.tick_interval_ms,
    )
    router = MessageRouter(engine, ConfigReconciler(engine))
    router.add_listener(
        lambda update: tray.setToolTip(
            f"TicTask — {update['state']['status']} "
            f"{_fmt_time(update['state']['timeRemaining'])}"
        )
    )

    menu = _build_tray_menu(router, app, tray)
    tray.setContextMenu(menu)
    tray.show()

    supervisor = LivenessSupervisor(
        engine, interval_ms=settings.liveness_interval_ms
    )
    supervisor.start()
    logger.info("TicTask ready (%s)", engine.state.status.value)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
