"""Notification delivery through the system tray."""

from __future__ import annotations

from .settings import Settings


class TrayNotifier:
    """Shows ``(title, message)`` as a tray balloon.

    *tray_icon* is a ``QSystemTrayIcon`` (anything with ``showMessage``).
    """

    def __init__(self, tray_icon, settings: Settings) -> None:
        self._tray_icon = tray_icon
        self._settings = settings

    def __call__(self, title: str, message: str) -> None:
        if not self._settings.notifications_enabled:
            return
        self._tray_icon.showMessage(title, message)
