"""Notification and feedback collaborators of the timer engine.

The engine only talks to the two small interfaces below; concrete
implementations are handed to it at construction time so tests can swap
in fakes.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from PyQt6.QtCore import QObject, QTimer
from PyQt6.QtWidgets import QSystemTrayIcon

from .models import SoundOption

logger = logging.getLogger(__name__)

COMPLETION_TITLE = "Time's Up"


class NotificationGateway:
    """Completion notifications.  The base class does nothing and reports
    notifications as authorized."""

    def on_session_start(self, task_name: str, fire_at: float) -> None:
        """(Re)schedule the completion notice for epoch time *fire_at*."""

    def on_session_pause_or_cancel(self) -> None:
        """Drop any pending completion notice."""

    def on_session_complete(self, task_name: str) -> None:
        """Show the completion notice now."""

    def authorization_granted(self) -> bool:
        return True


class FeedbackGateway:
    """Local sound / alert feedback.  The base class is silent."""

    def play_completion(self, sound: SoundOption) -> None:
        pass

    def alert(self) -> None:
        """Fallback channel used when notifications are not authorized."""


class TrayNotifier(QObject, NotificationGateway):
    """Shows notices through a ``QSystemTrayIcon``.

    A pending notice is a single-shot ``QTimer``, so it only fires while the
    process is alive; the engine recomputes state on its own when control
    returns after a suspension.
    """

    def __init__(
        self,
        tray_icon: QSystemTrayIcon,
        parent: QObject | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(parent)
        self._tray_icon = tray_icon
        self._clock = clock
        self._pending_name: str | None = None
        self._pending = QTimer(self)
        self._pending.setSingleShot(True)
        self._pending.timeout.connect(self._on_pending_timeout)

    def on_session_start(self, task_name: str, fire_at: float) -> None:
        self.on_session_pause_or_cancel()
        delay = fire_at - self._clock()
        if delay <= 0:
            return
        self._pending_name = task_name
        self._pending.start(int(delay * 1000))

    def on_session_pause_or_cancel(self) -> None:
        self._pending.stop()
        self._pending_name = None

    def on_session_complete(self, task_name: str) -> None:
        self.on_session_pause_or_cancel()
        self._show(f"{task_name} finished.")

    def authorization_granted(self) -> bool:
        return (
            QSystemTrayIcon.isSystemTrayAvailable()
            and QSystemTrayIcon.supportsMessages()
            and self._tray_icon.isVisible()
        )

    @property
    def has_pending(self) -> bool:
        return self._pending.isActive()

    def _on_pending_timeout(self) -> None:
        name = self._pending_name or "Timer"
        self._pending_name = None
        self._show(f"{name} has finished.")

    def _show(self, body: str) -> None:
        logger.debug("Notification: %s", body)
        self._tray_icon.showMessage(COMPLETION_TITLE, body)
