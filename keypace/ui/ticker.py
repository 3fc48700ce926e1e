"""Periodic live-metrics refresh for a running session."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from keypace import config
from keypace.core.session import SessionController


class MetricsTicker(QObject):
    """Polls a running session and emits its live metrics.

    Only reads the controller. ``stop`` is safe to call on every exit path;
    the ticker also stops itself when it fires after the session has left the
    running state.
    """

    ticked = Signal(object)

    def __init__(self, interval_ms: int = config.TICK_INTERVAL_MS, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._controller: Optional[SessionController] = None
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self, controller: SessionController) -> None:
        self._controller = controller
        if not self._timer.isActive():
            self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        self._controller = None

    def _on_timeout(self) -> None:
        controller = self._controller
        if controller is None or not controller.is_running():
            self.stop()
            return
        self.ticked.emit(controller.live_metrics())
