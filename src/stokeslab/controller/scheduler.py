"""
Frame Scheduler
===============
Calls the experiment's tick once per animation frame with the real time
elapsed since the previous frame.

Why is this file needed?
------------------------
1. Decoupling: The state machine never talks to Qt. The session asks a
   `FrameScheduler` for frames, and tests substitute a scheduler they step
   by hand.
2. No overlap: The Qt implementation uses a single-shot timer that is only
   re-armed after the callback has returned, so two ticks can never run at
   the same time and a slow frame cannot queue up duplicates.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from PySide6.QtCore import QObject, QTimer, QElapsedTimer

from stokeslab.config import FRAME_INTERVAL_MS

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    def start(self, callback: FrameCallback) -> None:
        ...

    def stop(self) -> None:
        ...

    def is_active(self) -> bool:
        ...


class QtFrameScheduler(QObject):
    """Drives frames from the Qt event loop."""

    def __init__(self, interval_ms: int = FRAME_INTERVAL_MS, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._callback: Optional[FrameCallback] = None
        self._active = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

        self._elapsed = QElapsedTimer()

    def set_interval(self, interval_ms: int) -> None:
        self._timer.setInterval(max(1, interval_ms))

    def start(self, callback: FrameCallback) -> None:
        self._callback = callback
        if self._active:
            return
        self._active = True
        self._elapsed.start()
        self._timer.start()
        logger.debug(f"Frame scheduler started ({self._timer.interval()} ms)")

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._timer.stop()
        logger.debug("Frame scheduler stopped")

    def is_active(self) -> bool:
        return self._active

    def _on_timeout(self) -> None:
        if not self._active or self._callback is None:
            return
        dt = self._elapsed.restart() / 1000.0
        self._callback(dt)
        # The callback may have stopped us (pause, measurement, bottom)
        if self._active:
            self._timer.start()
