# stock_pulse/dashboard/qt_clock.py
"""
Frame clock for embedding the render scheduler in a PyQt6 host.
Frames are single-shot QTimers on the GUI thread's event loop.
"""
import time
from typing import Callable

from PyQt6.QtCore import QObject, QTimer


class QtFrameHandle:
    """Cancellable single-shot frame"""

    def __init__(self, timer: QTimer):
        self._timer = timer

    def cancel(self):
        try:
            self._timer.stop()
            self._timer.deleteLater()
        except RuntimeError:
            # Already fired and deleted by Qt
            pass


class QtFrameClock(QObject):
    """Frames every frame_interval seconds, driven by the Qt event loop"""

    def __init__(self, frame_interval: float = 1.0 / 60.0, parent=None):
        super().__init__(parent)
        self.frame_interval_ms = max(1, int(round(frame_interval * 1000)))

    def now(self) -> float:
        return time.monotonic()

    def request_frame(self, callback: Callable[[], None]) -> QtFrameHandle:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(callback)
        timer.timeout.connect(timer.deleteLater)
        timer.start(self.frame_interval_ms)
        return QtFrameHandle(timer)
