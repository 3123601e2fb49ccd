# stock_pulse/dashboard/render_scheduler.py
"""
Frame-aligned render coalescer.

Any number of request_flush() calls between two frames collapse into one
pending flush. When the frame arrives the flush only commits if at least
min_interval has passed since the previous commit; otherwise that frame is
skipped and the next request schedules a fresh one. Data is never lost by a
skipped frame: stores merge on arrival, chart points wait in their buffer.
"""
import asyncio
import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class FrameHandle(Protocol):
    def cancel(self) -> None: ...


class FrameClock(Protocol):
    """Source of frame boundaries and monotonic time (seconds)"""

    def now(self) -> float: ...

    def request_frame(self, callback: Callable[[], None]) -> FrameHandle: ...


class AsyncioFrameClock:
    """
    Fixed-interval frame grid on the asyncio loop.
    Stands in for a display refresh signal where none exists (terminal).
    """

    def __init__(self, frame_interval: float = 1.0 / 60.0,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.frame_interval = max(0.001, float(frame_interval))
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self.loop
        # Next boundary on the frame grid, not interval-from-now
        delay = self.frame_interval - (loop.time() % self.frame_interval)
        return loop.call_later(delay, callback)


class RenderScheduler:
    """Coalesces flush requests into at most one commit per frame and per min_interval"""

    def __init__(self, clock: FrameClock, on_flush: Callable[[], None],
                 min_interval: float = 0.040, name: str = 'render'):
        self.clock = clock
        self.on_flush = on_flush
        self.min_interval = max(0.0, float(min_interval))
        self.name = name

        self._pending: Optional[FrameHandle] = None
        self._last_commit: Optional[float] = None

        # Diagnostics
        self.commits = 0
        self.dropped = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def last_commit(self) -> Optional[float]:
        return self._last_commit

    def request_flush(self) -> bool:
        """Schedule a flush for the next frame; no-op (False) if one is already pending"""
        if self._pending is not None:
            return False
        self._pending = self.clock.request_frame(self._run)
        return True

    def cancel(self):
        """Abort a pending flush so nothing fires after teardown"""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            logger.debug(f"[{self.name}] pending flush cancelled")

    def _run(self):
        self._pending = None
        now = self.clock.now()

        if self._last_commit is not None and now - self._last_commit < self.min_interval:
            self.dropped += 1
            return

        self._last_commit = now
        self.commits += 1
        try:
            self.on_flush()
        except Exception:
            logger.exception(f"[{self.name}] flush failed")
