# stock_pulse/data/chart_window.py
"""
Bounded, time-ordered chart window for the symbol a view is subscribed to.

Live points go into a pending buffer first and are merged into the window
only when a flush commits, so a burst of ticks costs one merge per frame.
"""
import logging
from collections import deque
from typing import Any, Deque, List

from stock_pulse.utils import format_event_time, to_number
from .history import candles_to_points
from .models import ChartPoint, TickData

logger = logging.getLogger(__name__)


class PendingFlushBuffer:
    """Unflushed points in arrival order, bounded to the window size"""

    def __init__(self, max_points: int):
        # Anything older than max_points would be evicted on merge anyway
        self._points: Deque[ChartPoint] = deque(maxlen=max_points)

    def __len__(self) -> int:
        return len(self._points)

    def push(self, point: ChartPoint):
        self._points.append(point)

    def drain(self) -> List[ChartPoint]:
        """Return everything buffered and clear in one step"""
        points = list(self._points)
        self._points.clear()
        return points

    def clear(self):
        self._points.clear()


class ChartWindow:
    """Sliding window of at most max_points points, oldest evicted first"""

    def __init__(self, max_points: int = 100, history_points: int = 50, tz=None):
        self.max_points = max(1, int(max_points))
        self.history_points = max(0, int(history_points))
        self.tz = tz
        self._points: Deque[ChartPoint] = deque(maxlen=self.max_points)
        self._pending = PendingFlushBuffer(self.max_points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> List[ChartPoint]:
        return list(self._points)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def seed(self, history: List[Any]) -> int:
        """
        Pre-populate from the tail of the history response.
        History is older than any live point already merged, so it goes in front.
        """
        seeded = candles_to_points(history, self.history_points, self.tz)
        if not seeded:
            return 0

        live = list(self._points)
        self._points.clear()
        self._points.extend(seeded + live)

        logger.debug(f"Seeded {len(seeded)} history points ({len(live)} live kept)")
        return len(seeded)

    def append(self, point: ChartPoint):
        self._pending.push(point)

    def append_tick(self, tick: TickData) -> ChartPoint:
        """Buffer a tick as a point labelled HH:MM:SS from its event time"""
        point = ChartPoint(
            time=format_event_time(tick.get('event_time'), with_seconds=True, tz=self.tz),
            price=to_number(tick.get('price'), field='price'),
        )
        self.append(point)
        return point

    def flush(self) -> int:
        """Merge buffered points in arrival order; returns how many were merged"""
        pending = self._pending.drain()
        self._points.extend(pending)
        return len(pending)

    def reset(self):
        self._pending.clear()
        self._points.clear()
