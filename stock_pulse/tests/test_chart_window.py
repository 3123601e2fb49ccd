# stock_pulse/tests/test_chart_window.py
"""
Module: ChartWindow Tests
Purpose: Bounded window, pending buffer merge, history seeding
"""

import pytz
import pytest

from stock_pulse.data.chart_window import ChartWindow, PendingFlushBuffer
from stock_pulse.data.history import candles_to_points
from stock_pulse.data.models import ChartPoint


def make_candles(count, start_ms=0):
    return [{'open_time': start_ms + i * 60_000, 'close': float(i), 'high': 0, 'low': 0}
            for i in range(count)]


@pytest.fixture
def window():
    return ChartWindow(max_points=100, history_points=50, tz=pytz.UTC)


class TestPendingBuffer:
    """Pending flush buffer"""

    def test_drain_clears(self):
        buffer = PendingFlushBuffer(3)
        buffer.push(ChartPoint('a', 1))
        buffer.push(ChartPoint('b', 2))
        assert [p.time for p in buffer.drain()] == ['a', 'b']
        assert len(buffer) == 0

    def test_bounded_drops_oldest(self):
        buffer = PendingFlushBuffer(2)
        for i in range(5):
            buffer.push(ChartPoint(str(i), i))
        assert [p.price for p in buffer.drain()] == [3, 4]


class TestWindow:
    """Appending and flushing"""

    def test_append_is_invisible_until_flush(self, window):
        window.append(ChartPoint('t', 1.0))
        assert len(window) == 0
        assert window.pending_count == 1
        assert window.flush() == 1
        assert window.points == [ChartPoint('t', 1.0)]
        assert window.pending_count == 0

    def test_never_exceeds_max_and_evicts_oldest(self, window):
        for i in range(250):
            window.append(ChartPoint(str(i), float(i)))
            if i % 7 == 0:
                window.flush()
        window.flush()
        assert len(window) == 100
        assert window.points[0].price == 150.0
        assert window.points[-1].price == 249.0

    def test_append_tick_formats_time_with_seconds(self, window):
        point = window.append_tick({'symbol': 'BTC', 'price': '101.5', 'event_time': 3_723_000})
        assert point == ChartPoint('01:02:03', 101.5)

    def test_append_tick_without_time_uses_now(self, window):
        point = window.append_tick({'symbol': 'BTC', 'price': 1})
        assert len(point.time) == 8
        assert point.time.count(':') == 2

    def test_reset_clears_everything(self, window):
        window.seed(make_candles(10))
        window.append(ChartPoint('x', 1))
        window.reset()
        assert len(window) == 0
        assert window.pending_count == 0


class TestSeed:
    """History seeding"""

    def test_seed_keeps_last_50(self, window):
        assert window.seed(make_candles(80)) == 50
        assert window.points[0].price == 30.0
        assert window.points[-1].price == 79.0

    def test_seed_then_60_live_is_chronological_tail(self, window):
        window.seed(make_candles(50))
        for i in range(60):
            window.append(ChartPoint(f"live{i}", 1000.0 + i))
        window.flush()

        points = window.points
        assert len(points) == 100
        # 110 total, the 10 oldest seed points are evicted
        assert points[0].price == 10.0
        assert points[39].price == 49.0
        assert points[40].price == 1000.0
        assert points[-1].price == 1059.0

    def test_seed_goes_before_live_points(self, window):
        window.append(ChartPoint('live', 500.0))
        window.flush()
        window.seed(make_candles(3))
        assert [p.price for p in window.points] == [0.0, 1.0, 2.0, 500.0]

    def test_empty_history(self, window):
        assert window.seed([]) == 0
        assert len(window) == 0


class TestCandlesToPoints:
    """History conversion"""

    def test_time_formatted_hh_mm(self):
        points = candles_to_points([{'open_time': 3_723_000, 'close': 5}], tz=pytz.UTC)
        assert points == [ChartPoint('01:02', 5.0)]

    def test_bad_close_becomes_zero(self):
        points = candles_to_points([{'open_time': 0, 'close': 'bad'}, {'open_time': 0}], tz=pytz.UTC)
        assert [p.price for p in points] == [0.0, 0.0]

    def test_non_mapping_entries_ignored(self):
        points = candles_to_points(['junk', None, {'open_time': 0, 'close': 1}], tz=pytz.UTC)
        assert len(points) == 1

    def test_empty(self):
        assert candles_to_points([]) == []
        assert candles_to_points(None) == []
