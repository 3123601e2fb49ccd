# stock_pulse/tests/test_metrics.py
"""
Module: Derived Metrics Tests
"""

import pytest

from stock_pulse.data.metrics import compute_metrics
from stock_pulse.data.models import ChartPoint


def points(*prices):
    return [ChartPoint(f"t{i}", float(p)) for i, p in enumerate(prices)]


class TestComputeMetrics:
    """compute_metrics"""

    def test_empty_window_has_no_extremes(self):
        metrics = compute_metrics([])
        assert metrics.high is None
        assert metrics.low is None
        assert metrics.open_reference is None
        assert metrics.last_price is None
        assert metrics.points == 0
        assert metrics.change == 0.0

    def test_high_low_reference(self):
        metrics = compute_metrics(points(10, 15, 8, 12))
        assert metrics.high == 15
        assert metrics.low == 8
        assert metrics.open_reference == 10
        assert metrics.last_price == 12
        assert metrics.points == 4
        assert metrics.change == pytest.approx(20.0)

    def test_tick_percent_change_preferred(self):
        tick = {'symbol': 'A', 'price': 11, 'percent_price_change': '-0.5'}
        metrics = compute_metrics(points(10, 12), tick)
        assert metrics.last_price == 11
        assert metrics.change == -0.5

    def test_tick_without_change_uses_reference(self):
        tick = {'symbol': 'A', 'price': 15}
        assert compute_metrics(points(10), tick).change == pytest.approx(50.0)

    def test_zero_reference_guards_to_zero(self):
        assert compute_metrics(points(0, 5)).change == 0.0

    def test_tick_with_empty_window(self):
        metrics = compute_metrics([], {'symbol': 'A', 'price': 3})
        assert metrics.last_price == 3
        assert metrics.high is None
        assert metrics.change == 0.0
