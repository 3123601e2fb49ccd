# stock_pulse/data/metrics.py
"""
Derived figures for a chart window and the latest tick.

Pure function: recomputed on every committed flush, no side effects.
"""
from typing import Optional, Sequence

import numpy as np

from stock_pulse.utils import optional_number, percent_change, to_number
from .models import ChartMetrics, ChartPoint, TickData


def compute_metrics(points: Sequence[ChartPoint],
                    latest_tick: Optional[TickData] = None) -> ChartMetrics:
    """
    high/low/open_reference are None for an empty window.
    change prefers the tick's own percent change, then the move of the last
    price against the first point in the window, then 0.
    """
    prices = np.fromiter((point.price for point in points), dtype=float, count=len(points))

    if prices.size:
        high: Optional[float] = float(prices.max())
        low: Optional[float] = float(prices.min())
        open_reference: Optional[float] = float(prices[0])
    else:
        high = low = open_reference = None

    if latest_tick:
        last_price: Optional[float] = to_number(latest_tick.get('price'), field='price')
    elif prices.size:
        last_price = float(prices[-1])
    else:
        last_price = None

    change = None
    if latest_tick:
        change = optional_number(latest_tick.get('percent_price_change'), 'percent_price_change')
    if change is None and last_price is not None and open_reference:
        change = percent_change(last_price, open_reference)

    return ChartMetrics(
        high=high,
        low=low,
        points=int(prices.size),
        open_reference=open_reference,
        last_price=last_price,
        change=change if change is not None else 0.0,
    )
