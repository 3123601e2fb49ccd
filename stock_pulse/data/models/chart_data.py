# stock_pulse/data/models/chart_data.py
"""
Chart data models
"""
from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class ChartPoint:
    """Single chart sample; time is already formatted for display"""
    time: str
    price: float


@dataclass(frozen=True)
class ChartMetrics:
    """Derived figures for a chart window; None means 'no data', never 0"""
    high: Optional[float]
    low: Optional[float]
    points: int
    open_reference: Optional[float]
    last_price: Optional[float]
    change: float
