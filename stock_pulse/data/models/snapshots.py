# stock_pulse/data/models/snapshots.py
"""
Immutable values handed to the presentation layer on each committed flush
"""
from typing import Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from .chart_data import ChartPoint, ChartMetrics
from .market_data import SymbolState, TickData


class SubscriptionState(Enum):
    """Lifecycle of a room subscription"""
    IDLE = "IDLE"                              # Not mounted / released
    CONNECTING = "CONNECTING"                  # Waiting for the transport
    HISTORY_LOADING = "HISTORY_LOADING"        # History request in flight
    WAITING_FOR_TICKS = "WAITING_FOR_TICKS"    # Joined, no tick yet
    LIVE = "LIVE"                              # At least one tick accepted
    DISCONNECTED = "DISCONNECTED"              # Transport dropped


@dataclass(frozen=True)
class DetailSnapshot:
    """Symbol detail view state"""
    symbol: str
    state: SubscriptionState
    status: str
    tick: Optional[TickData]
    points: Tuple[ChartPoint, ...]
    metrics: ChartMetrics


@dataclass(frozen=True)
class MarketSnapshot:
    """Symbol list view state"""
    state: SubscriptionState
    status: str
    states: Tuple[SymbolState, ...]
