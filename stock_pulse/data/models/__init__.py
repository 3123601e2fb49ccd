# stock_pulse/data/models/__init__.py
from .market_data import (
    MarketUpdate, TickData, SymbolSeed, Candle, AckResponse, SymbolState
)
from .chart_data import ChartPoint, ChartMetrics
from .snapshots import SubscriptionState, DetailSnapshot, MarketSnapshot

__all__ = [
    'MarketUpdate', 'TickData', 'SymbolSeed', 'Candle', 'AckResponse',
    'SymbolState', 'ChartPoint', 'ChartMetrics',
    'SubscriptionState', 'DetailSnapshot', 'MarketSnapshot'
]
