# stock_pulse/data/models/market_data.py
"""
Market data models for Socket.IO payloads and per-symbol state
"""
from typing import TypedDict, Optional, List, Any, Union
from dataclasses import dataclass, replace

# Epoch milliseconds as sent by the server (sometimes as a string)
EventTime = Union[int, float, str]


class MarketUpdate(TypedDict, total=False):
    """One entry of a market_update batch"""
    symbol: str
    price: Any
    percent_price_change: Optional[Any]
    open1m: Optional[Any]
    event_time: Optional[EventTime]


class TickData(TypedDict, total=False):
    """Live tick pushed to a join_stock room"""
    symbol: str
    price: Any
    percent_price_change: Any
    event_time: EventTime


class SymbolSeed(TypedDict, total=False):
    """Entry of the request_market_data snapshot"""
    symbol: str
    name: Optional[str]
    price: Any
    open1m: Any
    change: Optional[Any]


class Candle(TypedDict, total=False):
    """Historical candle from request_history (extra OHLC fields are ignored)"""
    open_time: EventTime
    close: Any


class AckResponse(TypedDict, total=False):
    """Acknowledgement of request_market_data / request_history"""
    status: str
    data: List[Any]
    message: str


@dataclass
class SymbolState:
    """Reconciled view of one symbol, owned by SymbolStateStore"""
    symbol: str
    price: float = 0.0
    open1m: float = 0.0
    change: float = 0.0  # percent
    last_event_time: Optional[EventTime] = None
    name: Optional[str] = None

    def copy(self) -> 'SymbolState':
        return replace(self)
