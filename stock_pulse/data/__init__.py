# stock_pulse/data/__init__.py
"""
State, chart and transport layer for the live dashboard
"""
from .symbol_store import SymbolStateStore
from .chart_window import ChartWindow, PendingFlushBuffer
from .history import candles_to_points
from .metrics import compute_metrics
from .preferences import PreferencesStore
from .socketio_transport import SocketIOTransport, Transport

__all__ = [
    'SymbolStateStore', 'ChartWindow', 'PendingFlushBuffer',
    'candles_to_points', 'compute_metrics', 'PreferencesStore',
    'SocketIOTransport', 'Transport'
]
