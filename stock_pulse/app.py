# stock_pulse/app.py
"""
Wires the shared transport, the symbol store, both subscriptions and the
terminal dashboard into one application.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from stock_pulse.config import PulseConfig, get_config
from stock_pulse.data.symbol_store import SymbolStateStore
from stock_pulse.data.preferences import PreferencesStore
from stock_pulse.data.socketio_transport import SocketIOTransport
from stock_pulse.dashboard.render_scheduler import AsyncioFrameClock, FrameClock
from stock_pulse.dashboard.subscriptions import MarketWatchSubscription, SubscriptionManager
from stock_pulse.dashboard.console import ConsoleDashboard

logger = logging.getLogger(__name__)


class StockPulseApp:
    """
    [CLASS SUMMARY]
    Purpose: Run the live dashboard against one Socket.IO server
    Responsibilities:
        - Own the shared transport and symbol store
        - Mount the market watch and the detail subscription
        - Feed committed snapshots to the dashboard
        - Tear everything down in order on shutdown
    Usage:
        app = StockPulseApp(get_config())
        asyncio.run(app.run(symbol='BTC'))
    """

    def __init__(self, config: Optional[PulseConfig] = None,
                 transport=None,
                 clock: Optional[FrameClock] = None,
                 dashboard: Optional[ConsoleDashboard] = None,
                 preferences: Optional[PreferencesStore] = None,
                 follow_market_updates: bool = False,
                 query: str = ''):
        self.config = config or get_config()
        self.transport = transport or SocketIOTransport(self.config)
        self.clock = clock or AsyncioFrameClock(self.config.frame_interval)
        self.store = SymbolStateStore()
        self.preferences = preferences or PreferencesStore(self.config.preferences_path)
        self.dashboard = dashboard or ConsoleDashboard(
            preferences=self.preferences,
            query=query,
            list_limit=self.config.list_limit,
        )

        self.market = MarketWatchSubscription(self.transport, self.clock, self.store, self.config)
        self.detail = SubscriptionManager(
            self.transport, self.clock, self.config,
            store=self.store,
            follow_market_updates=follow_market_updates,
        )

        self._unsubscribers: List[Callable[[], None]] = [
            self.market.subscribe(self.dashboard.update_market),
            self.detail.subscribe(self.dashboard.update_detail),
        ]

    def start(self, symbol: Optional[str] = None):
        """Mount subscriptions; before connecting they wait in CONNECTING"""
        self.market.mount()
        if symbol:
            self.open_detail(symbol)

    def open_detail(self, symbol: str):
        logger.info(f"Opening detail view for {symbol}")
        self.detail.switch_symbol(symbol)

    def close_detail(self):
        self.detail.unmount()
        self.dashboard.update_detail(None)

    async def run(self, symbol: Optional[str] = None):
        """Connect and render until the transport closes for good"""
        self.start(symbol)
        with self.dashboard:
            try:
                await self.transport.connect()
                await self.transport.wait()
            finally:
                await self.shutdown()

    async def shutdown(self):
        logger.info("Shutting down")
        self.detail.unmount()
        self.market.unmount()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        if self.transport.connected:
            # Let the leave emits go out before closing
            await asyncio.sleep(0)
            await self.transport.disconnect()
