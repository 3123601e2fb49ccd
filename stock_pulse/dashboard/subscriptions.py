# stock_pulse/dashboard/subscriptions.py
"""
Room subscriptions against the shared transport.

SubscriptionManager drives the symbol detail view:

    IDLE -> CONNECTING -> HISTORY_LOADING -> WAITING_FOR_TICKS -> LIVE
    any mounted state -> DISCONNECTED on transport disconnect
    any state -> IDLE on unmount / symbol switch

MarketWatchSubscription drives the symbol list view.

Both attach only their own listeners, and every deferred callback is
wrapped in a LifecycleToken guard so anything arriving after teardown is
dropped instead of leaking into the next subscription.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple

from stock_pulse.config import PulseConfig, get_config
from stock_pulse.exceptions import LifecycleRaceError, TransportAckError
from stock_pulse.utils import parse_ack
from stock_pulse.data.chart_window import ChartWindow
from stock_pulse.data.metrics import compute_metrics
from stock_pulse.data.models import (
    DetailSnapshot, MarketSnapshot, SubscriptionState, TickData
)
from stock_pulse.data.symbol_store import SymbolStateStore
from stock_pulse.data.socketio_transport import Transport
from .render_scheduler import FrameClock, RenderScheduler

logger = logging.getLogger(__name__)

STATUS_CONNECTING = "Connecting..."
STATUS_FETCHING_HISTORY = "Fetching History..."
STATUS_WAITING = "Waiting for Live Ticks..."
STATUS_LOADING_MARKETS = "Loading Markets..."
STATUS_WAITING_MARKETS = "Waiting for Market Updates..."
STATUS_LIVE = "Live"
STATUS_DISCONNECTED = "Disconnected"


class LifecycleToken:
    """Active until released; deferred callbacks check it before touching state"""

    def __init__(self, owner: str):
        self.owner = owner
        self.active = True

    def release(self):
        self.active = False

    def ensure_active(self, event: str):
        if not self.active:
            raise LifecycleRaceError(self.owner, event)

    def guard(self, event: str, func: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap func so calls after release are dropped (logged at DEBUG)"""
        def guarded(*args):
            try:
                self.ensure_active(event)
            except LifecycleRaceError as e:
                logger.debug(f"Dropped: {e}")
                return None
            return func(*args)
        return guarded


class _RoomSubscription:
    """Listener bookkeeping, state tracking and flush pacing shared by both views"""

    kind = 'room'

    def __init__(self, transport: Transport, clock: FrameClock,
                 config: Optional[PulseConfig] = None):
        self.transport = transport
        self.config = config or get_config()
        self.state = SubscriptionState.IDLE
        self.status = ''
        self.scheduler = RenderScheduler(
            clock, self._commit,
            min_interval=self.config.min_flush_interval,
            name=self.kind,
        )
        self._token: Optional[LifecycleToken] = None
        # Only the most recently issued acked request may deliver its response
        self._request_token: Optional[LifecycleToken] = None
        self._handlers: List[Tuple[str, Callable]] = []
        self._listeners: List[Callable[[Any], None]] = []
        self._joined = False

    @property
    def mounted(self) -> bool:
        return self._token is not None

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Receive a snapshot on every committed flush; returns unsubscribe"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _listen(self, event: str, handler: Callable):
        guarded = self._token.guard(event, handler)
        self.transport.on(event, guarded)
        self._handlers.append((event, guarded))

    def _detach(self):
        for event, handler in self._handlers:
            self.transport.off(event, handler)
        self._handlers.clear()

    def _request(self, event: str, *args: Any, handler: Callable[[Any], None]):
        """Emit an acked request; re-issuing it orphans the previous one's response"""
        if self._request_token is not None:
            self._request_token.release()
        request_token = LifecycleToken(f"{self._token.owner}:{event}")
        self._request_token = request_token
        self.transport.emit(
            event, *args,
            callback=request_token.guard(event, self._token.guard(event, handler)),
        )

    def _release(self):
        """Invalidate the mount and any request still in flight"""
        if self._request_token is not None:
            self._request_token.release()
            self._request_token = None
        self._token.release()

    def _set_state(self, state: SubscriptionState, status: Optional[str] = None):
        if state is not self.state:
            logger.info(f"[{self.kind}] {self.state.value} -> {state.value}")
        self.state = state
        if status is not None:
            self.status = status

    def _notify(self, snapshot: Any):
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"[{self.kind}] snapshot listener failed")

    def _commit(self):
        raise NotImplementedError


class SubscriptionManager(_RoomSubscription):
    """Symbol detail subscription: history seed, live ticks, bounded chart"""

    kind = 'detail'

    def __init__(self, transport: Transport, clock: FrameClock,
                 config: Optional[PulseConfig] = None,
                 store: Optional[SymbolStateStore] = None,
                 follow_market_updates: bool = False):
        super().__init__(transport, clock, config)
        self.store = store
        self.follow_market_updates = follow_market_updates
        self.chart = ChartWindow(
            max_points=self.config.max_chart_points,
            history_points=self.config.history_points,
            tz=self.config.display_timezone,
        )
        self.symbol: Optional[str] = None
        self.tick: Optional[TickData] = None
        self.history_loaded = False
        self.foreign_ticks = 0

    def mount(self, symbol: str):
        """Subscribe to symbol, tearing down any current subscription first"""
        symbol = (symbol or '').strip()
        if not symbol:
            logger.warning("Ignoring mount without a symbol")
            return

        if self.mounted:
            self.unmount()

        self.symbol = symbol
        self._token = LifecycleToken(f"detail:{symbol}")
        self.chart.reset()
        self.tick = None
        self.history_loaded = False
        self._joined = False

        self._listen('tick', self._on_tick)
        self._listen('connect', self._on_connect)
        self._listen('disconnect', self._on_disconnect)
        if self.follow_market_updates:
            self._listen('market_update', self._on_market_update)

        logger.info(f"Mounting detail view for {symbol}")
        if self.transport.connected:
            self._start()
        else:
            self._set_state(SubscriptionState.CONNECTING, STATUS_CONNECTING)
        self.scheduler.request_flush()

    def switch_symbol(self, symbol: str):
        self.mount(symbol)

    def unmount(self):
        """Release everything synchronously; nothing of this symbol survives"""
        if not self.mounted:
            return

        self.scheduler.cancel()
        self._release()
        self._detach()
        if self._joined and self.transport.connected:
            self.transport.emit('leave_stock', self.symbol)

        logger.info(f"Unmounted detail view for {self.symbol}")
        self.chart.reset()
        self._token = None
        self._joined = False
        self.tick = None
        self.symbol = None
        self.history_loaded = False
        self._set_state(SubscriptionState.IDLE, '')

    def snapshot(self) -> DetailSnapshot:
        points = tuple(self.chart.points)
        return DetailSnapshot(
            symbol=self.symbol or '',
            state=self.state,
            status=self.status,
            tick=dict(self.tick) if self.tick else None,
            points=points,
            metrics=compute_metrics(points, self.tick),
        )

    def _start(self):
        self._request_history()
        self._join()

    def _join(self):
        self.transport.emit('join_stock', self.symbol)
        self._joined = True

    def _request_history(self):
        self._set_state(SubscriptionState.HISTORY_LOADING, STATUS_FETCHING_HISTORY)
        self._request('request_history', self.symbol, handler=self._on_history)

    def _on_history(self, response: Any):
        try:
            candles = parse_ack('request_history', response)
        except TransportAckError as e:
            logger.warning(f"History for {self.symbol} unavailable: {e}")
            if self.state is SubscriptionState.HISTORY_LOADING:
                self._set_state(SubscriptionState.WAITING_FOR_TICKS, f"History unavailable: {e}")
            self.scheduler.request_flush()
            return

        seeded = self.chart.seed(candles)
        self.history_loaded = True
        logger.info(f"Loaded {seeded} history points for {self.symbol}")
        if self.state is SubscriptionState.HISTORY_LOADING:
            self._set_state(SubscriptionState.WAITING_FOR_TICKS, STATUS_WAITING)
        self.scheduler.request_flush()

    def _on_tick(self, tick: Any):
        if not isinstance(tick, dict):
            logger.debug(f"Ignoring malformed tick: {tick!r}")
            return
        if tick.get('symbol') != self.symbol:
            # Late event from a room we just left
            self.foreign_ticks += 1
            logger.debug(f"Discarded {tick.get('symbol')} tick while viewing {self.symbol}")
            return

        self.tick = tick
        self.chart.append_tick(tick)
        if self.store is not None:
            self.store.apply(tick)
        if self.state is not SubscriptionState.LIVE:
            self._set_state(SubscriptionState.LIVE, STATUS_LIVE)
        self.scheduler.request_flush()

    def _on_market_update(self, updates: Any):
        if not isinstance(updates, list):
            return
        appended = 0
        for update in updates:
            if isinstance(update, dict) and update.get('symbol') == self.symbol:
                self.chart.append_tick(update)
                appended += 1
        if appended:
            self.scheduler.request_flush()

    def _on_connect(self):
        if self.state is SubscriptionState.CONNECTING:
            self._start()
        elif self.state is SubscriptionState.DISCONNECTED:
            logger.info(f"Reconnected, re-joining {self.symbol}")
            self._join()
            if self.history_loaded:
                self._set_state(SubscriptionState.WAITING_FOR_TICKS, STATUS_WAITING)
            else:
                self._request_history()
        self.scheduler.request_flush()

    def _on_disconnect(self):
        self._joined = False
        self._set_state(SubscriptionState.DISCONNECTED, STATUS_DISCONNECTED)
        self.scheduler.request_flush()

    def _commit(self):
        self.chart.flush()
        self._notify(self.snapshot())


class MarketWatchSubscription(_RoomSubscription):
    """Symbol list subscription: snapshot seed plus market_update batches"""

    kind = 'market'

    def __init__(self, transport: Transport, clock: FrameClock,
                 store: SymbolStateStore, config: Optional[PulseConfig] = None):
        super().__init__(transport, clock, config)
        self.store = store
        self.data_loaded = False

    def mount(self):
        if self.mounted:
            return
        self._token = LifecycleToken('market_watch')
        self._joined = False

        self._listen('market_update', self._on_market_update)
        self._listen('connect', self._on_connect)
        self._listen('disconnect', self._on_disconnect)

        logger.info("Mounting market watch")
        if self.transport.connected:
            self._start()
        else:
            self._set_state(SubscriptionState.CONNECTING, STATUS_CONNECTING)
        self.scheduler.request_flush()

    def unmount(self):
        if not self.mounted:
            return
        self.scheduler.cancel()
        self._release()
        self._detach()
        if self._joined and self.transport.connected:
            self.transport.emit('leave_market_watch')
        self._token = None
        self._joined = False
        self._set_state(SubscriptionState.IDLE, '')
        logger.info("Unmounted market watch")

    def snapshot(self) -> MarketSnapshot:
        return MarketSnapshot(
            state=self.state,
            status=self.status,
            states=tuple(self.store.snapshot()),
        )

    def _start(self):
        self.transport.emit('join_market_watch')
        self._joined = True
        if self.data_loaded:
            self._set_state(SubscriptionState.WAITING_FOR_TICKS, STATUS_WAITING_MARKETS)
            return
        self._set_state(SubscriptionState.HISTORY_LOADING, STATUS_LOADING_MARKETS)
        self._request('request_market_data', handler=self._on_market_data)

    def _on_market_data(self, response: Any):
        try:
            seeds = parse_ack('request_market_data', response)
        except TransportAckError as e:
            logger.warning(f"Error fetching stocks: {e}")
            if self.state is SubscriptionState.HISTORY_LOADING:
                self._set_state(SubscriptionState.WAITING_FOR_TICKS, f"Error fetching stocks: {e}")
            self.scheduler.request_flush()
            return

        self.store.initialize(seeds)
        self.data_loaded = True
        if self.state is SubscriptionState.HISTORY_LOADING:
            self._set_state(SubscriptionState.WAITING_FOR_TICKS, STATUS_WAITING_MARKETS)
        self.scheduler.request_flush()

    def _on_market_update(self, updates: Any):
        self.store.apply_batch(updates)
        if self.state is not SubscriptionState.LIVE:
            self._set_state(SubscriptionState.LIVE, STATUS_LIVE)
        self.scheduler.request_flush()

    def _on_connect(self):
        if self.state in (SubscriptionState.CONNECTING, SubscriptionState.DISCONNECTED):
            self._start()
            self.scheduler.request_flush()

    def _on_disconnect(self):
        self._joined = False
        self._set_state(SubscriptionState.DISCONNECTED, STATUS_DISCONNECTED)
        self.scheduler.request_flush()

    def _commit(self):
        self.store.publish()
        self._notify(self.snapshot())
