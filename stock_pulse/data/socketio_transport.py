# stock_pulse/data/socketio_transport.py
"""
Socket.IO transport handle shared by every view.

Wraps python-socketio's AsyncClient behind a small on/off/once/emit surface
so subscriptions can attach and detach their own listeners without touching
anyone else's. All handlers run on the client's asyncio loop.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import socketio
from socketio import exceptions as sio_exceptions

from stock_pulse.config import PulseConfig, get_config

logger = logging.getLogger(__name__)

Handler = Callable[..., None]
AckCallback = Callable[[Any], None]

# Server-pushed events this dashboard listens to
INBOUND_EVENTS = ('market_update', 'tick')


class Transport(Protocol):
    """What subscriptions need from the shared connection"""

    @property
    def connected(self) -> bool: ...

    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str, handler: Handler) -> None: ...

    def once(self, event: str, handler: Handler) -> None: ...

    def emit(self, event: str, *args: Any, callback: Optional[AckCallback] = None) -> None: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def wait(self) -> None: ...


class SocketIOTransport:
    """
    Socket.IO client with per-listener registration.

    Reconnection is left to python-socketio; this class only relays the
    connect/disconnect signals it reports.
    """

    def __init__(self, config: Optional[PulseConfig] = None,
                 client: Optional[socketio.AsyncClient] = None):
        self.config = config or get_config()
        self.client = client or socketio.AsyncClient(
            reconnection=self.config.reconnection,
            logger=False,
        )
        # event -> [(handler, once)]
        self._listeners: Dict[str, List[Tuple[Handler, bool]]] = defaultdict(list)
        self._tasks = set()

        self.client.on('connect', self._on_connect)
        self.client.on('disconnect', self._on_disconnect)
        for event in INBOUND_EVENTS:
            self.client.on(event, self._make_relay(event))

        logger.info(f"Socket.IO transport created for {self.config.server_url}")

    @property
    def connected(self) -> bool:
        return bool(self.client.connected)

    async def connect(self):
        """Open the connection (raises socketio ConnectionError on failure)"""
        logger.info(f"Connecting to {self.config.server_url} via {self.config.transports}")
        await self.client.connect(self.config.server_url, transports=self.config.transports)

    async def disconnect(self):
        logger.info("Disconnecting transport")
        await self.client.disconnect()
        for task in list(self._tasks):
            task.cancel()

    async def wait(self):
        """Block until the connection ends for good"""
        await self.client.wait()

    # Listener registry

    def on(self, event: str, handler: Handler):
        self._listeners[event].append((handler, False))

    def once(self, event: str, handler: Handler):
        self._listeners[event].append((handler, True))

    def off(self, event: str, handler: Handler):
        """Remove every registration of this handler for this event, and nothing else"""
        remaining = [entry for entry in self._listeners.get(event, []) if entry[0] != handler]
        if remaining:
            self._listeners[event] = remaining
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def dispatch(self, event: str, *args: Any):
        """Call listeners registered for event, dropping one-shot ones first"""
        entries = list(self._listeners.get(event, []))
        if not entries:
            return
        once = [entry for entry in entries if entry[1]]
        if once:
            self._listeners[event] = [entry for entry in self._listeners[event] if not entry[1]]

        for handler, _ in entries:
            try:
                handler(*args)
            except Exception:
                logger.exception(f"Listener for {event} failed")

    async def _on_connect(self):
        logger.info("Transport connected")
        self.dispatch('connect')

    async def _on_disconnect(self, *reason):
        logger.warning(f"Transport disconnected {reason if reason else ''}".rstrip())
        self.dispatch('disconnect')

    def _make_relay(self, event: str):
        async def relay(*args):
            self.dispatch(event, *args)
        return relay

    # Outbound

    def emit(self, event: str, *args: Any, callback: Optional[AckCallback] = None):
        """
        Fire-and-forget emit from synchronous code.
        With a callback, the ack (or an error ack on timeout/failure) is
        delivered to it on the loop.
        """
        data = _pack(args)
        if callback is None:
            self._spawn(self._emit(event, data))
        else:
            self._spawn(self._call(event, data, callback))

    async def _emit(self, event: str, data: Any):
        try:
            await self.client.emit(event, data)
        except sio_exceptions.SocketIOError as e:
            logger.warning(f"Emit {event} failed: {e}")

    async def _call(self, event: str, data: Any, callback: AckCallback):
        try:
            response = await self.client.call(event, data, timeout=self.config.ack_timeout)
        except sio_exceptions.TimeoutError:
            logger.warning(f"No ack for {event} within {self.config.ack_timeout}s")
            response = {'status': 'error', 'message': f"{event} timed out"}
        except sio_exceptions.SocketIOError as e:
            logger.warning(f"Request {event} failed: {e}")
            response = {'status': 'error', 'message': f"{event} failed: {e}"}

        try:
            callback(response)
        except Exception:
            logger.exception(f"Ack callback for {event} failed")

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task


def _pack(args: Tuple[Any, ...]) -> Any:
    """socket.io payload for positional args: none, single value, or tuple"""
    if not args:
        return None
    if len(args) == 1:
        return args[0]
    return tuple(args)
