# stock_pulse/tests/conftest.py
"""
Shared fixtures: an in-memory transport and a manually advanced frame clock
"""
from collections import defaultdict

import pytest

from stock_pulse.config import PulseConfig
from stock_pulse.data.symbol_store import SymbolStateStore


class FakeTransport:
    """Records emits and holds ack callbacks until the test answers them"""

    def __init__(self, connected: bool = False):
        self.connected = connected
        self.listeners = defaultdict(list)
        self.emitted = []
        self.pending_acks = []

    def on(self, event, handler):
        self.listeners[event].append((handler, False))

    def once(self, event, handler):
        self.listeners[event].append((handler, True))

    def off(self, event, handler):
        self.listeners[event] = [e for e in self.listeners[event] if e[0] != handler]

    def listener_count(self, event):
        return len(self.listeners[event])

    def emit(self, event, *args, callback=None):
        self.emitted.append((event, args))
        if callback is not None:
            self.pending_acks.append((event, callback))

    def emitted_events(self):
        return [event for event, _ in self.emitted]

    def dispatch(self, event, *args):
        entries = list(self.listeners[event])
        self.listeners[event] = [e for e in self.listeners[event] if not e[1]]
        for handler, _ in entries:
            handler(*args)

    def ack(self, event, response):
        """Answer the oldest outstanding request for event"""
        for i, (pending_event, callback) in enumerate(self.pending_acks):
            if pending_event == event:
                del self.pending_acks[i]
                callback(response)
                return
        raise AssertionError(f"No outstanding {event} request")

    def simulate_connect(self):
        self.connected = True
        self.dispatch('connect')

    def simulate_disconnect(self):
        self.connected = False
        self.dispatch('disconnect')

    async def connect(self):
        self.simulate_connect()

    async def wait(self):
        return None

    async def disconnect(self):
        self.simulate_disconnect()


class ManualHandle:
    def __init__(self, clock, callback):
        self.clock = clock
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualFrameClock:
    """Frames fire only when the test calls frame()"""

    def __init__(self, start: float = 100.0, frame_interval: float = 1.0 / 60.0):
        self.time = start
        self.frame_interval = frame_interval
        self.requested = []

    def now(self):
        return self.time

    def request_frame(self, callback):
        handle = ManualHandle(self, callback)
        self.requested.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.requested if not h.cancelled]

    def frame(self, elapsed: float = None):
        """Advance one frame and run every callback requested before it"""
        self.time += self.frame_interval if elapsed is None else elapsed
        due, self.requested = self.requested, []
        fired = 0
        for handle in due:
            if not handle.cancelled:
                handle.callback()
                fired += 1
        return fired


@pytest.fixture
def config(tmp_path):
    return PulseConfig({
        'server_url': 'http://test:4000',
        'min_flush_interval': 0.040,
        'frame_interval': 1.0 / 60.0,
        'max_chart_points': 100,
        'history_points': 50,
        'display_timezone': 'UTC',
        'data_dir': str(tmp_path),
    })


@pytest.fixture
def transport():
    return FakeTransport(connected=True)


@pytest.fixture
def offline_transport():
    return FakeTransport(connected=False)


@pytest.fixture
def clock():
    return ManualFrameClock()


@pytest.fixture
def store():
    return SymbolStateStore()
