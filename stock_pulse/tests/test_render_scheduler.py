# stock_pulse/tests/test_render_scheduler.py
"""
Module: RenderScheduler Tests
Purpose: Coalescing, minimum-interval gate, cancellation, asyncio frame clock
"""

import asyncio
from unittest.mock import Mock

import pytest

from stock_pulse.dashboard.render_scheduler import AsyncioFrameClock, RenderScheduler


@pytest.fixture
def on_flush():
    return Mock()


@pytest.fixture
def scheduler(clock, on_flush):
    return RenderScheduler(clock, on_flush, min_interval=0.040)


class TestCoalescing:
    """At most one pending flush"""

    def test_many_requests_one_commit(self, scheduler, clock, on_flush):
        results = [scheduler.request_flush() for _ in range(1000)]
        assert results[0] is True
        assert not any(results[1:])
        assert len(clock.requested) == 1

        clock.frame()
        on_flush.assert_called_once()
        assert scheduler.commits == 1
        assert not scheduler.pending

    def test_commits_spaced_by_min_interval(self, scheduler, clock, on_flush):
        commit_times = []
        on_flush.side_effect = lambda: commit_times.append(clock.now())

        # Continuous burst: 1000 requests every frame for 60 frames
        for _ in range(60):
            for _ in range(1000):
                scheduler.request_flush()
            clock.frame()

        assert scheduler.commits == len(commit_times)
        assert scheduler.commits + scheduler.dropped == 60
        gaps = [b - a for a, b in zip(commit_times, commit_times[1:])]
        assert gaps
        assert all(gap >= 0.040 - 1e-9 for gap in gaps)

    def test_dropped_frame_is_not_rescheduled(self, scheduler, clock, on_flush):
        scheduler.request_flush()
        clock.frame()
        scheduler.request_flush()
        clock.frame()  # 16 ms after the commit
        assert scheduler.dropped == 1
        assert not scheduler.pending
        assert clock.frame() == 0
        assert on_flush.call_count == 1

        # The next request schedules normally
        scheduler.request_flush()
        clock.frame(0.050)
        assert on_flush.call_count == 2

    def test_failing_flush_is_logged_not_raised(self, scheduler, clock, on_flush):
        on_flush.side_effect = RuntimeError("render failed")
        scheduler.request_flush()
        clock.frame()
        assert scheduler.commits == 1
        assert scheduler.request_flush() is True


class TestCancel:
    """Teardown"""

    def test_cancel_prevents_flush(self, scheduler, clock, on_flush):
        scheduler.request_flush()
        scheduler.cancel()
        assert not scheduler.pending
        clock.frame()
        on_flush.assert_not_called()

    def test_cancel_without_pending(self, scheduler):
        scheduler.cancel()
        assert not scheduler.pending


class TestAsyncioFrameClock:
    """Fixed-interval frames on the running loop"""

    @pytest.mark.asyncio
    async def test_frame_fires(self):
        clock = AsyncioFrameClock(frame_interval=0.005)
        fired = asyncio.Event()
        clock.request_frame(fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_scheduler_on_asyncio_clock(self):
        clock = AsyncioFrameClock(frame_interval=0.005)
        on_flush = Mock()
        scheduler = RenderScheduler(clock, on_flush, min_interval=0.0)
        for _ in range(100):
            scheduler.request_flush()
        await asyncio.sleep(0.05)
        on_flush.assert_called_once()

    @pytest.mark.asyncio
    async def test_cancelled_frame_does_not_fire(self):
        clock = AsyncioFrameClock(frame_interval=0.005)
        callback = Mock()
        handle = clock.request_frame(callback)
        handle.cancel()
        await asyncio.sleep(0.03)
        callback.assert_not_called()
