"""
Test per PollJob e MonitorRegistry con intervalli di pochi millisecondi.
"""
import asyncio
from unittest.mock import AsyncMock

from flight_monitor.services.registry import MonitorRegistry, MonitorState, PollJob

_INTERVAL = 0.01


async def _wait_for_ticks(job: PollJob, n: int, timeout: float = 2.0) -> None:
    async def _poll():
        while job.ticks_run < n:
            await asyncio.sleep(_INTERVAL / 2)
    await asyncio.wait_for(_poll(), timeout)


class TestPollJob:

    async def test_ticks_repeatedly(self):
        tick = AsyncMock()
        job = PollJob("m1", _INTERVAL, tick)
        job.start()
        assert job.state is MonitorState.POLLING

        await _wait_for_ticks(job, 3)
        job.stop()
        await job.task

        assert tick.await_count >= 3

    async def test_first_tick_waits_one_interval(self):
        tick = AsyncMock()
        job = PollJob("m1", 60, tick)
        job.start()
        await asyncio.sleep(0.05)
        job.stop()
        await job.task

        tick.assert_not_awaited()
        assert job.state is MonitorState.STOPPED

    async def test_stop_prevents_further_ticks(self):
        tick = AsyncMock()
        job = PollJob("m1", _INTERVAL, tick)
        job.start()
        await _wait_for_ticks(job, 1)
        job.stop()
        await job.task

        count = tick.await_count
        await asyncio.sleep(_INTERVAL * 5)
        assert tick.await_count == count

    async def test_stop_lets_running_tick_finish(self):
        started = asyncio.Event()
        release = asyncio.Event()
        finished = []

        async def slow_tick():
            started.set()
            await release.wait()
            finished.append(True)

        job = PollJob("m1", _INTERVAL, slow_tick)
        job.start()
        await asyncio.wait_for(started.wait(), 2)

        job.stop()
        release.set()
        await job.task

        assert finished == [True]
        assert job.ticks_run == 1

    async def test_failing_tick_keeps_polling(self):
        tick = AsyncMock(side_effect=[RuntimeError("amadeus down"), None, None])
        job = PollJob("m1", _INTERVAL, tick)
        job.start()

        await _wait_for_ticks(job, 3)
        job.stop()
        await job.task

        assert tick.await_count >= 3


class TestMonitorRegistry:

    async def test_register_and_stop(self):
        registry = MonitorRegistry()
        job = PollJob("m1", 60, AsyncMock())
        registry.register(job)

        assert "m1" in registry
        assert len(registry) == 1
        assert registry.get("m1") is job

        assert registry.stop("m1") is True
        assert "m1" not in registry
        assert job.state is MonitorState.STOPPED
        await job.task

    async def test_stop_unknown_or_twice_is_noop(self):
        registry = MonitorRegistry()
        assert registry.stop("missing") is False

        registry.register(PollJob("m1", 60, AsyncMock()))
        assert registry.stop("m1") is True
        assert registry.stop("m1") is False

    async def test_register_same_id_replaces_previous_job(self):
        registry = MonitorRegistry()
        first = PollJob("m1", 60, AsyncMock())
        second = PollJob("m1", 60, AsyncMock())

        registry.register(first)
        registry.register(second)

        assert registry.get("m1") is second
        assert first.state is MonitorState.STOPPED
        await first.task
        await registry.shutdown()

    async def test_shutdown_stops_everything(self):
        registry = MonitorRegistry()
        jobs = [PollJob(f"m{i}", 60, AsyncMock()) for i in range(3)]
        for job in jobs:
            registry.register(job)

        await registry.shutdown()

        assert len(registry) == 0
        assert all(job.task.done() for job in jobs)
