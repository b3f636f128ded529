"""Unit tests for AsyncioScheduler and ManualScheduler."""

import asyncio

import pytest

from time_guard.infrastructure.adapters.asyncio_scheduler import AsyncioScheduler
from time_guard.infrastructure.stubs.manual_scheduler import ManualScheduler
from tests.helpers.fake_device_clock import FakeDeviceClock


class TestAsyncioScheduler:
    async def test_runs_periodically_until_closed(self) -> None:
        scheduler = AsyncioScheduler()
        ticks: list[int] = []
        reached = asyncio.Event()

        def tick() -> None:
            ticks.append(1)
            if len(ticks) >= 3:
                reached.set()

        scheduler.call_every(1, tick, name="tick")
        await asyncio.wait_for(reached.wait(), timeout=2)
        await scheduler.aclose()

        assert len(ticks) >= 3
        assert scheduler.handles == []

    async def test_callback_errors_do_not_stop_schedule(self) -> None:
        scheduler = AsyncioScheduler()
        calls: list[int] = []
        reached = asyncio.Event()

        async def flaky() -> None:
            calls.append(1)
            if len(calls) >= 2:
                reached.set()
            raise RuntimeError("boom")

        scheduler.call_every(1, flaky, name="flaky")
        await asyncio.wait_for(reached.wait(), timeout=2)
        await scheduler.aclose()

        assert len(calls) >= 2

    async def test_cancel_handle(self) -> None:
        scheduler = AsyncioScheduler()
        handle = scheduler.call_every(60_000, lambda: None, name="slow")

        handle.cancel()
        await scheduler.aclose()

        assert handle.cancelled
        assert handle.name == "slow"

    async def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            AsyncioScheduler().call_every(0, lambda: None, name="bad")


class TestManualScheduler:
    async def test_advance_runs_due_tasks_in_order(self) -> None:
        scheduler = ManualScheduler()
        order: list[str] = []
        scheduler.call_every(1_000, lambda: order.append("fast"), name="fast")
        scheduler.call_every(2_500, lambda: order.append("slow"), name="slow")

        await scheduler.advance(3_000)

        assert order == ["fast", "fast", "slow", "fast"]
        assert scheduler.now_ms == 3_000

    async def test_on_advance_moves_clock_before_each_run(self) -> None:
        clock = FakeDeviceClock(wall_ms=0)
        scheduler = ManualScheduler(on_advance=clock.advance)
        seen: list[float] = []
        scheduler.call_every(1_000, lambda: seen.append(clock.monotonic_ms()), name="t")

        await scheduler.advance(2_500)

        assert seen == [1_000, 2_000]
        assert clock.monotonic_ms() == 2_500

    async def test_fire_runs_immediately(self) -> None:
        scheduler = ManualScheduler()
        calls: list[int] = []

        async def job() -> None:
            calls.append(1)

        scheduler.call_every(60_000, job, name="job")

        assert await scheduler.fire("job") == 1
        assert await scheduler.fire("missing") == 0
        assert calls == [1]

    async def test_cancelled_task_not_run(self) -> None:
        scheduler = ManualScheduler()
        calls: list[int] = []
        handle = scheduler.call_every(1_000, lambda: calls.append(1), name="t")

        handle.cancel()
        await scheduler.advance(5_000)

        assert calls == []
        assert scheduler.get_handle("t") is None
