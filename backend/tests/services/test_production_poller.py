"""Production Poller tests — start/stop lifecycle, tick cadence and failure survival.

Tests cover:
    - start() ticks immediately and is idempotent
    - stop() is idempotent and waits for the in-flight tick
    - A failing tick is counted and the loop keeps going
    - status() and force_update delegation
"""

import asyncio

from shiftledger.services.production_accumulator import TickSummary
from shiftledger.services.production_poller import ProductionPoller


class _FakeAccumulator:
    """Stands in for ProductionAccumulator; counts ticks."""

    def __init__(self, fail: bool = False):
        self.ticks = 0
        self.fail = fail
        self.ticked = asyncio.Event()
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()
        self.forced = []

    async def run_tick(self) -> TickSummary:
        self.ticks += 1
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        self.ticked.set()
        if self.fail:
            raise RuntimeError("database unavailable")
        return TickSummary(processed=2, updated=1, skipped=1)

    async def force_update(self, machine_id) -> bool:
        self.forced.append(machine_id)
        return True


async def test_start_ticks_immediately():
    accumulator = _FakeAccumulator()
    poller = ProductionPoller(accumulator, interval_seconds=60.0)

    assert poller.start() is True
    await asyncio.wait_for(accumulator.ticked.wait(), timeout=1.0)
    assert poller.is_running
    assert await poller.stop() is True

    assert accumulator.ticks == 1
    assert poller.ticks_completed == 1
    assert poller.last_summary.updated == 1


async def test_start_twice_is_a_no_op():
    poller = ProductionPoller(_FakeAccumulator(), interval_seconds=60.0)
    assert poller.start() is True
    assert poller.start() is False
    await poller.stop()


async def test_stop_when_stopped_is_a_no_op():
    poller = ProductionPoller(_FakeAccumulator(), interval_seconds=60.0)
    assert await poller.stop() is False
    assert not poller.is_running


async def test_stop_waits_for_in_flight_tick():
    accumulator = _FakeAccumulator()
    accumulator.gate = asyncio.Event()
    poller = ProductionPoller(accumulator, interval_seconds=60.0)

    poller.start()
    await asyncio.wait_for(accumulator.entered.wait(), timeout=1.0)
    stopper = asyncio.create_task(poller.stop())
    await asyncio.sleep(0.05)
    assert not stopper.done()

    accumulator.gate.set()
    assert await asyncio.wait_for(stopper, timeout=1.0) is True
    assert poller.ticks_completed == 1
    assert not poller.is_running


async def test_ticks_repeat_at_interval():
    accumulator = _FakeAccumulator()
    poller = ProductionPoller(accumulator, interval_seconds=0.01)

    poller.start()
    for _ in range(100):
        if accumulator.ticks >= 3:
            break
        await asyncio.sleep(0.01)
    await poller.stop()

    assert accumulator.ticks >= 3


async def test_failing_tick_does_not_stop_the_loop():
    accumulator = _FakeAccumulator(fail=True)
    poller = ProductionPoller(accumulator, interval_seconds=0.01)

    poller.start()
    for _ in range(100):
        if accumulator.ticks >= 2:
            break
        await asyncio.sleep(0.01)
    still_running = poller.is_running
    await poller.stop()

    assert still_running
    assert poller.ticks_failed >= 2
    assert poller.ticks_completed == 0
    assert poller.last_summary is None


async def test_status_and_restart():
    accumulator = _FakeAccumulator()
    poller = ProductionPoller(accumulator, interval_seconds=60.0)

    assert poller.status()["running"] is False
    assert poller.status()["last_tick"] is None

    await poller.tick()
    status = poller.status()
    assert status["ticks_completed"] == 1
    assert status["last_tick"] == {
        "processed": 2, "updated": 1, "skipped": 1, "failed": 0,
    }

    assert poller.start() is True
    await poller.stop()
    assert poller.start() is True
    await poller.stop()


async def test_force_update_delegates_to_accumulator():
    accumulator = _FakeAccumulator()
    poller = ProductionPoller(accumulator)
    assert await poller.force_update(7) is True
    assert accumulator.forced == [7]
