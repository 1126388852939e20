"""Production Poller — fixed-interval driver for the accumulator.

Invariants:
    - start() runs one tick immediately, then one every interval_seconds
    - start() while running and stop() while stopped are logged no-ops
    - stop() lets the in-flight tick finish before returning
    - A failed tick is logged; the loop keeps going

Design Decisions:
    - asyncio task + Event over a thread: ticks are IO-bound DB calls on the same
      event loop as the API, and Event.wait() doubles as an interruptible sleep
    - Ticks never overlap each other; force_update may overlap a tick and relies
      on the ledger's compare-and-set
"""

import asyncio
import logging

from shiftledger.core.domain_types import MachineId
from shiftledger.services.production_accumulator import (
    ProductionAccumulator, TickSummary,
)

logger = logging.getLogger(__name__)


class ProductionPoller:
    """On/off switch around ProductionAccumulator.run_tick."""

    def __init__(
        self, accumulator: ProductionAccumulator, interval_seconds: float = 30.0,
    ):
        self.accumulator = accumulator
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None
        self.ticks_completed = 0
        self.ticks_failed = 0
        self.last_summary: TickSummary | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Begin ticking. Must be called from a running event loop."""
        if self.is_running:
            logger.info("Production poller already running")
            return False
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run(self._stop_event), name="production-poller",
        )
        logger.info(
            "Production poller started (every %ss)", self.interval_seconds,
        )
        return True

    async def stop(self) -> bool:
        if not self.is_running:
            logger.info("Production poller already stopped")
            self._task = None
            return False
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Production poller stopped")
        return True

    async def force_update(self, machine_id: MachineId) -> bool:
        return await self.accumulator.force_update(machine_id)

    async def tick(self) -> TickSummary | None:
        """Run exactly one tick; failures are logged, not raised."""
        try:
            summary = await self.accumulator.run_tick()
        except Exception as e:
            self.ticks_failed += 1
            logger.error("Production tick failed: %s", e, exc_info=True)
            return None
        self.ticks_completed += 1
        self.last_summary = summary
        return summary

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(
                    stop_event.wait(), timeout=self.interval_seconds,
                )
            except asyncio.TimeoutError:
                continue

    def status(self) -> dict:
        return {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "ticks_completed": self.ticks_completed,
            "ticks_failed": self.ticks_failed,
            "last_tick": self.last_summary.to_dict() if self.last_summary else None,
        }
