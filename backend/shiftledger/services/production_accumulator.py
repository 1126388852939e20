"""Production Accumulator — turns machine snapshots into per-shift ledger increments.

Invariants:
    - Every slice is measured against the persisted updated_at of the ledger row
    - ≤ 0 elapsed minutes → no write, no event, no alert
    - A machine's failure is logged with its context and never aborts the tick
    - Publish and alert failures never undo a committed ledger update
    - One DB session per machine per slice; nothing is cached between ticks

Design Decisions:
    - No per-machine lock: overlapping calls for one machine (tick vs. force update,
      or two processes) are resolved by the revision compare-and-set in ShiftLedger,
      so the loser observes a dropped slice instead of double counting
    - Routing: RUNNING + open operation → operation path; everything else tracked
      (RUNNING without operation, non-productive with a row) → fallback path
    - Machines in one tick run concurrently, bounded by a semaphore
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import datetime, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession

from shiftledger.core.domain_types import MachineId, UpdateSource, is_running
from shiftledger.core.errors import (
    ErrorContext, MissingShiftContextError, ShiftLedgerError,
)
from shiftledger.core.production_events import (
    ProductionUpdateEvent, build_update_event,
)
from shiftledger.core.repository_protocols import (
    AlertHook, Clock, EventPublisher, LedgerRepository, MachineSource,
    OperatorDirectory,
)
from shiftledger.core.shift_calendar import resolve_shift
from shiftledger.core.slice_accounting import (
    SlicePlan, operation_duration_minutes, plan_fallback_slice,
    plan_production_slice,
)
from shiftledger.core.snapshots import LedgerSnapshot, MachineSnapshot
from shiftledger.services.machine_source import SqlMachineSource
from shiftledger.services.operator_directory import SqlOperatorDirectory
from shiftledger.services.shift_ledger import SqlShiftLedger

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class AccumulationResult:
    """Outcome of one committed slice (or of opening a new shift row)."""
    machine_id: MachineId
    source: UpdateSource
    entry: LedgerSnapshot
    plan: SlicePlan | None
    created: bool
    event: ProductionUpdateEvent


@dataclass(frozen=True)
class TickSummary:
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


_UPDATED, _SKIPPED, _FAILED = "updated", "skipped", "failed"


class ProductionAccumulator:
    """Per-machine accumulation with injected storage, publisher, alert hook and clock."""

    def __init__(
        self,
        session_scope: SessionScope,
        publisher: EventPublisher,
        alert_hook: AlertHook,
        clock: Clock,
        facility_tz: tzinfo,
        fallback_operator_id: int | None = None,
        max_concurrency: int = 4,
    ):
        self.session_scope = session_scope
        self.publisher = publisher
        self.alert_hook = alert_hook
        self.clock = clock
        self.facility_tz = facility_tz
        self.fallback_operator_id = fallback_operator_id
        self.max_concurrency = max_concurrency

    # ─── Tick ───────────────────────────────────────────────────

    async def run_tick(self) -> TickSummary:
        """One pass over every tracked machine."""
        window = resolve_shift(self.clock.now(), self.facility_tz)
        async with self.session_scope() as db:
            source: MachineSource = SqlMachineSource(db)
            machines = await source.list_tracked(window)

        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._accumulate_guarded(m, semaphore) for m in machines),
        )
        summary = TickSummary(
            processed=len(outcomes),
            updated=outcomes.count(_UPDATED),
            skipped=outcomes.count(_SKIPPED),
            failed=outcomes.count(_FAILED),
        )
        logger.info(
            "Production tick: %d machines, %d updated, %d skipped, %d failed",
            summary.processed, summary.updated, summary.skipped, summary.failed,
            extra={"shift_type": window.shift_type.value},
        )
        return summary

    async def _accumulate_guarded(
        self, machine: MachineSnapshot, semaphore: asyncio.Semaphore,
    ) -> str:
        async with semaphore:
            try:
                result = await self.accumulate(machine)
            except ShiftLedgerError as e:
                if e.skippable:
                    logger.warning(
                        "Skipping %s this tick: %s", machine.name, e.message,
                        extra={"machine_id": machine.id, "error_code": e.code},
                    )
                    return _SKIPPED
                logger.error(
                    "Production update failed for %s: %s", machine.name, e.message,
                    extra={
                        "error_code": e.code,
                        **e.context.log_extra(),
                        "machine_id": machine.id,
                    },
                )
                return _FAILED
            except Exception as e:
                logger.error(
                    "Production update failed for %s: %s", machine.name, e,
                    extra={"machine_id": machine.id}, exc_info=True,
                )
                return _FAILED
        return _UPDATED if result else _SKIPPED

    async def accumulate(self, machine: MachineSnapshot) -> AccumulationResult | None:
        """Route one machine to the operation path or the fallback path."""
        if is_running(machine.status) and machine.operation is not None:
            return await self.accumulate_operation(machine)
        if is_running(machine.status):
            logger.info(
                "%s is running without an open operation, using fallback",
                machine.name, extra={"machine_id": machine.id},
            )
        return await self.accumulate_fallback(machine)

    async def force_update(self, machine_id: MachineId) -> bool:
        """Out-of-cycle operation-path update for one machine."""
        async with self.session_scope() as db:
            source: MachineSource = SqlMachineSource(db)
            machine = await source.get(machine_id)
        if machine is None or not is_running(machine.status) or machine.operation is None:
            return False
        try:
            result = await self.accumulate_operation(machine)
        except Exception as e:
            logger.error(
                "Forced update failed: %s", e,
                extra={"machine_id": machine_id}, exc_info=True,
            )
            return False
        return result is not None

    # ─── Operation path ─────────────────────────────────────────

    async def accumulate_operation(
        self, machine: MachineSnapshot,
    ) -> AccumulationResult | None:
        operation = machine.operation
        if operation is None:
            raise ValueError(f"machine {machine.id} has no open operation")
        now = self.clock.now()
        window = resolve_shift(now, self.facility_tz)

        plan: SlicePlan | None = None
        async with self.session_scope() as db:
            ledger: LedgerRepository = SqlShiftLedger(db)
            entry, created = await ledger.get_or_create(
                machine.id, window, operation.operator_id,
                machine.target_production, machine.production_rate, now,
            )
            if not created:
                plan = plan_production_slice(entry, machine.production_rate, now)
                if plan is None:
                    return None
                updated = await ledger.apply_increment(
                    entry, plan.produced_delta, 0, plan.new_last_known_rate, now,
                )
                if updated is None:
                    return None
                entry = updated

        return await self._commit_followups(
            machine, entry, plan, created, UpdateSource.OPERATION, now,
            operation_duration_minutes(now, operation.start_time),
        )

    # ─── Fallback path ──────────────────────────────────────────

    async def accumulate_fallback(
        self, machine: MachineSnapshot,
    ) -> AccumulationResult | None:
        now = self.clock.now()
        window = resolve_shift(now, self.facility_tz)

        async with self.session_scope() as db:
            ledger: LedgerRepository = SqlShiftLedger(db)
            entry = await ledger.get(machine.id, window)
            created = False
            if entry is None:
                if not is_running(machine.status):
                    return None
                directory: OperatorDirectory = SqlOperatorDirectory(
                    db, self.fallback_operator_id,
                )
                try:
                    operator_id = await directory.default_operator_id()
                except MissingShiftContextError as e:
                    e.context = ErrorContext(
                        machine_id=machine.id,
                        shift_type=window.shift_type.value,
                    )
                    raise
                entry, created = await ledger.get_or_create(
                    machine.id, window, operator_id,
                    machine.target_production, machine.production_rate, now,
                )

            plan = plan_fallback_slice(
                entry, machine.status, machine.production_rate, now, created,
            )
            if plan is None:
                return None
            if plan.bootstrapped:
                logger.info(
                    "Seeding first minute for new shift row",
                    extra={"machine_id": machine.id, "ledger_id": entry.id},
                )
            updated = await ledger.apply_increment(
                entry, plan.produced_delta, plan.downtime_delta,
                plan.new_last_known_rate, now,
            )
            if updated is None:
                return None

        return await self._commit_followups(
            machine, updated, plan, created, UpdateSource.FALLBACK, now, None,
        )

    # ─── After commit ───────────────────────────────────────────

    async def _commit_followups(
        self,
        machine: MachineSnapshot,
        entry: LedgerSnapshot,
        plan: SlicePlan | None,
        created: bool,
        source: UpdateSource,
        now: datetime,
        duration_minutes: int | None,
    ) -> AccumulationResult:
        """Log, publish and alert for a ledger state that is already committed."""
        produced = plan.produced_delta if plan else 0
        downtime = plan.downtime_delta if plan else 0
        if plan and plan.rate_applied and plan.rate_applied != machine.production_rate:
            logger.info(
                "Rate changed %s → %s/min, previous rate kept for this slice",
                plan.rate_applied, machine.production_rate,
                extra={"machine_id": machine.id, "ledger_id": entry.id},
            )
        logger.info(
            "%s: +%d units, +%d min down, total %d",
            machine.name, produced, downtime, entry.total_production,
            extra={
                "machine_id": machine.id,
                "ledger_id": entry.id,
                "shift_type": entry.shift_type.value,
                "produced_delta": produced,
                "downtime_delta": downtime,
                "elapsed_minutes": plan.elapsed_minutes if plan else 0,
                "source": source.value,
            },
        )

        event = build_update_event(
            machine, entry, source, now,
            produced_delta=produced,
            downtime_delta=downtime,
            operation_duration_minutes=duration_minutes,
        )
        try:
            self.publisher.publish(event)
        except Exception as e:
            logger.error(
                "Publishing production event failed: %s", e,
                extra={"machine_id": machine.id}, exc_info=True,
            )
        try:
            await self.alert_hook.evaluate(machine.id, entry.total_production)
        except Exception as e:
            logger.error(
                "Production alert evaluation failed: %s", e,
                extra={"machine_id": machine.id}, exc_info=True,
            )

        return AccumulationResult(
            machine_id=machine.id,
            source=source,
            entry=entry,
            plan=plan,
            created=created,
            event=event,
        )
