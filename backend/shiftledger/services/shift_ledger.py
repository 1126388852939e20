"""Shift Ledger — persisted per-(machine, shift) counters with atomic read-modify-write.

Invariants:
    - get_or_create never produces two rows for one (machine, shift_date, shift_type):
      the unique constraint arbitrates and the loser re-reads the winner's row
    - apply_increment is ONE conditional UPDATE keyed by (id, revision); if another
      writer advanced the row first, nothing is written and None is returned
    - Counters only grow: negative deltas raise InvalidIncrementError
    - All datetimes are stored and returned as UTC

Design Decisions:
    - Optimistic compare-and-set over SELECT ... FOR UPDATE: works the same on
      PostgreSQL and SQLite, holds no locks across the await between read and write
    - No retry queue: a failed write loses one tick; the next tick measures
      elapsed time from the persisted updated_at and catches up
"""

import dataclasses
import logging
from datetime import date, datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftledger.core.domain_types import (
    LedgerId, MachineId, OperatorId, ShiftType,
)
from shiftledger.core.errors import ErrorContext, InvalidIncrementError
from shiftledger.core.shift_calendar import ShiftWindow
from shiftledger.core.slice_accounting import compute_efficiency
from shiftledger.core.snapshots import LedgerSnapshot
from shiftledger.models.shift_ledger_entry import ShiftLedgerEntry

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Normalize a stored timestamp; naive values are UTC by convention."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_snapshot(row: ShiftLedgerEntry) -> LedgerSnapshot:
    return LedgerSnapshot(
        id=LedgerId(row.id),
        machine_id=MachineId(row.machine_id),
        operator_id=OperatorId(row.operator_id),
        shift_date=row.shift_date,
        shift_type=ShiftType(row.shift_type),
        start_time=as_utc(row.start_time),
        end_time=as_utc(row.end_time),
        total_production=row.total_production,
        total_downtime=row.total_downtime,
        last_known_rate=row.last_known_rate,
        efficiency=row.efficiency,
        target_production=row.target_production,
        revision=row.revision,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlShiftLedger:
    """LedgerRepository backed by the shift_ledger table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(
        self, machine_id: MachineId, window: ShiftWindow,
    ) -> LedgerSnapshot | None:
        result = await self.db.execute(
            select(ShiftLedgerEntry).where(
                ShiftLedgerEntry.machine_id == machine_id,
                ShiftLedgerEntry.shift_date == window.shift_date,
                ShiftLedgerEntry.shift_type == window.shift_type.value,
            ),
        )
        row = result.scalar_one_or_none()
        return to_snapshot(row) if row else None

    async def get_or_create(
        self,
        machine_id: MachineId,
        window: ShiftWindow,
        operator_id: OperatorId,
        target_production: int | None,
        initial_rate: float,
        now: datetime,
    ) -> tuple[LedgerSnapshot, bool]:
        """Return (row, created). New rows start at zero, no backfill."""
        existing = await self.get(machine_id, window)
        if existing:
            return existing, False

        row = ShiftLedgerEntry(
            machine_id=machine_id,
            operator_id=operator_id,
            shift_date=window.shift_date,
            shift_type=window.shift_type.value,
            start_time=window.start.astimezone(timezone.utc),
            end_time=window.end.astimezone(timezone.utc),
            total_production=0,
            total_downtime=0,
            last_known_rate=initial_rate,
            efficiency=compute_efficiency(window.total_minutes, 0),
            target_production=target_production or 0,
            revision=0,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get(machine_id, window)
            if existing is None:
                raise
            logger.info(
                "Ledger row created concurrently, reusing it",
                extra={"machine_id": machine_id, "ledger_id": existing.id},
            )
            return existing, False

        logger.info(
            "Ledger row opened for %s shift %s",
            window.shift_type.value, window.shift_date.isoformat(),
            extra={
                "machine_id": machine_id, "ledger_id": row.id,
                "shift_type": window.shift_type.value,
            },
        )
        return to_snapshot(row), True

    async def apply_increment(
        self,
        entry: LedgerSnapshot,
        produced_delta: int,
        downtime_delta: int,
        new_last_known_rate: float,
        now: datetime,
    ) -> LedgerSnapshot | None:
        """Compare-and-set the row forward by one slice. None = lost the race."""
        if produced_delta < 0 or downtime_delta < 0:
            raise InvalidIncrementError(
                produced_delta, downtime_delta,
                ErrorContext(machine_id=entry.machine_id, ledger_id=entry.id),
            )

        total_downtime = entry.total_downtime + downtime_delta
        values = {
            "total_production": entry.total_production + produced_delta,
            "total_downtime": total_downtime,
            "last_known_rate": new_last_known_rate,
            "efficiency": compute_efficiency(entry.window_minutes, total_downtime),
            "updated_at": now,
            "revision": entry.revision + 1,
        }
        result = await self.db.execute(
            update(ShiftLedgerEntry)
            .where(
                ShiftLedgerEntry.id == entry.id,
                ShiftLedgerEntry.revision == entry.revision,
            )
            .values(**values)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            await self.db.rollback()
            logger.info(
                "Ledger row advanced by another writer, slice dropped",
                extra={"machine_id": entry.machine_id, "ledger_id": entry.id},
            )
            return None
        await self.db.commit()
        return dataclasses.replace(entry, **values)

    async def list_for_machine(
        self, machine_id: MachineId, limit: int = 30,
        since: date | None = None,
    ) -> list[LedgerSnapshot]:
        """Most recent shifts first."""
        query = select(ShiftLedgerEntry).where(
            ShiftLedgerEntry.machine_id == machine_id,
        )
        if since is not None:
            query = query.where(ShiftLedgerEntry.shift_date >= since)
        query = query.order_by(
            ShiftLedgerEntry.start_time.desc(),
        ).limit(limit)
        result = await self.db.execute(query)
        return [to_snapshot(row) for row in result.scalars().all()]
