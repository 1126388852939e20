"""Machine Source — committed machine state joined to each machine's open operation.

Invariants:
    - Tracked = RUNNING machines, plus non-productive machines that already own a
      ledger row for the current window (their downtime keeps accruing)
    - A machine gets at most one operation: the open one with the latest start_time
    - Non-productive machines are returned without an operation; they are
      accounted on the fallback path regardless of any open session
"""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftledger.core.domain_types import (
    MachineId, MachineStatus, OperatorId,
    NON_PRODUCTIVE_STATUSES, OPEN_OPERATION_STATUSES,
)
from shiftledger.core.shift_calendar import ShiftWindow
from shiftledger.core.snapshots import MachineSnapshot, OperationSnapshot
from shiftledger.models.machine import Machine
from shiftledger.models.machine_operation import MachineOperation
from shiftledger.models.operator import Operator
from shiftledger.models.shift_ledger_entry import ShiftLedgerEntry
from shiftledger.services.shift_ledger import as_utc


def _machine_snapshot(
    machine: Machine, operation: OperationSnapshot | None,
) -> MachineSnapshot:
    return MachineSnapshot(
        id=MachineId(machine.id),
        name=machine.name,
        status=machine.status,
        production_rate=machine.production_rate or 0.0,
        target_production=machine.target_production,
        operation=operation,
    )


class SqlMachineSource:
    """MachineSource backed by machines / machine_operations / users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tracked(self, window: ShiftWindow) -> list[MachineSnapshot]:
        running = (await self.db.execute(
            select(Machine)
            .where(Machine.status == MachineStatus.RUNNING.value)
            .order_by(Machine.id),
        )).scalars().all()
        operations = await self._open_operations([m.id for m in running])

        down = (await self.db.execute(
            select(Machine)
            .join(ShiftLedgerEntry, and_(
                ShiftLedgerEntry.machine_id == Machine.id,
                ShiftLedgerEntry.shift_date == window.shift_date,
                ShiftLedgerEntry.shift_type == window.shift_type.value,
            ))
            .where(Machine.status.in_(NON_PRODUCTIVE_STATUSES))
            .order_by(Machine.id),
        )).scalars().all()

        return (
            [_machine_snapshot(m, operations.get(m.id)) for m in running]
            + [_machine_snapshot(m, None) for m in down]
        )

    async def get(self, machine_id: MachineId) -> MachineSnapshot | None:
        machine = await self.db.get(Machine, machine_id)
        if machine is None:
            return None
        operations = await self._open_operations([machine.id])
        return _machine_snapshot(machine, operations.get(machine.id))

    async def _open_operations(
        self, machine_ids: list[int],
    ) -> dict[int, OperationSnapshot]:
        if not machine_ids:
            return {}
        rows = (await self.db.execute(
            select(MachineOperation, Operator.name)
            .join(Operator, Operator.id == MachineOperation.user_id)
            .where(
                MachineOperation.machine_id.in_(machine_ids),
                MachineOperation.end_time.is_(None),
                MachineOperation.status.in_(OPEN_OPERATION_STATUSES),
            )
            .order_by(MachineOperation.start_time.desc()),
        )).all()

        latest: dict[int, OperationSnapshot] = {}
        for operation, operator_name in rows:
            if operation.machine_id in latest:
                continue
            latest[operation.machine_id] = OperationSnapshot(
                id=operation.id,
                operator_id=OperatorId(operation.user_id),
                operator_name=operator_name,
                start_time=as_utc(operation.start_time),
            )
        return latest
