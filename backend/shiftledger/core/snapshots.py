"""Snapshots — immutable views of machines, operations and ledger rows handed to core logic.

Invariants:
    - Snapshots are read-only copies; mutating one never touches the database
    - Every datetime on a snapshot is timezone-aware (repositories normalize to UTC)

Design Decisions:
    - Frozen dataclasses over passing ORM rows into core/: core stays free of
      SQLAlchemy and ledger math can be tested with plain values
"""

from dataclasses import dataclass
from datetime import date, datetime

from shiftledger.core.domain_types import (
    LedgerId, MachineId, OperatorId, ShiftType,
)


@dataclass(frozen=True)
class OperationSnapshot:
    """An open work session linking a machine to its operator."""
    id: int
    operator_id: OperatorId
    operator_name: str | None
    start_time: datetime


@dataclass(frozen=True)
class MachineSnapshot:
    """Machine attributes as seen by one tick, with its open operation if any."""
    id: MachineId
    name: str
    status: str
    production_rate: float
    target_production: int | None = None
    operation: OperationSnapshot | None = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Persisted per-(machine, shift) accumulation record."""
    id: LedgerId
    machine_id: MachineId
    operator_id: OperatorId
    shift_date: date
    shift_type: ShiftType
    start_time: datetime
    end_time: datetime
    total_production: int
    total_downtime: int
    last_known_rate: float | None
    efficiency: float
    target_production: int
    revision: int
    created_at: datetime
    updated_at: datetime

    @property
    def window_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)
