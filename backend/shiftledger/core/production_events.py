"""Production Events — payloads broadcast after every committed ledger update.

Invariants:
    - An event is built only from a ledger snapshot that was already persisted
    - to_sse_event() produces the same {"type", "data"} envelope as error events

Design Decisions:
    - Dataclass + explicit to_dict over Pydantic: core/ stays dependency-free and
      the publisher decides how to serialize
    - operator_name / operation_duration_minutes are None on the fallback path
      (no linked operator session exists)
"""

from dataclasses import dataclass
from datetime import datetime

from shiftledger.core.domain_types import MachineId, UpdateSource
from shiftledger.core.snapshots import LedgerSnapshot, MachineSnapshot


PRODUCTION_UPDATE_EVENT = "production_update"


@dataclass(frozen=True)
class ProductionUpdateEvent:
    """Cumulative shift figures for one machine after one slice."""
    machine_id: MachineId
    machine_name: str
    operator_name: str | None
    total_production: int
    total_downtime: int
    efficiency: float
    operation_duration_minutes: int | None
    production_rate: float
    shift_type: str
    shift_date: str
    produced_delta: int
    downtime_delta: int
    source: UpdateSource
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "machine_id": self.machine_id,
            "machine_name": self.machine_name,
            "operator_name": self.operator_name,
            "total_production": self.total_production,
            "total_downtime": self.total_downtime,
            "efficiency": self.efficiency,
            "operation_duration_minutes": self.operation_duration_minutes,
            "production_rate": self.production_rate,
            "shift_type": self.shift_type,
            "shift_date": self.shift_date,
            "produced_delta": self.produced_delta,
            "downtime_delta": self.downtime_delta,
            "source": self.source.value,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_sse_event(self) -> dict:
        return {"type": PRODUCTION_UPDATE_EVENT, "data": self.to_dict()}


def build_update_event(
    machine: MachineSnapshot,
    entry: LedgerSnapshot,
    source: UpdateSource,
    now: datetime,
    produced_delta: int = 0,
    downtime_delta: int = 0,
    operation_duration_minutes: int | None = None,
) -> ProductionUpdateEvent:
    """Assemble the broadcast payload from the committed ledger state. Pure."""
    operator_name = (
        machine.operation.operator_name
        if machine.operation and source == UpdateSource.OPERATION else None
    )
    return ProductionUpdateEvent(
        machine_id=machine.id,
        machine_name=machine.name,
        operator_name=operator_name,
        total_production=entry.total_production,
        total_downtime=entry.total_downtime,
        efficiency=entry.efficiency,
        operation_duration_minutes=operation_duration_minutes,
        production_rate=machine.production_rate,
        shift_type=entry.shift_type.value,
        shift_date=entry.shift_date.isoformat(),
        produced_delta=produced_delta,
        downtime_delta=downtime_delta,
        source=source,
        timestamp=now,
    )
