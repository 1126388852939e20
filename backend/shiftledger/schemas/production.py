"""Production Schemas — Pydantic response models for the production endpoints.

Invariants:
    - Responses are built from LedgerSnapshot only (never from ORM rows)
    - Datetimes serialize as ISO-8601 with offset (UTC)
"""

from datetime import date, datetime

from pydantic import BaseModel

from shiftledger.core.snapshots import LedgerSnapshot


class LedgerEntryResponse(BaseModel):
    """One machine shift as stored in the ledger."""
    id: int
    machine_id: int
    operator_id: int
    shift_date: date
    shift_type: str
    start_time: datetime
    end_time: datetime
    total_production: int
    total_downtime: int
    last_known_rate: float | None
    efficiency: float
    target_production: int
    updated_at: datetime

    @classmethod
    def from_snapshot(cls, entry: LedgerSnapshot) -> "LedgerEntryResponse":
        return cls(
            id=entry.id,
            machine_id=entry.machine_id,
            operator_id=entry.operator_id,
            shift_date=entry.shift_date,
            shift_type=entry.shift_type.value,
            start_time=entry.start_time,
            end_time=entry.end_time,
            total_production=entry.total_production,
            total_downtime=entry.total_downtime,
            last_known_rate=entry.last_known_rate,
            efficiency=entry.efficiency,
            target_production=entry.target_production,
            updated_at=entry.updated_at,
        )


class LedgerListResponse(BaseModel):
    machine_id: int
    entries: list[LedgerEntryResponse]


class ForceUpdateResponse(BaseModel):
    machine_id: int
    updated: bool
