"""Production Events tests — payload assembly from committed ledger state."""

from datetime import date, datetime, timedelta, timezone

from shiftledger.core.domain_types import (
    LedgerId, MachineId, OperatorId, ShiftType, UpdateSource,
)
from shiftledger.core.production_events import (
    PRODUCTION_UPDATE_EVENT, build_update_event,
)
from shiftledger.core.snapshots import (
    LedgerSnapshot, MachineSnapshot, OperationSnapshot,
)

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)

ENTRY = LedgerSnapshot(
    id=LedgerId(3),
    machine_id=MachineId(7),
    operator_id=OperatorId(2),
    shift_date=date(2026, 10, 19),
    shift_type=ShiftType.MORNING,
    start_time=NOW - timedelta(hours=5),
    end_time=NOW + timedelta(hours=7),
    total_production=420,
    total_downtime=12,
    last_known_rate=10.0,
    efficiency=98.33,
    target_production=1000,
    revision=9,
    created_at=NOW - timedelta(hours=5),
    updated_at=NOW,
)

MACHINE = MachineSnapshot(
    id=MachineId(7),
    name="Press 7",
    status="RUNNING",
    production_rate=12.0,
    operation=OperationSnapshot(
        id=1, operator_id=OperatorId(2), operator_name="Ana",
        start_time=NOW - timedelta(minutes=45),
    ),
)


def test_operation_event_carries_operator_and_duration():
    event = build_update_event(
        MACHINE, ENTRY, UpdateSource.OPERATION, NOW,
        produced_delta=50, operation_duration_minutes=45,
    )
    assert event.operator_name == "Ana"
    assert event.operation_duration_minutes == 45
    assert event.total_production == 420
    assert event.production_rate == 12.0
    assert event.produced_delta == 50


def test_fallback_event_has_no_operator():
    event = build_update_event(
        MACHINE, ENTRY, UpdateSource.FALLBACK, NOW, downtime_delta=3,
    )
    assert event.operator_name is None
    assert event.operation_duration_minutes is None
    assert event.downtime_delta == 3


def test_to_dict_is_json_ready():
    data = build_update_event(MACHINE, ENTRY, UpdateSource.FALLBACK, NOW).to_dict()
    assert data["source"] == "fallback"
    assert data["shift_type"] == "MORNING"
    assert data["shift_date"] == "2026-10-19"
    assert data["timestamp"] == NOW.isoformat()
    assert data["efficiency"] == 98.33
    assert data["total_downtime"] == 12


def test_sse_envelope():
    event = build_update_event(MACHINE, ENTRY, UpdateSource.OPERATION, NOW)
    envelope = event.to_sse_event()
    assert envelope["type"] == PRODUCTION_UPDATE_EVENT
    assert envelope["data"]["machine_name"] == "Press 7"
