"""Shift Ledger repository tests — row creation, compare-and-set increments, history reads.

Tests cover:
    - get_or_create: zero-initialized row, idempotence, concurrent-insert recovery
    - apply_increment: totals/efficiency/revision, stale snapshot loses, negative deltas rejected
    - list_for_machine: newest first, since filter, limit
"""

from datetime import date, timedelta

import pytest

from shiftledger.core.domain_types import MachineId, OperatorId, ShiftType
from shiftledger.core.errors import InvalidIncrementError
from shiftledger.core.shift_calendar import resolve_shift
from shiftledger.services.shift_ledger import SqlShiftLedger

from tests.services.ledger_doubles import MORNING_NOW, SAO_PAULO


@pytest.fixture
async def machine_and_operator(seed):
    operator_id = await seed.operator()
    machine_id = await seed.machine()
    return MachineId(machine_id), OperatorId(operator_id)


async def _open_row(manager, machine_id, operator_id, now=MORNING_NOW):
    window = resolve_shift(now, SAO_PAULO)
    async with manager.session() as db:
        return await SqlShiftLedger(db).get_or_create(
            machine_id, window, operator_id, 500, 10.0, now,
        )


# -- get_or_create -----------------------------------------------------------

async def test_new_row_starts_at_zero(test_db_manager, machine_and_operator):
    machine_id, operator_id = machine_and_operator
    entry, created = await _open_row(test_db_manager, machine_id, operator_id)
    assert created
    assert entry.total_production == 0
    assert entry.total_downtime == 0
    assert entry.efficiency == 100.0
    assert entry.last_known_rate == 10.0
    assert entry.target_production == 500
    assert entry.shift_type == ShiftType.MORNING
    assert entry.shift_date == date(2026, 10, 19)
    assert entry.window_minutes == 720
    assert entry.updated_at == MORNING_NOW


async def test_get_or_create_is_idempotent(test_db_manager, machine_and_operator):
    machine_id, operator_id = machine_and_operator
    first, _ = await _open_row(test_db_manager, machine_id, operator_id)
    second, created = await _open_row(
        test_db_manager, machine_id, operator_id,
        now=MORNING_NOW + timedelta(minutes=5),
    )
    assert not created
    assert second.id == first.id
    assert second.updated_at == MORNING_NOW


async def test_concurrent_insert_reuses_winning_row(
    test_db_manager, machine_and_operator,
):
    """A writer that missed the row on read recovers from the unique constraint."""
    machine_id, operator_id = machine_and_operator
    winner, _ = await _open_row(test_db_manager, machine_id, operator_id)

    window = resolve_shift(MORNING_NOW, SAO_PAULO)
    async with test_db_manager.session() as db:
        ledger = SqlShiftLedger(db)
        real_get = ledger.get
        reads = []

        async def stale_get(mid, w):
            reads.append(mid)
            if len(reads) == 1:
                return None
            return await real_get(mid, w)

        ledger.get = stale_get
        entry, created = await ledger.get_or_create(
            machine_id, window, operator_id, None, 10.0, MORNING_NOW,
        )
    assert not created
    assert entry.id == winner.id


async def test_rows_are_per_shift(test_db_manager, machine_and_operator):
    machine_id, operator_id = machine_and_operator
    morning, _ = await _open_row(test_db_manager, machine_id, operator_id)
    night, created = await _open_row(
        test_db_manager, machine_id, operator_id,
        now=MORNING_NOW + timedelta(hours=10),
    )
    assert created
    assert night.id != morning.id
    assert night.shift_type == ShiftType.NIGHT


# -- apply_increment ---------------------------------------------------------

async def test_increment_updates_totals_and_efficiency(
    test_db_manager, machine_and_operator,
):
    machine_id, operator_id = machine_and_operator
    entry, _ = await _open_row(test_db_manager, machine_id, operator_id)
    later = MORNING_NOW + timedelta(minutes=10)
    async with test_db_manager.session() as db:
        updated = await SqlShiftLedger(db).apply_increment(entry, 40, 6, 12.0, later)
    assert updated.total_production == 40
    assert updated.total_downtime == 6
    assert updated.efficiency == 99.17
    assert updated.last_known_rate == 12.0
    assert updated.revision == entry.revision + 1
    assert updated.updated_at == later

    window = resolve_shift(later, SAO_PAULO)
    async with test_db_manager.session() as db:
        stored = await SqlShiftLedger(db).get(machine_id, window)
    assert stored.total_production == 40
    assert stored.updated_at == later


async def test_stale_snapshot_loses_compare_and_set(
    test_db_manager, machine_and_operator,
):
    machine_id, operator_id = machine_and_operator
    entry, _ = await _open_row(test_db_manager, machine_id, operator_id)
    later = MORNING_NOW + timedelta(minutes=3)
    async with test_db_manager.session() as db:
        first = await SqlShiftLedger(db).apply_increment(entry, 30, 0, 10.0, later)
    async with test_db_manager.session() as db:
        second = await SqlShiftLedger(db).apply_increment(entry, 30, 0, 10.0, later)
    assert first is not None
    assert second is None

    async with test_db_manager.session() as db:
        stored = await SqlShiftLedger(db).get(
            machine_id, resolve_shift(later, SAO_PAULO),
        )
    assert stored.total_production == 30


async def test_negative_delta_rejected(test_db_manager, machine_and_operator):
    machine_id, operator_id = machine_and_operator
    entry, _ = await _open_row(test_db_manager, machine_id, operator_id)
    async with test_db_manager.session() as db:
        with pytest.raises(InvalidIncrementError) as exc:
            await SqlShiftLedger(db).apply_increment(entry, -1, 0, 10.0, MORNING_NOW)
    assert exc.value.context.ledger_id == entry.id


# -- list_for_machine --------------------------------------------------------

async def test_history_newest_first_with_filters(
    test_db_manager, machine_and_operator,
):
    machine_id, operator_id = machine_and_operator
    for hours in (0, 12, 24):
        await _open_row(
            test_db_manager, machine_id, operator_id,
            now=MORNING_NOW + timedelta(hours=hours),
        )

    async with test_db_manager.session() as db:
        ledger = SqlShiftLedger(db)
        everything = await ledger.list_for_machine(machine_id)
        latest = await ledger.list_for_machine(machine_id, limit=1)
        recent = await ledger.list_for_machine(machine_id, since=date(2026, 10, 20))
        other = await ledger.list_for_machine(MachineId(999))

    assert [e.shift_date for e in everything] == [
        date(2026, 10, 20), date(2026, 10, 19), date(2026, 10, 19),
    ]
    assert [e.shift_type for e in everything] == [
        ShiftType.MORNING, ShiftType.NIGHT, ShiftType.MORNING,
    ]
    assert len(latest) == 1 and latest[0].shift_date == date(2026, 10, 20)
    assert len(recent) == 1
    assert other == []
