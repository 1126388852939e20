"""Boundary Protocols — contracts between the accounting core and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by services/ via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
    - EventPublisher.publish is synchronous: fire-and-forget, nothing is awaited,
      so a slow subscriber can never hold a ledger transaction open
    - AlertHook.evaluate is async: rule evaluation may query its own tables
"""

from datetime import date, datetime
from typing import Protocol

from shiftledger.core.domain_types import MachineId, OperatorId
from shiftledger.core.production_events import ProductionUpdateEvent
from shiftledger.core.shift_calendar import ShiftWindow
from shiftledger.core.snapshots import LedgerSnapshot, MachineSnapshot


class Clock(Protocol):
    """Single source of 'now' for all elapsed-time logic."""
    def now(self) -> datetime: ...


class MachineSource(Protocol):
    """Committed machine state joined to the open operation, if any."""
    async def list_tracked(self, window: ShiftWindow) -> list[MachineSnapshot]: ...
    async def get(self, machine_id: MachineId) -> MachineSnapshot | None: ...


class LedgerRepository(Protocol):
    """Per-(machine, shift) counters with atomic read-modify-write."""
    async def get(
        self, machine_id: MachineId, window: ShiftWindow,
    ) -> LedgerSnapshot | None: ...
    async def get_or_create(
        self,
        machine_id: MachineId,
        window: ShiftWindow,
        operator_id: OperatorId,
        target_production: int | None,
        initial_rate: float,
        now: datetime,
    ) -> tuple[LedgerSnapshot, bool]: ...
    async def apply_increment(
        self,
        entry: LedgerSnapshot,
        produced_delta: int,
        downtime_delta: int,
        new_last_known_rate: float,
        now: datetime,
    ) -> LedgerSnapshot | None: ...
    async def list_for_machine(
        self, machine_id: MachineId, limit: int = 30,
        since: date | None = None,
    ) -> list[LedgerSnapshot]: ...


class OperatorDirectory(Protocol):
    """Best-effort operator attribution for the fallback path."""
    async def default_operator_id(self) -> OperatorId: ...


class EventPublisher(Protocol):
    def publish(self, event: ProductionUpdateEvent) -> None: ...


class AlertHook(Protocol):
    async def evaluate(
        self, machine_id: MachineId, cumulative_total: int,
    ) -> None: ...
