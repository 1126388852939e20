"""Domain Types — identity wrappers and enumerated states for machines, shifts and ledgers.

Invariants:
    - MachineId, OperatorId, LedgerId wrap database integer keys
    - RUNNING is the only productive machine status
    - NON_PRODUCTIVE_STATUSES is the single source of truth for downtime classification

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (events and API payloads)
    - Legacy status spellings kept as equivalents so rows written by older
      machine-management clients still classify correctly
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

MachineId = NewType("MachineId", int)
OperatorId = NewType("OperatorId", int)
LedgerId = NewType("LedgerId", int)


# ─── Enums ───────────────────────────────────────────────────────

class MachineStatus(str, Enum):
    """Machine operating states — maps to `machines.status`."""
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    MAINTENANCE = "MAINTENANCE"
    ERROR = "ERROR"
    OFF_SHIFT = "OFF_SHIFT"


class ShiftType(str, Enum):
    """The two 12-hour accounting windows."""
    MORNING = "MORNING"
    NIGHT = "NIGHT"


class OperationStatus(str, Enum):
    """Operation states — ACTIVE and RUNNING count as open."""
    ACTIVE = "ACTIVE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OperatorRole(str, Enum):
    OPERATOR = "OPERATOR"
    LEADER = "LEADER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class UpdateSource(str, Enum):
    """Which accumulation path produced a ledger update."""
    OPERATION = "operation"
    FALLBACK = "fallback"


OPEN_OPERATION_STATUSES: frozenset[str] = frozenset({
    OperationStatus.ACTIVE.value, OperationStatus.RUNNING.value,
})

NON_PRODUCTIVE_STATUSES: frozenset[str] = frozenset({
    MachineStatus.STOPPED.value,
    MachineStatus.MAINTENANCE.value,
    MachineStatus.ERROR.value,
    MachineStatus.OFF_SHIFT.value,
    # legacy spellings
    "PARADA",
    "MANUTENCAO",
    "FORA_DE_TURNO",
})


def is_running(status: str) -> bool:
    return status == MachineStatus.RUNNING.value


def is_non_productive(status: str) -> bool:
    return status in NON_PRODUCTIVE_STATUSES
