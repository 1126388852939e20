"""ORM Models — SQLAlchemy declarative models for machines, operators, operations and ledger rows.

Invariants:
    - All models inherit from Base (db/base.py)
    - machines/users/machine_operations are owned by the machine-management
      subsystem; the engine only reads them
    - shift_ledger is the only table the engine writes

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from shiftledger.models.machine import Machine  # noqa: F401
from shiftledger.models.operator import Operator  # noqa: F401
from shiftledger.models.machine_operation import MachineOperation  # noqa: F401
from shiftledger.models.shift_ledger_entry import ShiftLedgerEntry  # noqa: F401
