"""Error Hierarchy — typed, categorized exceptions for shift accounting failures.

Invariants:
    - Every error carries code, category, severity and http_status
    - WARNING-severity errors are skippable: they cost one machine one tick
    - to_response() produces the REST envelope used by the API error handlers
    - Messages never include SQL, stack traces or connection strings

Design Decisions:
    - code/category/severity/http_status are class attributes: each subclass
      states its classification once and constructors only take what varies
    - ErrorContext is a dataclass so the accumulator can attach machine/shift
      context after the fact (e.g. to an error raised by a repository)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    SHIFT_CONTEXT = "shift_context"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Which machine / ledger row / shift an error belongs to."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    machine_id: int | None = None
    ledger_id: int | None = None
    shift_type: str | None = None
    debug_info: dict[str, Any] | None = None

    def log_extra(self) -> dict:
        """Fields surfaced by the JSON log formatter."""
        return {
            k: v for k, v in (
                ("machine_id", self.machine_id),
                ("ledger_id", self.ledger_id),
                ("shift_type", self.shift_type),
            ) if v is not None
        }


class ShiftLedgerError(Exception):
    """Base exception for every shift accounting failure."""

    code: str = "INTERNAL_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL
    severity: ErrorSeverity = ErrorSeverity.ERROR
    http_status: int = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    @property
    def skippable(self) -> bool:
        return self.severity == ErrorSeverity.WARNING

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "machine_id": self.context.machine_id,
                    "ledger_id": self.context.ledger_id,
                    "shift_type": self.context.shift_type,
                },
            }
        }


# ─── Accounting errors ──────────────────────────────────────────

class InvalidIncrementError(ShiftLedgerError):
    """A ledger increment would decrement a monotonic counter."""
    code = "INVALID_INCREMENT"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(
        self, produced_delta: int, downtime_delta: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Ledger increments must be non-negative "
            f"(produced={produced_delta}, downtime={downtime_delta})",
            context,
        )
        self.produced_delta = produced_delta
        self.downtime_delta = downtime_delta


class MissingShiftContextError(ShiftLedgerError):
    """Fallback path could not attribute a new ledger row to any operator."""
    code = "MISSING_SHIFT_CONTEXT"
    category = ErrorCategory.SHIFT_CONTEXT
    severity = ErrorSeverity.WARNING
    http_status = 409


class ResourceNotFoundError(ShiftLedgerError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(f"{resource_type} '{resource_id}' not found", context)


# ─── Infrastructure errors ──────────────────────────────────────

class DatabaseError(ShiftLedgerError):
    """Storage failed; the slice is retried implicitly by the next tick."""
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation
