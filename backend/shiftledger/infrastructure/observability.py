"""Structured Logging — JSON and console formatters carrying ledger context.

Invariants:
    - Every line has timestamp (record time, UTC), level, logger and message
    - Ledger extras (machine_id, ledger_id, shift_type, deltas, source, ...) are
      emitted when set on the record and omitted otherwise
    - setup_logging may be called repeatedly; it replaces its own handler

Design Decisions:
    - JSON in production (log shippers index the extras), key=value suffix on the
      console so local runs show the same context
"""

import json
import logging
from datetime import datetime, timezone


LEDGER_FIELDS = (
    "machine_id", "ledger_id", "shift_type", "error_code", "path",
    "produced_delta", "downtime_delta", "elapsed_minutes", "source",
)


def _ledger_extras(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in LEDGER_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_ledger_extras(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable line with ledger extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _ledger_extras(record)
        if not extras:
            return line
        suffix = " ".join(f"{k}={v}" for k, v in extras.items())
        return f"{line} [{suffix}]"


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    global _handler
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    if _handler is not None:
        logging.root.removeHandler(_handler)
    _handler = handler
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
