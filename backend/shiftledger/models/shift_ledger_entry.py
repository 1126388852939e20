"""ShiftLedgerEntry ORM — persisted per-(machine, shift) production counters.

Invariants:
    - Exactly one row per (machine_id, shift_date, shift_type) — unique constraint
    - total_production and total_downtime never decrease
    - revision increments on every write; writers compare-and-set on it
    - start_time/end_time store the shift window (efficiency denominator)

Design Decisions:
    - revision over comparing updated_at: integer equality is exact on every
      dialect, timestamp round-trips are not (SQLite drops the offset)
    - operator_id records who the row was first attributed to; it is not part
      of the key, so fallback and operation updates share one row per shift
    - Rows are never deleted here; archival belongs to an external job
"""

from datetime import date, datetime, timezone

from sqlalchemy import (
    String, Integer, Float, Date, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from shiftledger.db.base import Base


class ShiftLedgerEntry(Base):
    """Ledger row — cumulative production and downtime for one machine shift."""
    __tablename__ = "shift_ledger"
    __table_args__ = (
        UniqueConstraint(
            "machine_id", "shift_date", "shift_type",
            name="uq_shift_ledger_machine_shift",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    machine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("machines.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    operator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    shift_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    shift_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    total_production: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    total_downtime: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    last_known_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    efficiency: Mapped[float] = mapped_column(
        Float, nullable=False, default=100.0,
    )
    target_production: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    revision: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
