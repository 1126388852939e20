"""MachineOperation ORM — a work session linking a machine to an operator.

Invariants:
    - Open = status in (ACTIVE, RUNNING) and end_time IS NULL
    - At most one open operation per machine is expected; readers take the latest start_time

Design Decisions:
    - Composite index on (machine_id, end_time): the tick query filters on both
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from shiftledger.db.base import Base


class MachineOperation(Base):
    """Operation entity — optional link between machine and operator."""
    __tablename__ = "machine_operations"
    __table_args__ = (
        Index("ix_machine_operations_machine_open", "machine_id", "end_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    machine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("machines.id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="ACTIVE",
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
