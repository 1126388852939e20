"""Machine ORM — a production asset with its current status and rate.

Invariants:
    - status is a MachineStatus value (or a legacy equivalent)
    - production_rate is units per minute, never negative
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from shiftledger.db.base import Base


class Machine(Base):
    """Machine entity — read-only to the accounting engine."""
    __tablename__ = "machines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="STOPPED", index=True,
    )
    production_rate: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0,
    )
    target_production: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
