"""Initial schema — machines, users, machine_operations, shift_ledger.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "machines",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="STOPPED"),
        sa.Column("production_rate", sa.Float, nullable=False, server_default="0"),
        sa.Column("target_production", sa.Integer, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("code", name="uq_machines_code"),
    )
    op.create_index("ix_machines_status", "machines", ["status"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="OPERATOR"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "machine_operations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("machine_id", sa.Integer, sa.ForeignKey("machines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_machine_operations_machine_open", "machine_operations",
        ["machine_id", "end_time"],
    )

    op.create_table(
        "shift_ledger",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("machine_id", sa.Integer, sa.ForeignKey("machines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("operator_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("shift_date", sa.Date, nullable=False),
        sa.Column("shift_type", sa.String(20), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_production", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_downtime", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_known_rate", sa.Float, nullable=True),
        sa.Column("efficiency", sa.Float, nullable=False, server_default="100"),
        sa.Column("target_production", sa.Integer, nullable=False, server_default="0"),
        sa.Column("revision", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "machine_id", "shift_date", "shift_type",
            name="uq_shift_ledger_machine_shift",
        ),
    )
    op.create_index("ix_shift_ledger_machine_id", "shift_ledger", ["machine_id"])
    op.create_index("ix_shift_ledger_shift_date", "shift_ledger", ["shift_date"])


def downgrade() -> None:
    op.drop_table("shift_ledger")
    op.drop_table("machine_operations")
    op.drop_table("users")
    op.drop_table("machines")
