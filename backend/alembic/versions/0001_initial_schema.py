"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates users, appointments and activity_logs.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("admin", "agent", name="userrole")
action_type = sa.Enum("create", "update", "delete", name="actiontype")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="agent"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- appointments ---
    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(36), primary_key=True),
        sa.Column("patient_name", sa.String(255), nullable=False),
        sa.Column("test_name", sa.String(255), nullable=False),
        sa.Column("branch_location", sa.String(255), nullable=False),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("advance_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("balance_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("pro_details", sa.Text, nullable=True),
        sa.Column("contact_number", sa.String(20), nullable=False),
        sa.Column("agent_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_appointments_patient_name", "appointments", ["patient_name"])
    op.create_index("ix_appointments_contact_number", "appointments", ["contact_number"])
    op.create_index("ix_appointments_created_at", "appointments", ["created_at"])

    # --- activity_logs (no FK on appointment_id: DELETE entries outlive the row) ---
    op.create_table(
        "activity_logs",
        sa.Column("log_id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), nullable=False),
        sa.Column("actor_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("action", action_type, nullable=False),
        sa.Column("old_data", sa.JSON, nullable=True),
        sa.Column("new_data", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_activity_logs_appointment_id", "activity_logs", ["appointment_id"])
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("appointments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    action_type.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
