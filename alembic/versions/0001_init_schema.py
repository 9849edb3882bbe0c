"""init schema

Revision ID: 0001_init_schema
Revises:
Create Date: 2026-10-16
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_init_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "admins",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("login", sa.String(length=128), nullable=False),
        sa.Column("password_hash", sa.String(length=512), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admins_login", "admins", ["login"], unique=True)

    op.create_table(
        "admin_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("admin_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=True),
        sa.Column("target_id", sa.String(length=128), nullable=True),
        sa.Column("detail", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["admin_id"], ["admins.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admin_logs_admin_id", "admin_logs", ["admin_id"], unique=False)

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("customer_name", sa.String(length=100), nullable=False),
        sa.Column("contact", sa.String(length=200), nullable=True),
        sa.Column("plan", sa.String(length=20), nullable=False, server_default="trial"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_suspended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("max_devices", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "pickup_codes",
        sa.Column("pickup_code", sa.String(length=50), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("device_id", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("device_alias", sa.String(length=50), nullable=True),
        sa.Column("account_name", sa.String(length=100), nullable=True),
        sa.Column("device_model", sa.String(length=100), nullable=True),
        sa.Column("app_version", sa.String(length=20), nullable=True),
        sa.Column("os_version", sa.String(length=50), nullable=True),
        sa.Column("last_heartbeat", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_publish_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("config_snapshot", sa.JSON(), nullable=True),
        sa.Column("monitor_data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("pickup_code"),
    )
    op.create_index("ix_pickup_codes_customer_id", "pickup_codes", ["customer_id"], unique=False)
    op.create_index("ix_pickup_codes_device_id", "pickup_codes", ["device_id"], unique=False)

    op.create_table(
        "device_commands",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("pickup_code", sa.String(length=50), nullable=False),
        sa.Column("command_type", sa.String(length=32), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["pickup_code"], ["pickup_codes.pickup_code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_device_commands_code_status_created",
        "device_commands",
        ["pickup_code", "status", "created_at"],
        unique=False,
    )

    op.create_table(
        "device_tokens",
        sa.Column("device_id", sa.String(length=100), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("device_info", sa.JSON(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("device_id"),
    )
    op.create_index("ix_device_tokens_token", "device_tokens", ["token"], unique=True)

    op.create_table(
        "error_reports",
        sa.Column("request_id", sa.String(length=128), nullable=False),
        sa.Column("device_id", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("reason", sa.String(length=64), nullable=True),
        sa.Column("platform", sa.String(length=32), nullable=True),
        sa.Column("step", sa.String(length=128), nullable=True),
        sa.Column("error_msg", sa.Text(), nullable=True),
        sa.Column("screenshot", sa.Text(), nullable=True),
        sa.Column("screenshot_omitted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("state", sa.JSON(), nullable=True),
        sa.Column("ai_action", sa.Text(), nullable=True),
        sa.Column("ai_result", sa.Text(), nullable=True),
        sa.Column("extra", sa.JSON(), nullable=True),
        sa.Column("client_timestamp", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("request_id"),
    )
    op.create_index("ix_error_reports_platform", "error_reports", ["platform"], unique=False)
    op.create_index("ix_error_reports_device_created", "error_reports", ["device_id", "created_at"], unique=False)

    op.create_table(
        "rate_limit_counters",
        sa.Column("device_id", sa.String(length=100), nullable=False),
        sa.Column("hour_bucket", sa.BigInteger(), nullable=False),
        sa.Column("hits", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("device_id", "hour_bucket"),
    )


def downgrade() -> None:
    op.drop_table("rate_limit_counters")

    op.drop_index("ix_error_reports_device_created", table_name="error_reports")
    op.drop_index("ix_error_reports_platform", table_name="error_reports")
    op.drop_table("error_reports")

    op.drop_index("ix_device_tokens_token", table_name="device_tokens")
    op.drop_table("device_tokens")

    op.drop_index("ix_device_commands_code_status_created", table_name="device_commands")
    op.drop_table("device_commands")

    op.drop_index("ix_pickup_codes_device_id", table_name="pickup_codes")
    op.drop_index("ix_pickup_codes_customer_id", table_name="pickup_codes")
    op.drop_table("pickup_codes")

    op.drop_table("customers")

    op.drop_index("ix_admin_logs_admin_id", table_name="admin_logs")
    op.drop_table("admin_logs")

    op.drop_index("ix_admins_login", table_name="admins")
    op.drop_table("admins")
