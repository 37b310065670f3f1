"""Initial fuel station schema.

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ONLY = "status = 'ACTIVE'"
OUTSTANDING_GIFT_ASSIGNMENTS = "status IN ('PENDING', 'AVAILABLE')"
OUTSTANDING_REDEMPTIONS = "status IN ('Pending', 'Approved')"


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.dialects.postgresql.UUID(as_uuid=True), **kwargs)


def _user_fk(name: str, *, ondelete: str, nullable: bool) -> sa.Column:
    return _uuid(name, sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _partial_unique(name: str, table: str, columns: list[str], where: str) -> None:
    op.create_index(
        name,
        table,
        columns,
        unique=True,
        postgresql_where=sa.text(where),
        sqlite_where=sa.text(where),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid("id", primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("email", "role", name="uq_users_email_role"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "pumps",
        _uuid("id", primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("fuel_types", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        _user_fk("supervisor_id", ondelete="SET NULL", nullable=True),
        sa.Column("customers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_start_reading", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("last_end_reading", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("last_reading_difference", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("last_reading_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_pumps_supervisor_id", "pumps", ["supervisor_id"])

    op.create_table(
        "pump_meter_readings",
        _uuid("id", primary_key=True),
        _uuid("pump_id", sa.ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_reading", sa.Numeric(14, 3), nullable=False),
        sa.Column("end_reading", sa.Numeric(14, 3), nullable=False),
        sa.Column("difference", sa.Numeric(14, 3), nullable=False),
        _user_fk("recorded_by", ondelete="SET NULL", nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_pump_meter_readings_pump_id", "pump_meter_readings", ["pump_id"])

    op.create_table(
        "pump_maintenance_reports",
        _uuid("id", primary_key=True),
        _uuid("pump_id", sa.ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False),
        sa.Column("issue", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        _user_fk("reported_by", ondelete="SET NULL", nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_pump_maintenance_reports_pump_id", "pump_maintenance_reports", ["pump_id"])

    op.create_table(
        "gifts",
        _uuid("id", primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("points_required", sa.Integer(), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("stock >= 0", name="ck_gifts_stock_non_negative"),
    )

    op.create_table(
        "station_settings",
        _uuid("id", primary_key=True),
        sa.Column("station_name", sa.String(length=160), nullable=False, server_default="Fuel Station"),
        sa.Column("address", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("petrol_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("diesel_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("lpg_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("cng_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("reward_multiplier", sa.Numeric(8, 3), nullable=False, server_default="1"),
        sa.Column("points_per_liter", sa.Numeric(8, 3), nullable=False, server_default="1"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "fuel_transactions",
        _uuid("id", primary_key=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=True, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("liters", sa.Numeric(12, 3), nullable=True),
        sa.Column("payment", sa.String(length=16), nullable=False, server_default="Cash"),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="fuel"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Completed"),
        sa.Column("customer_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("customer_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("reward_points", sa.Integer(), nullable=True),
        _user_fk("user_id", ondelete="CASCADE", nullable=True),
        _uuid("pump_id", sa.ForeignKey("pumps.id", ondelete="SET NULL"), nullable=True),
        _user_fk("employer_id", ondelete="SET NULL", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_fuel_transactions_status", "fuel_transactions", ["status"])
    op.create_index("ix_fuel_transactions_user_id", "fuel_transactions", ["user_id"])
    op.create_index("ix_fuel_transactions_pump_id", "fuel_transactions", ["pump_id"])
    op.create_index("ix_fuel_transactions_employer_id", "fuel_transactions", ["employer_id"])

    op.create_table(
        "customer_tiers",
        _uuid("id", primary_key=True),
        _user_fk("user_id", ondelete="CASCADE", nullable=False),
        sa.Column("tier", sa.String(length=16), nullable=False, server_default="Bronze"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("transactions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("user_id", name="uq_customer_tiers_user_id"),
    )

    op.create_table(
        "pump_assignments",
        _uuid("id", primary_key=True),
        _uuid("pump_id", sa.ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False),
        _user_fk("employer_id", ondelete="CASCADE", nullable=False),
        _user_fk("assigned_by", ondelete="SET NULL", nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        _timestamp("assigned_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_pump_assignments_pump_id", "pump_assignments", ["pump_id"])
    op.create_index("ix_pump_assignments_employer_id", "pump_assignments", ["employer_id"])
    _partial_unique("uq_pump_assignments_active_pump", "pump_assignments", ["pump_id"], ACTIVE_ONLY)

    op.create_table(
        "user_assignments",
        _uuid("id", primary_key=True),
        _user_fk("user_id", ondelete="CASCADE", nullable=False),
        _user_fk("employer_id", ondelete="CASCADE", nullable=False),
        _user_fk("assigned_by", ondelete="SET NULL", nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ACTIVE"),
        _timestamp("assigned_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_user_assignments_user_id", "user_assignments", ["user_id"])
    op.create_index("ix_user_assignments_employer_id", "user_assignments", ["employer_id"])
    _partial_unique(
        "uq_user_assignments_active_pair", "user_assignments", ["user_id", "employer_id"], ACTIVE_ONLY
    )

    op.create_table(
        "gift_assignments",
        _uuid("id", primary_key=True),
        _uuid("gift_id", sa.ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False),
        _user_fk("assigned_to_id", ondelete="CASCADE", nullable=False),
        sa.Column("assigned_to_role", sa.String(length=16), nullable=False),
        _user_fk("assigned_by", ondelete="SET NULL", nullable=True),
        sa.Column("points_required", sa.Integer(), nullable=False),
        sa.Column("points_available", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        _timestamp("assigned_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_gift_assignments_gift_id", "gift_assignments", ["gift_id"])
    op.create_index("ix_gift_assignments_assigned_to_id", "gift_assignments", ["assigned_to_id"])
    op.create_index("ix_gift_assignments_assigned_by", "gift_assignments", ["assigned_by"])
    _partial_unique(
        "uq_gift_assignments_outstanding",
        "gift_assignments",
        ["gift_id", "assigned_to_id", "assigned_to_role"],
        OUTSTANDING_GIFT_ASSIGNMENTS,
    )

    op.create_table(
        "redemptions",
        _uuid("id", primary_key=True),
        _user_fk("user_id", ondelete="CASCADE", nullable=True),
        _uuid("gift_id", sa.ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("points_used", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("redemption_code", sa.String(length=32), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Pending"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_redemptions_user_id", "redemptions", ["user_id"])
    op.create_index("ix_redemptions_gift_id", "redemptions", ["gift_id"])
    op.create_index("ix_redemptions_status", "redemptions", ["status"])
    _partial_unique("uq_redemptions_outstanding", "redemptions", ["user_id", "gift_id"], OUTSTANDING_REDEMPTIONS)

    op.create_table(
        "notifications",
        _uuid("id", primary_key=True),
        _user_fk("user_id", ondelete="CASCADE", nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="info"),
        sa.Column("category", sa.String(length=16), nullable=False, server_default="system"),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("link", sa.String(length=255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_user_read_created", "notifications", ["user_id", "read", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_notifications_user_read_created", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("uq_redemptions_outstanding", table_name="redemptions")
    op.drop_index("ix_redemptions_status", table_name="redemptions")
    op.drop_index("ix_redemptions_gift_id", table_name="redemptions")
    op.drop_index("ix_redemptions_user_id", table_name="redemptions")
    op.drop_table("redemptions")

    op.drop_index("uq_gift_assignments_outstanding", table_name="gift_assignments")
    op.drop_index("ix_gift_assignments_assigned_by", table_name="gift_assignments")
    op.drop_index("ix_gift_assignments_assigned_to_id", table_name="gift_assignments")
    op.drop_index("ix_gift_assignments_gift_id", table_name="gift_assignments")
    op.drop_table("gift_assignments")

    op.drop_index("uq_user_assignments_active_pair", table_name="user_assignments")
    op.drop_index("ix_user_assignments_employer_id", table_name="user_assignments")
    op.drop_index("ix_user_assignments_user_id", table_name="user_assignments")
    op.drop_table("user_assignments")

    op.drop_index("uq_pump_assignments_active_pump", table_name="pump_assignments")
    op.drop_index("ix_pump_assignments_employer_id", table_name="pump_assignments")
    op.drop_index("ix_pump_assignments_pump_id", table_name="pump_assignments")
    op.drop_table("pump_assignments")

    op.drop_table("customer_tiers")

    op.drop_index("ix_fuel_transactions_employer_id", table_name="fuel_transactions")
    op.drop_index("ix_fuel_transactions_pump_id", table_name="fuel_transactions")
    op.drop_index("ix_fuel_transactions_user_id", table_name="fuel_transactions")
    op.drop_index("ix_fuel_transactions_status", table_name="fuel_transactions")
    op.drop_table("fuel_transactions")

    op.drop_table("station_settings")
    op.drop_table("gifts")

    op.drop_index("ix_pump_maintenance_reports_pump_id", table_name="pump_maintenance_reports")
    op.drop_table("pump_maintenance_reports")
    op.drop_index("ix_pump_meter_readings_pump_id", table_name="pump_meter_readings")
    op.drop_table("pump_meter_readings")

    op.drop_index("ix_pumps_supervisor_id", table_name="pumps")
    op.drop_table("pumps")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
