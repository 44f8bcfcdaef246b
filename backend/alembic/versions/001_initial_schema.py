"""Initial schema: resources, sessions, reservations, price rules, add-ons.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STAY_PREDICATE = "resource_type = 'exclusive' AND status NOT IN ('cancelled', 'checked_out')"


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Exclusive resources (chalets)
    op.create_table(
        "exclusive_resources",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default=sa.text("'chalet'")),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("weekend_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("base_price > 0", name="check_exclusive_base_price_positive"),
        sa.CheckConstraint("max_guests > 0", name="check_exclusive_max_guests_positive"),
    )
    op.create_index("ix_exclusive_resources_id", "exclusive_resources", ["id"])

    # Shared sessions (pool sessions, seatings)
    op.create_table(
        "shared_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default=sa.text("'pool'")),
        sa.Column("max_capacity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("max_capacity > 0", name="check_session_capacity_positive"),
        sa.CheckConstraint("price > 0", name="check_session_price_positive"),
    )
    op.create_index("ix_shared_sessions_id", "shared_sessions", ["id"])

    # Reservations (stays and tickets)
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("reference", sa.String(32), nullable=False, unique=True),
        sa.Column("resource_type", sa.String(20), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=False),
        sa.Column("interval_start", sa.Date(), nullable=True),
        sa.Column("interval_end", sa.Date(), nullable=True),
        sa.Column("session_date", sa.Date(), nullable=True),
        sa.Column("party_size", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("unit_price_snapshot", sa.Numeric(10, 2), nullable=False),
        sa.Column("add_ons_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("deposit_amount", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("checked_out_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("party_size > 0", name="check_reservation_party_size_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'checked_in', 'used', 'checked_out', 'cancelled', 'no_show')",
            name="check_reservation_status",
        ),
        sa.CheckConstraint(
            "(resource_type = 'exclusive' AND interval_start IS NOT NULL AND interval_end > interval_start)"
            " OR (resource_type = 'shared' AND session_date IS NOT NULL)",
            name="check_reservation_shape",
        ),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    # Every conflict and capacity query filters on these three columns first.
    op.create_index(
        "ix_reservations_resource_status", "reservations", ["resource_type", "resource_id", "status"]
    )
    # SUM(party_size) per (session, date) for the capacity ledger
    op.create_index("ix_reservations_session_date", "reservations", ["resource_id", "session_date"])
    # Backstop for the per-resource lock: two active stays cannot start on the
    # same night of the same chalet. Overlap itself is enforced by the engine.
    op.create_index(
        "uq_active_stay_start",
        "reservations",
        ["resource_id", "interval_start"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_STAY_PREDICATE),
    )

    # Price rules
    op.create_table(
        "price_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column("resource_type", sa.String(20), nullable=False),
        sa.Column("resource_id", sa.Integer(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("multiplier", sa.Numeric(6, 3), nullable=True),
        sa.Column("override_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("end_date >= start_date", name="check_rule_dates_ordered"),
        sa.CheckConstraint("(multiplier IS NULL) <> (override_price IS NULL)", name="check_rule_single_adjustment"),
        sa.CheckConstraint("multiplier IS NULL OR multiplier > 0", name="check_rule_multiplier_positive"),
    )
    op.create_index("ix_price_rules_id", "price_rules", ["id"])
    op.create_index(
        "ix_price_rules_lookup", "price_rules", ["resource_type", "is_active", "start_date", "end_date"]
    )

    # Add-ons
    op.create_table(
        "add_ons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("price_type", sa.String(20), nullable=False, server_default=sa.text("'one_time'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_add_on_price_non_negative"),
        sa.CheckConstraint("price_type IN ('per_night', 'one_time')", name="check_add_on_price_type"),
    )
    op.create_index("ix_add_ons_id", "add_ons", ["id"])


def downgrade() -> None:
    op.drop_table("add_ons")
    op.drop_table("price_rules")
    op.drop_table("reservations")
    op.drop_table("shared_sessions")
    op.drop_table("exclusive_resources")
