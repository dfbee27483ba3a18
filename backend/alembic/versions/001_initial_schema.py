"""Initial schema: schedules, bookings, booking_seats, payments.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Schedules are written by the scheduling tooling; the engine reads them
    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("route_id", sa.Integer(), nullable=False),
        sa.Column("bus_id", sa.Integer(), nullable=False),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.CheckConstraint("price > 0", name="check_schedule_price_positive"),
        sa.CheckConstraint("capacity > 0", name="check_schedule_capacity_positive"),
        sa.CheckConstraint("arrival_time > departure_time", name="check_schedule_arrives_after_departure"),
    )
    op.create_index("ix_schedules_id", "schedules", ["id"])
    op.create_index("ix_schedules_route_id", "schedules", ["route_id"])
    op.create_index("ix_schedules_bus_id", "schedules", ["bus_id"])
    op.create_index("ix_schedules_departure_time", "schedules", ["departure_time"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id"), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("travel_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        *_timestamps(),
        sa.CheckConstraint("status IN ('confirmed', 'canceled')", name="booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_schedule_id", "bookings", ["schedule_id"])

    # One row per claimed seat. Status mirrors the owning booking.
    op.create_table(
        "booking_seats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id"), nullable=False),
        sa.Column("seat_label", sa.String(20), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.CheckConstraint("status IN ('confirmed', 'canceled')", name="booking_seat_status"),
    )
    op.create_index("ix_booking_seats_booking_id", "booking_seats", ["booking_id"])
    op.create_index("ix_booking_seats_schedule_status", "booking_seats", ["schedule_id", "status"])
    # THE double-booking guard: at most one confirmed claim per (schedule, seat).
    # Canceled rows fall out of the index, so a freed seat can be claimed again.
    op.create_index(
        "uq_booking_seats_confirmed_seat",
        "booking_seats",
        ["schedule_id", "seat_label"],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
        sqlite_where=sa.text("status = 'confirmed'"),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("receipt_number", sa.String(40), nullable=False),
        sa.Column("transaction_reference", sa.String(40), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'completed'")),
        *_timestamps(),
        sa.UniqueConstraint("receipt_number", name="uq_payments_receipt_number"),
        sa.UniqueConstraint("transaction_reference", name="uq_payments_transaction_reference"),
        sa.CheckConstraint("amount_paid > 0", name="check_payment_amount_positive"),
        sa.CheckConstraint("payment_method IN ('Mobile Money', 'Card')", name="payment_method"),
        sa.CheckConstraint("status IN ('completed', 'refund_pending')", name="payment_status"),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index(
        "uq_payments_completed_booking",
        "payments",
        ["booking_id"],
        unique=True,
        postgresql_where=sa.text("status = 'completed'"),
        sqlite_where=sa.text("status = 'completed'"),
    )


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("booking_seats")
    op.drop_table("bookings")
    op.drop_table("schedules")
