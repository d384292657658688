"""Initial schema: users, rides, bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users: student id is the natural key, email is unique for login
    op.create_table(
        "users",
        sa.Column("student_id", sa.String(50), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Rides
    op.create_table(
        "rides",
        sa.Column("ride_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.String(50), nullable=False),
        sa.Column("rider_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("source", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("ride_date", sa.Date(), nullable=False),
        sa.Column("time_to_leave", sa.Time(), nullable=False),
        sa.Column("seat_count", sa.Integer(), nullable=False),
        sa.Column("seats_available", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Last line of defence for the seat counter
        sa.CheckConstraint("seats_available >= 0", name="check_ride_seats_non_negative"),
        sa.CheckConstraint("seat_count > 0", name="check_ride_seat_count_positive"),
    )
    op.create_index("ix_rides_student_id", "rides", ["student_id"])
    # Search filters on exact date and seats_available > 0
    op.create_index("ix_rides_date_seats", "rides", ["ride_date", "seats_available"])

    # Bookings
    op.create_table(
        "bookings",
        sa.Column("booking_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "ride_id",
            sa.Integer(),
            sa.ForeignKey("rides.ride_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("seater_student_id", sa.String(50), nullable=False),
        sa.Column("seater_name", sa.String(255), nullable=False),
        sa.Column("seater_phone", sa.String(30), nullable=False),
        sa.Column("destination", sa.String(255), nullable=True),
        sa.Column("ride_date", sa.Date(), nullable=True),
        sa.Column("ride_time", sa.Time(), nullable=True),
        sa.Column("booking_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_ride_id", "bookings", ["ride_id"])
    op.create_index("ix_bookings_seater_student_id", "bookings", ["seater_student_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("rides")
    op.drop_table("users")
