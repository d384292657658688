"""
Ride catalog: posting, searching and the seat counter primitives.

`decrement_seats` and `increment_seats` never commit. They are only called by
the booking lifecycle inside its own transaction, so the seat change and the
booking change land (or roll back) together.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ride import Ride
from app.schemas.ride import RideCreate
from app.core.exceptions import (
    NotFoundError,
    PersistenceError,
    SeatsUnavailableError,
    ValidationError,
)
from app.core.metrics import record_seat_adjustment
from app.core.logging import get_logger

logger = get_logger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def post_ride(db: AsyncSession, ride_data: RideCreate) -> Ride:
    """Create a ride offer with every seat available."""
    required = (
        ride_data.rider_name,
        ride_data.phone_no,
        ride_data.source,
        ride_data.destination,
        ride_data.leave_date,
        ride_data.leave_time,
        ride_data.seats_available,
        ride_data.student_id,
    )
    if any(value is None or value == "" for value in required):
        raise ValidationError("Missing required ride fields")
    if ride_data.seats_available < 1:
        raise ValidationError("Seats available must be at least 1")

    ride = Ride(
        student_id=ride_data.student_id,
        rider_name=ride_data.rider_name,
        phone=ride_data.phone_no,
        source=ride_data.source,
        destination=ride_data.destination,
        ride_date=ride_data.leave_date,
        time_to_leave=ride_data.leave_time,
        seat_count=ride_data.seats_available,
        seats_available=ride_data.seats_available,
        note=ride_data.note,
    )
    try:
        db.add(ride)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("ride_post_failed", error=str(e))
        raise PersistenceError() from e

    logger.info(
        "ride_posted",
        ride_id=ride.ride_id,
        student_id=ride.student_id,
        destination=ride.destination,
        seats=ride.seat_count,
    )
    return ride


async def search_rides(
    db: AsyncSession,
    destination: Optional[str],
    ride_date: Optional[date],
) -> list[Ride]:
    """
    Rides on `ride_date` whose destination contains `destination`
    (case-insensitive) and that still have a free seat, earliest first.
    """
    if ride_date is None:
        raise ValidationError("Date is required")

    pattern = f"%{_escape_like(destination or '')}%"
    try:
        result = await db.execute(
            select(Ride)
            .where(
                Ride.destination.ilike(pattern, escape="\\"),
                Ride.ride_date == ride_date,
                Ride.seats_available > 0,
            )
            .order_by(Ride.time_to_leave.asc(), Ride.ride_id.asc())
        )
    except SQLAlchemyError as e:
        logger.error("ride_search_failed", error=str(e))
        raise PersistenceError() from e
    return list(result.scalars().all())


async def get_ride(db: AsyncSession, ride_id: int) -> Ride:
    result = await db.execute(select(Ride).where(Ride.ride_id == ride_id))
    ride = result.scalar_one_or_none()
    if ride is None:
        raise NotFoundError("Ride not found")
    return ride


async def _ride_exists(db: AsyncSession, ride_id: int) -> bool:
    result = await db.execute(select(Ride.ride_id).where(Ride.ride_id == ride_id))
    return result.scalar_one_or_none() is not None


async def decrement_seats(db: AsyncSession, ride_id: int) -> None:
    """
    Take one seat in a single guarded UPDATE. The WHERE clause does the
    availability check, so concurrent callers cannot push the counter below 0.
    """
    result = await db.execute(
        update(Ride)
        .where(Ride.ride_id == ride_id, Ride.seats_available > 0)
        .values(seats_available=Ride.seats_available - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        if not await _ride_exists(db, ride_id):
            raise NotFoundError("Ride not found")
        raise SeatsUnavailableError()
    record_seat_adjustment("decrement")


async def increment_seats(db: AsyncSession, ride_id: int) -> None:
    """Give one seat back to a ride."""
    result = await db.execute(
        update(Ride)
        .where(Ride.ride_id == ride_id)
        .values(seats_available=Ride.seats_available + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Ride not found")
    record_seat_adjustment("increment")
