"""
Read-only booking listings for riders and seaters.

Both views are flattened and null-safe: a missing date, time or timestamp
renders as "" so the frontend never has to handle null.
"""

from datetime import date, datetime, time, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.ride import Ride
from app.schemas.booking import RiderBookingView, SeaterBookingView
from app.core.exceptions import PersistenceError, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)


def _fmt_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def _fmt_time(value: Optional[time]) -> str:
    return value.isoformat() if value is not None else ""


def _fmt_timestamp(value: Optional[datetime]) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix, e.g. 2030-01-15T09:30:00.000Z."""
    if not value:
        return ""
    # Naive values come from backends without timezone support and are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def list_bookings_for_rider(db: AsyncSession, student_id: Optional[str]) -> list[RiderBookingView]:
    """Bookings on every ride owned by `student_id`, newest first."""
    if not student_id:
        raise ValidationError("Student ID required")

    try:
        result = await db.execute(
            select(Booking)
            .join(Ride, Booking.ride_id == Ride.ride_id)
            .where(Ride.student_id == student_id)
            .order_by(Booking.booking_time.desc(), Booking.booking_id.desc())
        )
    except SQLAlchemyError as e:
        logger.error("rider_bookings_failed", student_id=student_id, error=str(e))
        raise PersistenceError() from e

    return [
        RiderBookingView(
            booking_id=b.booking_id,
            seater_name=b.seater_name,
            seater_phone=b.seater_phone,
            destination=b.destination or "",
            ride_date=_fmt_date(b.ride_date),
            ride_time=_fmt_time(b.ride_time),
            booking_time=_fmt_timestamp(b.booking_time),
            status=b.status,
        )
        for b in result.scalars().all()
    ]


async def list_bookings_for_seater(db: AsyncSession, student_id: Optional[str]) -> list[SeaterBookingView]:
    """Bookings made by `student_id`, newest first, with the rider's contact and pickup point."""
    if not student_id:
        raise ValidationError("Student ID required")

    try:
        result = await db.execute(
            select(Booking, Ride.rider_name, Ride.phone, Ride.source)
            .join(Ride, Booking.ride_id == Ride.ride_id)
            .where(Booking.seater_student_id == student_id)
            .order_by(Booking.booking_time.desc(), Booking.booking_id.desc())
        )
    except SQLAlchemyError as e:
        logger.error("seater_bookings_failed", student_id=student_id, error=str(e))
        raise PersistenceError() from e

    return [
        SeaterBookingView(
            booking_id=b.booking_id,
            rider_name=rider_name,
            rider_phone=rider_phone,
            destination=b.destination or "",
            ride_date=_fmt_date(b.ride_date),
            ride_time=_fmt_time(b.ride_time),
            booking_time=_fmt_timestamp(b.booking_time),
            status=b.status,
            source=source,
        )
        for b, rider_name, rider_phone, source in result.all()
    ]
