"""
Booking lifecycle with concurrency-safe seat accounting.

STATE MACHINE
=============

    pending --accept--> accepted --cancel--> (deleted, seat restored)
       |
       +----reject----> rejected --cancel--> (deleted)
       |
       +----cancel----> (deleted)

Only an accepted booking holds a seat, so only accept and cancel-of-accepted
touch the ride's `seats_available` counter.

CONCURRENCY STRATEGY: Row locks + guarded UPDATE
================================================

Problem:
  A ride has one seat left and the rider accepts two pending bookings at
  once. Read-then-write in the application would let both see 1 and both
  write 0 (lost update), or decrement twice to -1.

Solution:
  1. The booking row is read with SELECT ... FOR UPDATE, and its status is
     then changed with a compare-and-set (UPDATE/DELETE ... WHERE status = the
     status we read). Two operations on the same booking (accept vs cancel,
     double accept) are serialized; the loser matches 0 rows and is refused.
  2. The seat change is a single statement evaluated by the database:

       UPDATE rides SET seats_available = seats_available - 1
       WHERE ride_id = :id AND seats_available > 0

     The UPDATE takes the ride's row lock; a concurrent decrement waits,
     re-evaluates the WHERE clause against the committed value and matches
     0 rows. Zero rows affected is reported as SeatsUnavailableError.
  3. The booking status write and the seat write share one transaction.
     Any failure rolls both back before the error is reported.

  No retries and no in-process locks: the database is the only
  serialization point, and a failure is reported to the caller as-is.
  The CHECK (seats_available >= 0) constraint is the final safety net.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.schemas.booking import BookingCreate
from app.services.ride_service import get_ride, decrement_seats, increment_seats
from app.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    RideShareError,
    ValidationError,
)
from app.core.metrics import booking_latency, record_booking_transition, record_rollback
from app.core.logging import get_logger

logger = get_logger(__name__)


def _result_label(error: RideShareError) -> str:
    if isinstance(error, ConflictError):
        return "conflict"
    if isinstance(error, NotFoundError):
        return "not_found"
    if isinstance(error, ValidationError):
        return "invalid"
    return "error"


@asynccontextmanager
async def _transaction(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Run the body as one all-or-nothing unit on `db`: commit on success,
    roll back on any failure, and translate storage errors to PersistenceError.
    """
    start = time.perf_counter()
    try:
        yield
        await db.commit()
    except RideShareError as e:
        await db.rollback()
        record_rollback(action)
        record_booking_transition(action, _result_label(e))
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        record_rollback(action)
        record_booking_transition(action, "error")
        logger.error("booking_transaction_failed", action=action, error=str(e))
        raise PersistenceError() from e
    except Exception:
        await db.rollback()
        record_rollback(action)
        record_booking_transition(action, "error")
        raise
    else:
        record_booking_transition(action, "success")
    finally:
        booking_latency.labels(action=action).observe(time.perf_counter() - start)


async def _get_booking_for_update(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking)
        .where(Booking.booking_id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


async def _set_status(
    db: AsyncSession,
    booking: Booking,
    allowed_from: tuple[BookingStatus, ...],
    new_status: BookingStatus,
) -> bool:
    """
    Compare-and-set the booking status. Returns False when the row no longer
    has one of the `allowed_from` statuses (a concurrent request got there first).
    """
    result = await db.execute(
        update(Booking)
        .where(
            Booking.booking_id == booking.booking_id,
            Booking.status.in_([s.value for s in allowed_from]),
        )
        .values(status=new_status.value)
    )
    return result.rowcount == 1


def _require_booking_id(booking_id) -> None:
    if not booking_id:
        raise ValidationError("Booking ID required")


async def request_booking(db: AsyncSession, booking_data: BookingCreate) -> Booking:
    """
    Create a pending seat request on a ride.
    Destination/date/time not supplied by the client are copied from the ride.
    """
    async with _transaction(db, "request"):
        if not (
            booking_data.ride_id
            and booking_data.seater_name
            and booking_data.seater_phone
            and booking_data.seater_student_id
        ):
            raise ValidationError("Missing booking information")

        ride = await get_ride(db, booking_data.ride_id)

        booking = Booking(
            ride_id=ride.ride_id,
            seater_student_id=booking_data.seater_student_id,
            seater_name=booking_data.seater_name,
            seater_phone=booking_data.seater_phone,
            destination=booking_data.destination or ride.destination,
            ride_date=booking_data.ride_date if booking_data.ride_date is not None else ride.ride_date,
            ride_time=booking_data.ride_time if booking_data.ride_time is not None else ride.time_to_leave,
            status=BookingStatus.PENDING.value,
        )
        db.add(booking)
        await db.flush()

    logger.info(
        "booking_requested",
        booking_id=booking.booking_id,
        ride_id=booking.ride_id,
        seater_student_id=booking.seater_student_id,
    )
    return booking


async def accept_booking(db: AsyncSession, booking_id: int) -> Booking:
    """
    Accept a pending booking and take one seat from its ride, atomically.
    Raises SeatsUnavailableError when the ride has no seat left.
    """
    async with _transaction(db, "accept"):
        _require_booking_id(booking_id)
        booking = await _get_booking_for_update(db, booking_id)

        if booking.status != BookingStatus.PENDING.value or not await _set_status(
            db, booking, (BookingStatus.PENDING,), BookingStatus.ACCEPTED
        ):
            logger.warning("booking_accept_refused", booking_id=booking_id, status=booking.status)
            raise InvalidTransitionError("Only pending bookings can be accepted")

        try:
            await decrement_seats(db, booking.ride_id)
        except ConflictError:
            logger.warning("booking_accept_no_seats", booking_id=booking_id, ride_id=booking.ride_id)
            raise

    logger.info("booking_accepted", booking_id=booking.booking_id, ride_id=booking.ride_id)
    return booking


async def reject_booking(db: AsyncSession, booking_id: int) -> Booking:
    """Reject a pending booking. Rejecting an already rejected booking is a no-op."""
    async with _transaction(db, "reject"):
        _require_booking_id(booking_id)
        booking = await _get_booking_for_update(db, booking_id)

        if not await _set_status(
            db, booking, (BookingStatus.PENDING, BookingStatus.REJECTED), BookingStatus.REJECTED
        ):
            raise InvalidTransitionError("Accepted bookings must be cancelled, not rejected")

    logger.info("booking_rejected", booking_id=booking.booking_id, ride_id=booking.ride_id)
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int) -> BookingStatus:
    """
    Delete a booking; if it was accepted, give its seat back to the ride.
    Returns the status the booking had before cancellation.
    """
    async with _transaction(db, "cancel"):
        _require_booking_id(booking_id)
        booking = await _get_booking_for_update(db, booking_id)
        prior_status = BookingStatus(booking.status)
        ride_id = booking.ride_id

        # Delete only if the status is still the one we read, so a concurrent
        # accept cannot slip in between and leave its seat unreturned
        result = await db.execute(
            delete(Booking)
            .where(Booking.booking_id == booking_id, Booking.status == prior_status.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Booking was changed by another request, please retry")

        if prior_status is BookingStatus.ACCEPTED:
            await increment_seats(db, ride_id)

    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        ride_id=ride_id,
        prior_status=prior_status.value,
        seat_restored=prior_status is BookingStatus.ACCEPTED,
    )
    return prior_status
