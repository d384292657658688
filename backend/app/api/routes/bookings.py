"""
Booking endpoints: request, accept, reject, cancel, and the two listings.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.booking import BookingStatus
from app.schemas.booking import BookingCreate, BookingAction
from app.services.booking_service import (
    request_booking,
    accept_booking,
    reject_booking,
    cancel_booking,
)
from app.services.listing_service import list_bookings_for_rider, list_bookings_for_seater
from app.services.cache_service import invalidate_search_cache
from app.core.exceptions import RideShareError

router = APIRouter(tags=["Bookings"])


@router.post("/confirm-booking")
async def confirm_booking(booking_data: BookingCreate, db: AsyncSession = Depends(get_db)):
    """Ask for a seat on a ride; the booking waits for the rider's decision."""
    booking = await request_booking(db, booking_data)
    return {
        "success": True,
        "message": "Booking request sent! Waiting for rider approval.",
        "bookingId": booking.booking_id,
    }


@router.post("/accept-booking")
async def accept_booking_endpoint(action: BookingAction, db: AsyncSession = Depends(get_db)):
    """
    Accept a pending booking.

    The status change and the seat decrement commit together. When the ride
    has no seat left the response is `success: false` and nothing changes.
    """
    await accept_booking(db, action.booking_id)
    # A ride may have just dropped out of search results
    await invalidate_search_cache()
    return {"success": True, "message": "Booking accepted!"}


@router.post("/reject-booking")
async def reject_booking_endpoint(action: BookingAction, db: AsyncSession = Depends(get_db)):
    await reject_booking(db, action.booking_id)
    return {"success": True, "message": "Booking rejected!"}


@router.post("/cancel-booking")
async def cancel_booking_endpoint(action: BookingAction, db: AsyncSession = Depends(get_db)):
    """Delete a booking; an accepted booking gives its seat back to the ride."""
    prior_status = await cancel_booking(db, action.booking_id)
    if prior_status is BookingStatus.ACCEPTED:
        await invalidate_search_cache()
    return {"success": True, "message": "Booking cancelled successfully!"}


@router.get("/rider-bookings")
async def rider_bookings(
    student_id: Optional[str] = Query(None, alias="studentId"),
    db: AsyncSession = Depends(get_db),
):
    """Bookings on rides the student is driving."""
    try:
        bookings = await list_bookings_for_rider(db, student_id)
    except RideShareError as e:
        return {"bookings": [], "error": e.message}
    return {"bookings": [b.model_dump(by_alias=True) for b in bookings]}


@router.get("/seater-bookings")
async def seater_bookings(
    student_id: Optional[str] = Query(None, alias="studentId"),
    db: AsyncSession = Depends(get_db),
):
    """Bookings the student has made on other riders' rides."""
    try:
        bookings = await list_bookings_for_seater(db, student_id)
    except RideShareError as e:
        return {"bookings": [], "error": e.message}
    return {"bookings": [b.model_dump(by_alias=True) for b in bookings]}
