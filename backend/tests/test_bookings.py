"""
Tests for booking endpoints: the request/accept/reject/cancel lifecycle,
its seat accounting, and the rider/seater listings.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.booking import Booking
from app.services.listing_service import _fmt_timestamp


def booking_request(ride_id: int, seater_id: str = "S2", **extra) -> dict:
    return {
        "rideId": ride_id,
        "seaterName": f"Seater {seater_id}",
        "seaterPhone": "555-0202",
        "seaterStudentId": seater_id,
        **extra,
    }


async def get_booking(db_session, booking_id: int):
    result = await db_session.execute(
        select(Booking).where(Booking.booking_id == booking_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_confirm_booking_creates_pending(client: AsyncClient, db_session, test_ride):
    response = await client.post("/confirm-booking", json=booking_request(test_ride.ride_id))
    data = response.json()
    assert data["success"] is True

    booking = await get_booking(db_session, data["bookingId"])
    assert booking.status == "pending"
    assert booking.seater_student_id == "S2"
    # Snapshot defaults to the ride's own destination/date/time
    assert booking.destination == "Central Station"
    assert booking.ride_date.isoformat() == "2030-01-15"
    assert booking.ride_time.isoformat() == "09:30:00"


@pytest.mark.asyncio
async def test_confirm_booking_keeps_client_snapshot(client: AsyncClient, db_session, test_ride):
    response = await client.post("/confirm-booking", json=booking_request(
        test_ride.ride_id, destination="Central Stn (east exit)", rideDate="2030-01-15", rideTime="09:45",
    ))
    booking = await get_booking(db_session, response.json()["bookingId"])
    assert booking.destination == "Central Stn (east exit)"
    assert booking.ride_time.isoformat() == "09:45:00"


@pytest.mark.asyncio
async def test_confirm_booking_missing_info(client: AsyncClient, test_ride):
    payload = booking_request(test_ride.ride_id)
    del payload["seaterPhone"]
    response = await client.post("/confirm-booking", json=payload)
    assert response.json() == {"success": False, "error": "Missing booking information"}


@pytest.mark.asyncio
async def test_confirm_booking_unknown_ride(client: AsyncClient):
    response = await client.post("/confirm-booking", json=booking_request(99999))
    assert response.json() == {"success": False, "error": "Ride not found"}


@pytest.mark.asyncio
async def test_accept_booking_decrements_seats(client: AsyncClient, db_session, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)

    response = await client.post("/accept-booking", json={"bookingId": booking.booking_id})
    assert response.json() == {"success": True, "message": "Booking accepted!"}

    assert (await get_booking(db_session, booking.booking_id)).status == "accepted"
    assert await seats_left(test_ride.ride_id) == 1


@pytest.mark.asyncio
async def test_accept_twice_does_not_take_two_seats(client: AsyncClient, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)
    await client.post("/accept-booking", json={"bookingId": booking.booking_id})

    again = await client.post("/accept-booking", json={"bookingId": booking.booking_id})
    assert again.json() == {"success": False, "error": "Only pending bookings can be accepted"}
    assert await seats_left(test_ride.ride_id) == 1


@pytest.mark.asyncio
async def test_accept_on_full_ride_is_conflict(client: AsyncClient, db_session, last_seat_ride, make_booking, seats_left):
    first = await make_booking(last_seat_ride.ride_id, "S2")
    second = await make_booking(last_seat_ride.ride_id, "S3")

    ok = await client.post("/accept-booking", json={"bookingId": first.booking_id})
    assert ok.json()["success"] is True

    full = await client.post("/accept-booking", json={"bookingId": second.booking_id})
    assert full.json() == {"success": False, "error": "No seats available on this ride"}

    # Rolled back: the losing booking is still pending and seats stay at 0
    assert (await get_booking(db_session, second.booking_id)).status == "pending"
    assert await seats_left(last_seat_ride.ride_id) == 0


@pytest.mark.asyncio
async def test_accept_unknown_booking(client: AsyncClient):
    response = await client.post("/accept-booking", json={"bookingId": 424242})
    assert response.json() == {"success": False, "error": "Booking not found"}


@pytest.mark.asyncio
async def test_accept_without_booking_id(client: AsyncClient):
    response = await client.post("/accept-booking", json={})
    assert response.json() == {"success": False, "error": "Booking ID required"}


@pytest.mark.asyncio
async def test_accept_with_non_numeric_booking_id(client: AsyncClient):
    response = await client.post("/accept-booking", json={"bookingId": "abc"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Invalid request payload"}


@pytest.mark.asyncio
async def test_reject_twice_stays_rejected(client: AsyncClient, db_session, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)

    for _ in range(2):
        response = await client.post("/reject-booking", json={"bookingId": booking.booking_id})
        assert response.json() == {"success": True, "message": "Booking rejected!"}
        assert (await get_booking(db_session, booking.booking_id)).status == "rejected"

    assert await seats_left(test_ride.ride_id) == 2


@pytest.mark.asyncio
async def test_rejected_booking_cannot_be_accepted(client: AsyncClient, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)
    await client.post("/reject-booking", json={"bookingId": booking.booking_id})

    response = await client.post("/accept-booking", json={"bookingId": booking.booking_id})
    assert response.json()["success"] is False
    assert await seats_left(test_ride.ride_id) == 2


@pytest.mark.asyncio
async def test_accepted_booking_cannot_be_rejected(client: AsyncClient, db_session, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)
    await client.post("/accept-booking", json={"bookingId": booking.booking_id})

    response = await client.post("/reject-booking", json={"bookingId": booking.booking_id})
    assert response.json()["success"] is False
    assert (await get_booking(db_session, booking.booking_id)).status == "accepted"
    assert await seats_left(test_ride.ride_id) == 1


@pytest.mark.asyncio
async def test_reject_unknown_booking(client: AsyncClient):
    response = await client.post("/reject-booking", json={"bookingId": 424242})
    assert response.json() == {"success": False, "error": "Booking not found"}


@pytest.mark.asyncio
async def test_accept_then_cancel_is_seat_neutral(client: AsyncClient, db_session, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)
    before = await seats_left(test_ride.ride_id)

    await client.post("/accept-booking", json={"bookingId": booking.booking_id})
    response = await client.post("/cancel-booking", json={"bookingId": booking.booking_id})
    assert response.json() == {"success": True, "message": "Booking cancelled successfully!"}

    assert await get_booking(db_session, booking.booking_id) is None
    assert await seats_left(test_ride.ride_id) == before


@pytest.mark.asyncio
async def test_cancel_pending_keeps_seats(client: AsyncClient, db_session, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)

    response = await client.post("/cancel-booking", json={"bookingId": booking.booking_id})
    assert response.json()["success"] is True
    assert await get_booking(db_session, booking.booking_id) is None
    assert await seats_left(test_ride.ride_id) == 2


@pytest.mark.asyncio
async def test_cancel_rejected_keeps_seats(client: AsyncClient, test_ride, make_booking, seats_left):
    booking = await make_booking(test_ride.ride_id)
    await client.post("/reject-booking", json={"bookingId": booking.booking_id})

    await client.post("/cancel-booking", json={"bookingId": booking.booking_id})
    assert await seats_left(test_ride.ride_id) == 2


@pytest.mark.asyncio
async def test_cancel_twice_reports_not_found(client: AsyncClient, test_ride, make_booking):
    booking = await make_booking(test_ride.ride_id)
    await client.post("/cancel-booking", json={"bookingId": booking.booking_id})

    response = await client.post("/cancel-booking", json={"bookingId": booking.booking_id})
    assert response.json() == {"success": False, "error": "Booking not found"}


@pytest.mark.asyncio
async def test_rider_bookings_listing(client: AsyncClient, test_ride, make_ride, make_booking):
    first = await make_booking(test_ride.ride_id, "S2")
    second = await make_booking(test_ride.ride_id, "S3")
    other_ride = await make_ride(student_id="R2")
    await make_booking(other_ride.ride_id, "S4")

    response = await client.get("/rider-bookings", params={"studentId": "R1"})
    bookings = response.json()["bookings"]

    assert [b["bookingId"] for b in bookings] == [second.booking_id, first.booking_id]
    assert bookings[0] == {
        "bookingId": second.booking_id,
        "seaterName": "Seater S3",
        "seaterPhone": "555-0202",
        "destination": "Central Station",
        "rideDate": "2030-01-15",
        "rideTime": "09:30:00",
        "bookingTime": bookings[0]["bookingTime"],
        "status": "pending",
    }
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", bookings[0]["bookingTime"])


@pytest.mark.asyncio
async def test_seater_bookings_listing(client: AsyncClient, test_ride, make_booking):
    booking = await make_booking(test_ride.ride_id, "S2")
    await client.post("/accept-booking", json={"bookingId": booking.booking_id})
    await make_booking(test_ride.ride_id, "S3")

    response = await client.get("/seater-bookings", params={"studentId": "S2"})
    bookings = response.json()["bookings"]

    assert len(bookings) == 1
    entry = bookings[0]
    assert entry["bookingId"] == booking.booking_id
    assert entry["riderName"] == "Ravi Kumar"
    assert entry["riderPhone"] == "555-0199"
    assert entry["source"] == "North Campus Gate"
    assert entry["status"] == "accepted"


@pytest.mark.asyncio
async def test_listing_renders_missing_snapshot_as_empty_string(client: AsyncClient, db_session, test_ride, make_booking):
    booking = await make_booking(test_ride.ride_id, "S2")
    stored = await get_booking(db_session, booking.booking_id)
    stored.ride_date = None
    stored.ride_time = None
    await db_session.commit()

    response = await client.get("/seater-bookings", params={"studentId": "S2"})
    entry = response.json()["bookings"][0]
    assert entry["rideDate"] == ""
    assert entry["rideTime"] == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/rider-bookings", "/seater-bookings"])
async def test_listing_requires_student_id(client: AsyncClient, path):
    response = await client.get(path)
    assert response.status_code == 200
    assert response.json() == {"bookings": [], "error": "Student ID required"}


@pytest.mark.parametrize(
    "value",
    [
        datetime(2030, 1, 15, 9, 30, 5, 123456),
        datetime(2030, 1, 15, 9, 30, 5, 123456, tzinfo=timezone.utc),
        datetime(2030, 1, 15, 15, 0, 5, 123456, tzinfo=timezone(timedelta(hours=5, minutes=30))),
    ],
)
def test_booking_time_is_rendered_in_utc(value):
    assert _fmt_timestamp(value) == "2030-01-15T09:30:05.123Z"


def test_missing_booking_time_renders_empty():
    assert _fmt_timestamp(None) == ""
