"""
Pydantic schemas for booking requests, lifecycle actions and listings.
"""

from datetime import date, time
from typing import Optional

from app.schemas.base import CamelModel


class BookingCreate(CamelModel):
    ride_id: Optional[int] = None
    seater_name: Optional[str] = None
    seater_phone: Optional[str] = None
    seater_student_id: Optional[str] = None
    destination: Optional[str] = None
    ride_date: Optional[date] = None
    ride_time: Optional[time] = None


class BookingAction(CamelModel):
    booking_id: Optional[int] = None


class RiderBookingView(CamelModel):
    booking_id: int
    seater_name: str
    seater_phone: str
    destination: str
    ride_date: str
    ride_time: str
    booking_time: str
    status: str


class SeaterBookingView(CamelModel):
    booking_id: int
    rider_name: str
    rider_phone: str
    destination: str
    ride_date: str
    ride_time: str
    booking_time: str
    status: str
    source: str
