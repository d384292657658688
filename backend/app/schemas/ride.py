"""
Pydantic schemas for posting and searching rides.
"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel

from app.schemas.base import CamelModel


class RideCreate(CamelModel):
    student_id: Optional[str] = None
    rider_name: Optional[str] = None
    phone_no: Optional[str] = None
    source: Optional[str] = None
    destination: Optional[str] = None
    leave_date: Optional[date] = None
    leave_time: Optional[time] = None
    seats_available: Optional[int] = None
    note: Optional[str] = None


class RideSummary(BaseModel):
    """Search result row; keys stay snake_case to match the column names."""

    ride_id: int
    rider_name: str
    phone: str
    source: str
    destination: str
    ride_date: date
    time_to_leave: time
    seats_available: int
    note: Optional[str] = None

    model_config = {"from_attributes": True}
