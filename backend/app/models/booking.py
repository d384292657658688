"""
Booking model: a seater's request for a seat on a ride.

Key design decisions:
- Destination/date/time are a snapshot taken at request time
- Status moves pending -> accepted | rejected; cancellation deletes the row
- Only an accepted booking holds a seat on its ride
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Date, Time, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    booking_id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(Integer, ForeignKey("rides.ride_id", ondelete="CASCADE"), nullable=False, index=True)
    seater_student_id = Column(String(50), nullable=False, index=True)
    seater_name = Column(String(255), nullable=False)
    seater_phone = Column(String(30), nullable=False)
    destination = Column(String(255), nullable=True)
    ride_date = Column(Date, nullable=True)
    ride_time = Column(Time, nullable=True)
    booking_time = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)

    ride = relationship("Ride", back_populates="bookings")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected')", name="check_booking_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.booking_id}, ride={self.ride_id}, status={self.status})>"
