"""
Ride model with seat inventory tracking.

Key design decisions:
- `seats_available` is only changed by the booking lifecycle (accept/cancel)
- CHECK constraint keeps `seats_available` non-negative at the DB level
- Composite index on (ride_date, seats_available) serves the search query
"""

from sqlalchemy import Column, Integer, String, Date, Time, Text, Index, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Ride(Base, TimestampMixin):
    __tablename__ = "rides"

    ride_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(String(50), nullable=False, index=True)  # owner (rider)
    rider_name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    source = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    ride_date = Column(Date, nullable=False)
    time_to_leave = Column(Time, nullable=False)
    seat_count = Column(Integer, nullable=False)
    seats_available = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)

    bookings = relationship("Booking", back_populates="ride", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("seats_available >= 0", name="check_ride_seats_non_negative"),
        CheckConstraint("seat_count > 0", name="check_ride_seat_count_positive"),
        Index("ix_rides_date_seats", "ride_date", "seats_available"),
    )

    def __repr__(self) -> str:
        return (
            f"<Ride(id={self.ride_id}, to={self.destination}, "
            f"available={self.seats_available}/{self.seat_count})>"
        )
