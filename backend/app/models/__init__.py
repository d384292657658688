from app.models.user import User
from app.models.ride import Ride
from app.models.booking import Booking, BookingStatus

__all__ = ["User", "Ride", "Booking", "BookingStatus"]
