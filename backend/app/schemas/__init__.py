from app.schemas.user import UserCreate, UserLogin, UserProfile
from app.schemas.ride import RideCreate, RideSummary
from app.schemas.booking import (
    BookingCreate,
    BookingAction,
    RiderBookingView,
    SeaterBookingView,
)

__all__ = [
    "UserCreate", "UserLogin", "UserProfile",
    "RideCreate", "RideSummary",
    "BookingCreate", "BookingAction", "RiderBookingView", "SeaterBookingView",
]
