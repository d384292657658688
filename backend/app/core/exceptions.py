"""
Domain error taxonomy.

Every failure a service can report is one of these kinds. Each carries a
stable user-facing message; raw storage errors are logged, never returned.
"""

from typing import Optional


class RideShareError(Exception):
    """Base class for all domain errors."""

    kind = "error"
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RideShareError):
    kind = "validation"
    default_message = "Missing required fields"


class DuplicateKeyError(RideShareError):
    kind = "duplicate_key"
    default_message = "Student ID or Email already exists"


class InvalidCredentialsError(RideShareError):
    kind = "invalid_credentials"
    default_message = "Invalid email or password"


class NotFoundError(RideShareError):
    kind = "not_found"
    default_message = "Not found"


class ConflictError(RideShareError):
    kind = "conflict"
    default_message = "Request conflicts with the current state"


class SeatsUnavailableError(ConflictError):
    default_message = "No seats available on this ride"


class InvalidTransitionError(ConflictError):
    default_message = "Booking can no longer be changed"


class PersistenceError(RideShareError):
    kind = "persistence"
    default_message = "Could not complete the request, please try again"
