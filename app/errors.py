# app/errors.py
"""
Domain exceptions. Each carries the HTTP status the API layer maps it to,
so services raise them and app.main turns them into JSON responses.
"""

from datetime import datetime


class SmartParkingError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SmartParkingError):
    """Missing or malformed request fields. Raised before any mutation."""
    status_code = 400


class InvalidCredentialsError(SmartParkingError):
    status_code = 401


class ForbiddenError(SmartParkingError):
    status_code = 403


class TimeWindowError(SmartParkingError):
    """Access requested outside the grace window around a booking's start."""
    status_code = 403

    def __init__(self, message: str, boundary: datetime):
        super().__init__(message)
        self.boundary = boundary


class TooEarlyError(TimeWindowError):
    pass


class WindowClosedError(TimeWindowError):
    pass


class NotFoundError(SmartParkingError):
    status_code = 404


class ConflictError(SmartParkingError):
    """Expected business rejection (overlapping window, maintenance hold)."""
    status_code = 409


class InvalidStateError(ConflictError):
    """Lifecycle transition not allowed from the booking's current status."""


class PersistenceError(SmartParkingError):
    status_code = 500

    def __init__(self, message: str = "Storage failure"):
        super().__init__(message)


class OperationTimeoutError(SmartParkingError):
    status_code = 503
