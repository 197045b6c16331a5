from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base class for failures the HTTP layer turns into a JSON envelope."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "error": self.__class__.__name__,
        }


class ValidationError(BookingError):
    """Missing or malformed field, or a bad date format."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.field:
            body["field"] = self.field
        return body


class ConflictError(BookingError):
    status_code = 400

    def __init__(self, message: str = "This time slot is already booked"):
        super().__init__(message)


class DuplicateBookingIdError(ConflictError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking ID {booking_id} already exists")
        self.booking_id = booking_id


class NotFoundError(BookingError):
    status_code = 404

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)


class StoreError(BookingError):
    """The record store failed or is unreachable."""

    status_code = 500
