import random
import re
import time
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints, field_validator

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

BookingStatus = Literal["confirmed", "pending", "cancelled"]

ANY_STYLIST = "any"
CANCELLED = "cancelled"

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
BOOKING_ID_PATTERN = re.compile(r"^BK\d+$")


def is_valid_date(value: str) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def generate_booking_id() -> str:
    return f"BK{int(time.time() * 1000)}{random.randint(0, 999)}"


def is_booking_code(identifier: str) -> bool:
    return bool(BOOKING_ID_PATTERN.match(identifier or ""))


class Customer(BaseModel):
    name: NonEmptyStr
    phone: NonEmptyStr
    email: str = ""
    whatsapp: str = ""

    @field_validator("email", "whatsapp", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class BookingFields(BaseModel):
    date: NonEmptyStr = Field(..., description="Appointment date, YYYY-MM-DD")
    time: NonEmptyStr = Field(..., description="Time-of-day label, e.g. 14:30")
    service: NonEmptyStr
    stylist: NonEmptyStr = Field(..., description="Stylist name or 'any'")
    customer: Customer
    status: BookingStatus = "confirmed"
    notes: str = ""
    price: float = Field(0, ge=0)

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not is_valid_date(value):
            raise ValueError("Invalid date format. Expected YYYY-MM-DD")
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, value):
        return "" if value is None else value


class BookingCreate(BookingFields):
    bookingId: Optional[NonEmptyStr] = None


class Booking(BookingFields):
    id: Optional[str] = None
    bookingId: NonEmptyStr
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    # Only set on bookings that were never persisted (degraded mode)
    note: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != CANCELLED

    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


# Fields a PUT may change; everything else in the body is ignored
MUTABLE_FIELDS = ("date", "time", "service", "stylist", "customer", "status", "notes", "price")


class BookedSlot(BaseModel):
    time: str
    stylist: str


class Availability(BaseModel):
    date: str
    bookedSlots: List[BookedSlot]
    note: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.bookedSlots)
