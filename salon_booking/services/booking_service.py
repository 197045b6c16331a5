from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from salon_booking.core.errors import (
    ConflictError,
    DuplicateBookingIdError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from salon_booking.core.logger import logger
from salon_booking.models.booking import (
    ANY_STYLIST,
    CANCELLED,
    MUTABLE_FIELDS,
    Availability,
    BookedSlot,
    Booking,
    BookingCreate,
    generate_booking_id,
    is_valid_date,
)
from salon_booking.services.store import BookingStore, utc_now

DEGRADED_NOTE = "Development mode - database not connected"

# Auto-generated IDs only; a caller-supplied duplicate fails straight away
MAX_ID_ATTEMPTS = 5


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Reduce a pydantic error report to its first offending field."""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"])
    if error["type"] == "missing" or error.get("input", "") is None:
        message = f"{field} is required"
    elif error["type"] == "string_too_short":
        message = f"{field} must be a non-empty string"
    else:
        message = f"{field}: {error['msg'].removeprefix('Value error, ')}"
    return ValidationError(message, field=field)


def validate(model: Type[BaseModel], payload: Any):
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise to_validation_error(e) from None


class BookingService:
    def __init__(self, store: BookingStore, degraded_mode: bool = False, any_stylist_blocks_slot: bool = True):
        self.store = store
        # Fabricate unpersisted answers while the store is down (never in production)
        self.degraded_mode = degraded_mode
        self.any_stylist_blocks_slot = any_stylist_blocks_slot

    def _ensure_store(self):
        if not self.store.is_ready():
            logger.error(f"❌ Booking store ({self.store.backend}) is not ready")
            raise StoreError("Booking store is unavailable")

    async def create_booking(self, payload: Dict[str, Any]) -> Booking:
        """
        Validate and insert a new booking.
        Fails with ConflictError when an active booking already holds the slot.
        With the wildcard stylist "any" and `any_stylist_blocks_slot`, every
        active booking at that date and time holds the slot.
        """
        data = validate(BookingCreate, payload)
        logger.info(f"📝 Creating booking: {data.date} {data.time} {data.service} stylist={data.stylist} customer={data.customer.name}")

        fields = data.model_dump(exclude={"bookingId", "status"})
        fields["status"] = "confirmed"

        if not self.store.is_ready():
            if self.degraded_mode:
                return self._unpersisted_booking(fields, data.bookingId)
            self._ensure_store()

        match_any_stylist = self.any_stylist_blocks_slot and data.stylist == ANY_STYLIST

        for _ in range(MAX_ID_ATTEMPTS):
            booking = Booking(**fields, bookingId=data.bookingId or generate_booking_id())
            try:
                saved = await self.store.insert_if_slot_free(booking, match_any_stylist=match_any_stylist)
            except DuplicateBookingIdError:
                if data.bookingId:
                    raise
                logger.warning(f"⚠️ Generated booking ID {booking.bookingId} already taken, generating another")
                continue
            except ConflictError:
                logger.warning(f"⛔ Slot {data.date} {data.time} ({data.stylist}) is already booked")
                raise
            logger.info(f"✅ Booking {saved.bookingId} created")
            return saved

        raise StoreError("Could not allocate a unique booking ID")

    def _unpersisted_booking(self, fields: Dict[str, Any], booking_id: Optional[str]) -> Booking:
        logger.warning("🔄 Creating mock booking - database not connected")
        now = utc_now()
        return Booking(
            **fields,
            id=f"mock_{int(now.timestamp() * 1000)}",
            bookingId=booking_id or generate_booking_id(),
            createdAt=now,
            updatedAt=now,
            note=DEGRADED_NOTE,
        )

    async def get_availability(self, date: str) -> Availability:
        """Occupied (time, stylist) pairs for a date. Cancelled bookings free their slot."""
        if not is_valid_date(date):
            logger.error(f"❌ Invalid date format: {date}")
            raise ValidationError("Invalid date format. Expected YYYY-MM-DD", field="date")

        if not self.store.is_ready() and self.degraded_mode:
            logger.warning("🔄 Returning empty availability - database not connected")
            return Availability(date=date, bookedSlots=[], note=DEGRADED_NOTE)
        self._ensure_store()

        bookings = await self.store.find({"date": date}, active_only=True)
        logger.info(f"🔍 Found {len(bookings)} booked slots for {date}")
        return Availability(
            date=date,
            bookedSlots=[BookedSlot(time=b.time, stylist=b.stylist) for b in bookings],
        )

    async def list_bookings(self) -> List[Booking]:
        self._ensure_store()
        return await self.store.find(newest_first=True)

    async def get_booking(self, identifier: str) -> Booking:
        self._ensure_store()
        booking = await self.store.find_by_id(identifier)
        if booking is None:
            raise NotFoundError()
        return booking

    async def update_booking(self, identifier: str, patch: Dict[str, Any]) -> Booking:
        """
        Apply a partial update. The merged record is validated like a new one;
        `customer` is merged key by key. Unknown and read-only keys are ignored.
        """
        if not isinstance(patch, dict):
            raise ValidationError("Request body must be a JSON object")
        current = await self.get_booking(identifier)

        changes = {key: value for key, value in patch.items() if key in MUTABLE_FIELDS}
        if isinstance(changes.get("customer"), dict):
            changes["customer"] = {**current.customer.model_dump(), **changes["customer"]}

        updated = validate(Booking, {**current.model_dump(), **changes})
        if not current.is_active and updated.status != CANCELLED:
            raise ValidationError("A cancelled booking cannot be reactivated", field="status")

        saved = await self.store.update_by_id(current.id, updated.model_dump(mode="json", include=set(changes)))
        if saved is None:
            raise NotFoundError()
        logger.info(f"✏️ Booking {saved.bookingId} updated: {', '.join(changes) or 'no changes'}")
        return saved

    async def cancel_booking(self, identifier: str) -> Booking:
        self._ensure_store()
        booking = await self.store.update_by_id(identifier, {"status": CANCELLED})
        if booking is None:
            raise NotFoundError()
        logger.info(f"🚫 Booking {booking.bookingId} cancelled")
        return booking

    async def delete_booking(self, identifier: str) -> bool:
        self._ensure_store()
        if not await self.store.delete_by_id(identifier):
            raise NotFoundError()
        return True
