import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from salon_booking.core.errors import ConflictError, DuplicateBookingIdError
from salon_booking.core.logger import logger
from salon_booking.models.booking import Booking


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def slot_filter(booking: Booking, match_any_stylist: bool = False) -> Dict[str, str]:
    """Filter selecting the bookings that occupy the same slot as `booking`."""
    filters = {"date": booking.date, "time": booking.time}
    if not match_any_stylist:
        filters["stylist"] = booking.stylist
    return filters


class BookingStore(ABC):
    """
    Persistence contract used by BookingService.
    Implementations assign `id`, `createdAt` and `updatedAt`, and enforce
    uniqueness of `bookingId` and of the active (date, time, stylist) triple.
    """

    backend = "abstract"

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        ...

    @abstractmethod
    async def insert(self, booking: Booking) -> Booking:
        ...

    @abstractmethod
    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        active_only: bool = False,
        newest_first: bool = False,
    ) -> List[Booking]:
        ...

    @abstractmethod
    async def find_by_id(self, identifier: str) -> Optional[Booking]:
        """Look up by store `id` or by `bookingId`."""

    @abstractmethod
    async def update_by_id(self, identifier: str, patch: Dict[str, Any]) -> Optional[Booking]:
        ...

    @abstractmethod
    async def delete_by_id(self, identifier: str) -> bool:
        ...

    async def insert_if_slot_free(self, booking: Booking, match_any_stylist: bool = False) -> Booking:
        """
        Insert `booking` unless an active booking already holds its slot.
        With `match_any_stylist` every active booking at the same date/time
        counts as a holder, whatever its stylist.
        """
        holders = await self.find(slot_filter(booking, match_any_stylist), active_only=True)
        if holders:
            raise ConflictError()
        return await self.insert(booking)


class InMemoryBookingStore(BookingStore):
    """Process-local store for development and tests."""

    backend = "memory"

    def __init__(self):
        self._records: Dict[str, Booking] = {}
        self._lock = asyncio.Lock()

    def is_ready(self) -> bool:
        return True

    def _resolve(self, identifier: str) -> Optional[Booking]:
        if identifier in self._records:
            return self._records[identifier]
        for booking in self._records.values():
            if booking.bookingId == identifier:
                return booking
        return None

    def _check_unique(self, candidate: Booking, exclude_id: Optional[str] = None):
        for booking in self._records.values():
            if booking.id == exclude_id:
                continue
            if booking.bookingId == candidate.bookingId:
                raise DuplicateBookingIdError(candidate.bookingId)
            if (
                candidate.is_active
                and booking.is_active
                and (booking.date, booking.time, booking.stylist) == (candidate.date, candidate.time, candidate.stylist)
            ):
                raise ConflictError()

    async def insert(self, booking: Booking) -> Booking:
        now = utc_now()
        stored = booking.model_copy(update={"id": str(uuid.uuid4()), "createdAt": now, "updatedAt": now}, deep=True)
        self._check_unique(stored)
        self._records[stored.id] = stored
        return stored.model_copy(deep=True)

    async def find(self, filters=None, active_only=False, newest_first=False) -> List[Booking]:
        filters = filters or {}
        matches = [
            booking for booking in self._records.values()
            if (not active_only or booking.is_active)
            and all(getattr(booking, key) == value for key, value in filters.items())
        ]
        if newest_first:
            # reversed() so equal timestamps still come out newest first
            matches = sorted(reversed(matches), key=lambda b: b.createdAt, reverse=True)
        return [booking.model_copy(deep=True) for booking in matches]

    async def find_by_id(self, identifier: str) -> Optional[Booking]:
        booking = self._resolve(identifier)
        return booking.model_copy(deep=True) if booking else None

    async def update_by_id(self, identifier: str, patch: Dict[str, Any]) -> Optional[Booking]:
        current = self._resolve(identifier)
        if current is None:
            return None
        updated = Booking.model_validate({**current.model_dump(), **patch, "updatedAt": utc_now()})
        self._check_unique(updated, exclude_id=current.id)
        self._records[current.id] = updated
        return updated.model_copy(deep=True)

    async def delete_by_id(self, identifier: str) -> bool:
        booking = self._resolve(identifier)
        if booking is None:
            return False
        del self._records[booking.id]
        logger.info(f"🗑️ Booking {booking.bookingId} removed from memory store")
        return True

    async def insert_if_slot_free(self, booking: Booking, match_any_stylist: bool = False) -> Booking:
        # Check and insert must not interleave with another request's
        async with self._lock:
            return await super().insert_if_slot_free(booking, match_any_stylist)
