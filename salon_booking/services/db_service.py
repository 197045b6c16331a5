import logging
import uuid
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import create_async_client, AsyncClient

from salon_booking.core.config import settings
from salon_booking.core.errors import ConflictError, DuplicateBookingIdError, StoreError
from salon_booking.models.booking import CANCELLED, Booking
from salon_booking.services.store import BookingStore, utc_now

logger = logging.getLogger("salon_booking")

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"

COLUMNS = {
    "bookingId": "booking_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def to_row(booking: Booking) -> Dict[str, Any]:
    return {
        "booking_id": booking.bookingId,
        "date": booking.date,
        "time": booking.time,
        "service": booking.service,
        "stylist": booking.stylist,
        "customer": booking.customer.model_dump(),
        "status": booking.status,
        "notes": booking.notes,
        "price": booking.price,
    }


def from_row(row: Dict[str, Any]) -> Booking:
    return Booking(
        id=str(row["id"]),
        bookingId=row["booking_id"],
        date=row["date"],
        time=row["time"],
        service=row["service"],
        stylist=row["stylist"],
        customer=row.get("customer") or {},
        status=row.get("status") or "confirmed",
        notes=row.get("notes") or "",
        price=row.get("price") or 0,
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class SupabaseBookingStore(BookingStore):
    """
    Bookings table in Supabase (see sql/bookings.sql).
    The partial unique index on (date, time, stylist) makes the insert itself
    reject a second active booking for the same exact slot.
    """

    backend = "supabase"

    def __init__(self, url: str = None, key: str = None, table: str = None):
        self.url = url if url is not None else settings.SUPABASE_URL
        self.key = key if key is not None else settings.SUPABASE_KEY
        self.table = table or settings.SUPABASE_TABLE
        self._client: Optional[AsyncClient] = None

    async def connect(self) -> None:
        if self._client:
            return
        try:
            if self.url and self.key:
                self._client = await create_async_client(self.url, self.key)
                logger.info(f"✅ Supabase Async client initialized (table: {self.table})")
            else:
                logger.warning("⚠️ Supabase credentials missing, booking store is not ready")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Supabase Async: {e}")
            self._client = None

    async def close(self) -> None:
        if self._client:
            logger.info("🔌 Releasing Supabase client")
        self._client = None

    def is_ready(self) -> bool:
        return self._client is not None

    def _bookings(self):
        if not self._client:
            raise StoreError("Booking store is not connected")
        return self._client.table(self.table)

    async def _execute(self, query, operation: str, booking_id: str = None):
        try:
            return await query.execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                if booking_id and "booking_id" in f"{e.message} {e.details}":
                    raise DuplicateBookingIdError(booking_id) from e
                raise ConflictError() from e
            logger.error(f"❌ DB Error ({operation}): {e.message}")
            raise StoreError(f"Database error during {operation}: {e.message}") from e
        except Exception as e:
            logger.error(f"❌ DB Error ({operation}): {e}")
            raise StoreError(f"Database error during {operation}: {e}") from e

    def _identifier_column(self, identifier: str) -> str:
        # Postgres rejects a non-uuid literal against the id column, and callers
        # may pick their own bookingId, so anything else is a booking_id
        return "id" if _is_uuid(identifier) else "booking_id"

    async def insert(self, booking: Booking) -> Booking:
        now = utc_now().isoformat()
        row = {**to_row(booking), "created_at": now, "updated_at": now}
        response = await self._execute(self._bookings().insert(row), "insert", booking_id=booking.bookingId)
        if not response.data:
            raise StoreError("Database did not return the inserted booking")
        logger.info(f"✅ Booking {booking.bookingId} stored in Supabase")
        return from_row(response.data[0])

    async def find(self, filters=None, active_only=False, newest_first=False) -> List[Booking]:
        query = self._bookings().select("*")
        for key, value in (filters or {}).items():
            query = query.eq(COLUMNS.get(key, key), value)
        if active_only:
            query = query.neq("status", CANCELLED)
        if newest_first:
            query = query.order("created_at", desc=True)
        response = await self._execute(query, "find")
        return [from_row(row) for row in response.data or []]

    async def find_by_id(self, identifier: str) -> Optional[Booking]:
        column = self._identifier_column(identifier)
        response = await self._execute(
            self._bookings().select("*").eq(column, identifier).limit(1), "find_by_id"
        )
        if response.data:
            return from_row(response.data[0])
        return None

    async def update_by_id(self, identifier: str, patch: Dict[str, Any]) -> Optional[Booking]:
        column = self._identifier_column(identifier)
        row = {COLUMNS.get(key, key): value for key, value in patch.items()}
        row["updated_at"] = utc_now().isoformat()
        response = await self._execute(
            self._bookings().update(row).eq(column, identifier), "update_by_id"
        )
        if response.data:
            return from_row(response.data[0])
        return None

    async def delete_by_id(self, identifier: str) -> bool:
        column = self._identifier_column(identifier)
        response = await self._execute(
            self._bookings().delete().eq(column, identifier), "delete_by_id"
        )
        if response.data:
            logger.info(f"🗑️ Booking {identifier} deleted from DB.")
            return True
        return False
