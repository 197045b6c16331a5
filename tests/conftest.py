import pytest
from fastapi.testclient import TestClient

from salon_booking.api.bookings import get_booking_service
from salon_booking.main import app
from salon_booking.services.booking_service import BookingService
from salon_booking.services.store import InMemoryBookingStore


def booking_payload(**overrides):
    payload = {
        "date": "2024-06-01",
        "time": "10:00",
        "service": "Haircut",
        "stylist": "Alex",
        "customer": {"name": "Sam", "phone": "555-0100"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def service(store):
    return BookingService(store)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_booking_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_payload():
    return booking_payload
