import re

from unittest.mock import patch

from salon_booking.core.config import settings


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_health_reports_store_state(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["environment"] == settings.ENVIRONMENT


def test_booking_lifecycle(client, make_payload):
    # 1. Create
    response = client.post("/api/bookings", json=make_payload())
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Booking created successfully"
    booking = body["data"]
    assert booking["status"] == "confirmed"
    assert re.fullmatch(r"BK\d+", booking["bookingId"])

    # 2. Same slot again
    response = client.post("/api/bookings", json=make_payload())
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "already booked" in body["message"]
    assert body["error"] == "ConflictError"

    # 3. Cancel through DELETE
    response = client.delete(f"/api/bookings/{booking['id']}")
    assert response.status_code == 200
    assert response.json()["message"] == "Booking cancelled successfully"
    assert response.json()["data"]["status"] == "cancelled"

    # 4. Slot is free again
    response = client.post("/api/bookings", json=make_payload())
    assert response.status_code == 201


def test_fetch_returns_created_record(client, make_payload):
    created = client.post("/api/bookings", json=make_payload()).json()["data"]

    by_code = client.get(f"/api/bookings/{created['bookingId']}")
    by_id = client.get(f"/api/bookings/{created['id']}")

    assert by_code.status_code == 200
    assert by_code.json() == {"success": True, "data": created}
    assert by_id.json()["data"] == created


def test_create_without_phone_is_rejected(client, make_payload, store):
    response = client.post("/api/bookings", json=make_payload(customer={"name": "Sam"}))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "ValidationError"
    assert body["field"] == "customer.phone"

    assert client.get("/api/bookings").json()["count"] == 0


def test_create_with_invalid_json_is_rejected(client):
    response = client.post("/api/bookings", content="not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_create_without_body_is_rejected(client):
    response = client.post("/api/bookings")
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"


def test_list_bookings(client, make_payload):
    client.post("/api/bookings", json=make_payload())
    client.post("/api/bookings", json=make_payload(time="11:00"))

    response = client.get("/api/bookings")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert [b["time"] for b in body["data"]] == ["11:00", "10:00"]


def test_availability(client, make_payload):
    client.post("/api/bookings", json=make_payload())
    client.post("/api/bookings", json=make_payload(stylist="any", time="14:30"))

    response = client.get("/api/bookings/availability/2024-06-01")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["date"] == "2024-06-01"
    assert body["count"] == 2
    assert {"time": "10:00", "stylist": "Alex"} in body["bookedSlots"]
    # Projection only
    assert all(set(slot) == {"time", "stylist"} for slot in body["bookedSlots"])


def test_availability_empty_day(client):
    response = client.get("/api/bookings/availability/2024-06-02")
    assert response.status_code == 200
    assert response.json()["bookedSlots"] == []
    assert response.json()["count"] == 0


def test_availability_bad_date(client):
    response = client.get("/api/bookings/availability/2024-13-40")
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "YYYY-MM-DD" in response.json()["message"]


def test_get_unknown_booking(client):
    response = client.get("/api/bookings/BK123")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Booking not found", "error": "NotFoundError"}


def test_update_booking(client, make_payload):
    created = client.post("/api/bookings", json=make_payload()).json()["data"]

    response = client.put(f"/api/bookings/{created['id']}", json={"status": "pending", "notes": "Running late"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Booking updated successfully"
    assert body["data"]["status"] == "pending"
    assert body["data"]["notes"] == "Running late"
    assert body["data"]["service"] == "Haircut"


def test_update_validation_and_not_found(client, make_payload):
    created = client.post("/api/bookings", json=make_payload()).json()["data"]

    response = client.put(f"/api/bookings/{created['id']}", json={"customer": {"name": ""}})
    assert response.status_code == 400
    assert response.json()["field"] == "customer.name"

    response = client.put("/api/bookings/BK404", json={"notes": "x"})
    assert response.status_code == 404


def test_delete_unknown_booking(client):
    response = client.delete("/api/bookings/BK404")
    assert response.status_code == 404


def test_cancel_twice(client, make_payload):
    created = client.post("/api/bookings", json=make_payload()).json()["data"]

    first = client.delete(f"/api/bookings/{created['bookingId']}")
    second = client.delete(f"/api/bookings/{created['bookingId']}")

    assert first.status_code == second.status_code == 200
    assert second.json()["data"]["status"] == "cancelled"


def test_hard_delete_mode(client, make_payload):
    created = client.post("/api/bookings", json=make_payload()).json()["data"]

    with patch.object(settings, "DELETE_MODE", "hard"):
        response = client.delete(f"/api/bookings/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Booking deleted successfully"}
    assert client.get(f"/api/bookings/{created['id']}").status_code == 404


def test_degraded_mode_response_is_flagged(client, service, store, make_payload):
    service.degraded_mode = True
    with patch.object(store, "is_ready", return_value=False):
        response = client.post("/api/bookings", json=make_payload())
        availability = client.get("/api/bookings/availability/2024-06-01")

    assert response.status_code == 201
    body = response.json()
    assert body["persisted"] is False
    assert "development mode" in body["message"]
    assert body["data"]["id"].startswith("mock_")
    assert availability.json()["note"] == "Development mode - database not connected"


def test_store_down_is_500(client, store):
    with patch.object(store, "is_ready", return_value=False):
        response = client.get("/api/bookings")

    assert response.status_code == 500
    assert response.json()["error"] == "StoreError"
