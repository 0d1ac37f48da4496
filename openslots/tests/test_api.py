from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from openslots.database import get_db
from openslots.domain.scheduling.errors import StorageUnavailable
from openslots.domain.scheduling.router import get_scheduling_engine
from openslots.main import app


@pytest.fixture
def client(db, engine):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduling_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


def test_availability_endpoint(client, salon) -> None:
    response = client.get(f"/scheduling/providers/{salon.alex.id}/availability", params={"date": "2026-03-03"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"][0] == {"start": "09:00", "end": "09:30"}
    assert len(body["data"]) == 16


def test_availability_for_unknown_provider_is_404(client, salon) -> None:
    response = client.get("/scheduling/providers/999/availability", params={"date": "2026-03-03"})
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "ProviderNotFound"


def test_book_and_double_book(client, salon, make_booking) -> None:
    response = client.post("/scheduling/appointments", json=make_booking())
    assert response.status_code == 201
    appointment_id = response.json()["data"]["appointment_id"]

    conflict = client.post("/scheduling/appointments", json=make_booking())
    assert conflict.status_code == 409
    assert conflict.json()["error"]["kind"] == "SlotUnavailable"

    fetched = client.get(f"/scheduling/appointments/{appointment_id}")
    assert fetched.json()["data"]["end_time"] == "11:00"


def test_validation_errors_are_422(client, salon, make_booking) -> None:
    response = client.post("/scheduling/appointments", json=make_booking(duration_minutes=45))
    assert response.status_code == 422
    assert response.json() == {
        "success": False,
        "data": None,
        "error": {"kind": "InvalidDuration", "message": "Haircut can be booked for 30, 60 minutes, not 45"},
        "warnings": [],
    }


def test_lifecycle_endpoints(client, salon, make_booking, clock) -> None:
    appointment_id = client.post("/scheduling/appointments", json=make_booking()).json()["data"]["appointment_id"]

    assert client.post(f"/scheduling/appointments/{appointment_id}/confirm").json()["data"]["status"] == "Confirmed"

    moved = client.post(f"/scheduling/appointments/{appointment_id}/reschedule", json={"new_start_time": "13:00"})
    assert moved.json()["data"]["start_time"] == "13:00"

    cancelled = client.post(f"/scheduling/appointments/{appointment_id}/cancel", json={"reason": "Travel"})
    assert cancelled.json()["data"]["status"] == "Cancelled"

    again = client.post(f"/scheduling/appointments/{appointment_id}/cancel")
    assert again.status_code == 409
    assert again.json()["error"]["kind"] == "IllegalTransition"


def test_daily_list(client, salon, make_booking) -> None:
    client.post("/scheduling/appointments", json=make_booking(start_time="15:00"))
    client.post("/scheduling/appointments", json=make_booking(start_time="09:00"))
    response = client.get(f"/scheduling/providers/{salon.alex.id}/appointments", params={"date": "2026-03-03"})
    assert [a["start_time"] for a in response.json()["data"]] == ["09:00", "15:00"]


def test_storage_fault_is_503(client, salon, engine, make_booking) -> None:
    with patch.object(engine, "book_appointment", side_effect=StorageUnavailable("Booking could not reach storage")):
        response = client.post("/scheduling/appointments", json=make_booking())
    assert response.status_code == 503
    assert response.json()["error"]["kind"] == "StorageUnavailable"


def test_admin_rule_validation(client, salon) -> None:
    response = client.post(
        f"/providers/{salon.alex.id}/availability-rules",
        json={"dayOfWeek": 1, "startTime": "22:00", "endTime": "02:00"},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "InvalidAvailabilityRule"

    response = client.post(
        f"/providers/{salon.alex.id}/availability-rules",
        json={"dayOfWeek": 7, "startTime": "09:00", "endTime": "12:00"},
    )
    assert response.status_code == 422

    response = client.post(
        f"/providers/{salon.alex.id}/availability-rules",
        json={"dayOfWeek": 5, "startTime": "9:00", "endTime": "12:00"},
    )
    assert response.status_code == 201
    assert response.json()["start_time"] == "09:00"

    response = client.post(
        f"/providers/{salon.alex.id}/availability-rules",
        json={"dayOfWeek": 5, "startTime": "20:00", "endTime": "24:00"},
    )
    assert response.status_code == 201
    assert response.json()["end_time"] == "24:00"

    response = client.post(
        f"/providers/{salon.alex.id}/availability-rules",
        json={"dayOfWeek": 5, "startTime": "24:00", "endTime": "24:00"},
    )
    assert response.status_code == 422


def test_admin_provider_and_service(client, salon) -> None:
    service = client.post("/services", json={"name": "Beard trim", "durationOptions": [15, 15, 30]}).json()
    assert service["durationOptions"] == [15, 30]

    provider = client.post(
        "/providers", json={"name": "Robin", "phone": "(555) 123-4567", "serviceIds": [service["id"]]}
    )
    assert provider.status_code == 201
    assert provider.json()["phone"] == "+15551234567"

    missing = client.post("/providers", json={"name": "Casey", "serviceIds": [999]})
    assert missing.status_code == 404

    deactivated = client.post(f"/providers/{provider.json()['id']}/deactivate")
    assert deactivated.json()["isActive"] is False


def test_holidays_are_unique_per_date(client, salon) -> None:
    assert client.post("/business/holidays", json={"date": "2026-12-25", "name": "Christmas"}).status_code == 201
    assert client.post("/business/holidays", json={"date": "2026-12-25", "name": "Again"}).status_code == 409


def test_clients_crud_and_search(client, salon) -> None:
    created = client.post("/clients", json={"firstName": "Avery", "lastName": "Stone", "email": "AVERY@example.com"})
    assert created.status_code == 201
    assert created.json()["email"] == "avery@example.com"

    duplicate = client.post("/clients", json={"firstName": "Other", "email": "avery@example.com"})
    assert duplicate.status_code == 409

    found = client.get("/clients/search", params={"q": "ston"}).json()
    assert [c["firstName"] for c in found] == ["Avery"]
    assert client.get("/clients/search", params={"q": "a"}).status_code == 400

    updated = client.patch(f"/clients/{created.json()['id']}", json={"notes": "Prefers mornings"})
    assert updated.json()["notes"] == "Prefers mornings"
    assert client.get("/clients/999").status_code == 404
