"""
tests/test_bookings.py
Tests for booking creation, listings and the status lifecycle.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

from shared.utils.pricing import quote


def _booking_payload(business_user, professional, service, **overrides) -> dict:
    payload = {
        "businessId": business_user.id,
        "professionalId": professional.id,
        "serviceId": service.id,
        "scheduledAt": "2025-03-10T10:00:00Z",
        "totalAmount": quote(service.price).total_minor,
        "notes": "Quarterly GST review",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload(business_user, professional, service):
    return _booking_payload(business_user, professional, service)


@pytest_asyncio.fixture
async def booking(client: AsyncClient, payload):
    response = await client.post("/api/bookings", json=payload)
    assert response.status_code == 201
    return response.json()


# ── Creation ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_booking_defaults(client: AsyncClient, payload):
    response = await client.post("/api/bookings", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"
    assert data["createdAt"]
    assert data["id"]


@pytest.mark.asyncio
async def test_total_amount_persisted_as_submitted(client: AsyncClient, storage, payload):
    assert payload["totalAmount"] == 247800

    response = await client.post("/api/bookings", json=payload)
    stored = await storage.get_booking(response.json()["id"])
    assert stored.total_amount == 247800


@pytest.mark.asyncio
async def test_create_booking_missing_service(client: AsyncClient, payload):
    del payload["serviceId"]
    response = await client.post("/api/bookings", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_booking_bad_status(client: AsyncClient, payload):
    response = await client.post("/api/bookings", json={**payload, "status": "archived"})
    assert response.status_code == 400


# ── Reads ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_booking(client: AsyncClient, booking):
    response = await client.get(f"/api/bookings/{booking['id']}")
    assert response.status_code == 200
    assert response.json()["totalAmount"] == booking["totalAmount"]


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient):
    response = await client.get("/api/bookings/unknown")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_business_bookings_are_enriched(
    client: AsyncClient, storage, booking, business_user, professional, service
):
    other = await storage.get_user_by_email("admin@complianceconnect.com")
    await client.post(
        "/api/bookings",
        json=_booking_payload(other, professional, service),
    )

    response = await client.get(f"/api/bookings/business/{business_user.id}")
    assert response.status_code == 200
    data = response.json()
    assert [b["id"] for b in data] == [booking["id"]]

    entry = data[0]
    assert entry["service"]["title"] == "Tax Consultation"
    assert entry["professional"]["id"] == professional.id
    assert entry["professional"]["user"] == {"id": professional.user_id, "name": "CA Rajesh Kumar"}


@pytest.mark.asyncio
async def test_professional_bookings_include_business_user(
    client: AsyncClient, booking, business_user, professional
):
    response = await client.get(f"/api/bookings/professional/{professional.id}")
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["service"]["id"] == booking["serviceId"]
    assert data[0]["businessUser"] == {"id": business_user.id, "name": "Business Owner"}


@pytest.mark.asyncio
async def test_list_all_bookings_admin(client: AsyncClient, booking, admin_user, auth_headers):
    response = await client.get("/api/bookings", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [booking["id"]]


@pytest.mark.asyncio
async def test_list_all_bookings_forbidden_for_business(
    client: AsyncClient, business_user, auth_headers
):
    response = await client.get("/api/bookings", headers=auth_headers(business_user))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_all_bookings_requires_auth(client: AsyncClient):
    response = await client.get("/api/bookings")
    assert response.status_code == 401


# ── Updates & lifecycle ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_confirm_then_complete(client: AsyncClient, booking):
    url = f"/api/bookings/{booking['id']}"
    confirmed = await client.put(url, json={"status": "confirmed"})
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    completed = await client.put(url, json={"status": "completed", "paymentStatus": "paid"})
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["paymentStatus"] == "paid"


@pytest.mark.asyncio
async def test_cancel_pending(client: AsyncClient, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "cancelled"})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_same_status_is_allowed(client: AsyncClient, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "pending"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_pending_cannot_complete(client: AsyncClient, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "completed"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancelled_is_terminal(client: AsyncClient, booking):
    url = f"/api/bookings/{booking['id']}"
    await client.put(url, json={"status": "cancelled"})
    response = await client.put(url, json={"status": "confirmed"})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_unknown_status_is_invalid(client: AsyncClient, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={"status": "archived"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_total_amount_cannot_change(client: AsyncClient, storage, booking):
    response = await client.put(f"/api/bookings/{booking['id']}", json={"totalAmount": 1})
    assert response.status_code == 400
    stored = await storage.get_booking(booking["id"])
    assert stored.total_amount == booking["totalAmount"]


@pytest.mark.asyncio
async def test_update_notes_and_schedule(client: AsyncClient, booking):
    response = await client.put(
        f"/api/bookings/{booking['id']}",
        json={"notes": "Bring last year's returns", "scheduledAt": "2025-03-12T09:30:00+05:30"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["notes"] == "Bring last year's returns"
    assert data["scheduledAt"].startswith("2025-03-12T04:00:00")
    assert data["status"] == "pending"


@pytest.mark.asyncio
async def test_update_missing_booking(client: AsyncClient):
    response = await client.put("/api/bookings/unknown", json={"status": "confirmed"})
    assert response.status_code == 404
