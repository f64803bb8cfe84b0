"""
tests/test_dashboard.py
Dashboard figures computed by the client from the list endpoints.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport

from client.api import ApiError, MarketplaceClient
from client.dashboard import admin_summary, business_summary, professional_summary
from shared.schemas.entities import BookingCreate, RequirementCreate, UserCreate

WHEN = datetime(2025, 6, 2, 9, 30, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def api(app):
    async with MarketplaceClient("http://test", transport=ASGITransport(app=app)) as client:
        yield client


async def _book(storage, business_id, professional, status="pending", payment_status="pending", amount=247800):
    booking = await storage.create_booking(
        BookingCreate(
            business_id=business_id,
            professional_id=professional.id,
            service_id="svc",
            scheduled_at=WHEN,
            total_amount=amount,
        )
    )
    return await storage.update_booking(booking.id, {"status": status, "payment_status": payment_status})


@pytest.mark.asyncio
async def test_business_summary_counts(api, storage, business_user, professional):
    for status in ("pending", "pending", "confirmed", "completed", "cancelled"):
        await _book(storage, business_user.id, professional, status=status)
    await storage.create_requirement(
        RequirementCreate(business_id=business_user.id, title="Audit", description="-", category="Audit")
    )
    await storage.create_requirement(
        RequirementCreate(
            business_id=business_user.id, title="GST", description="-", category="Tax", status="closed"
        )
    )

    summary = await business_summary(api, business_user.id)
    assert summary.open_requirements == 1
    assert summary.pending == 2
    assert summary.scheduled == 1
    assert summary.completed == 1
    assert summary.bookings_by_status["cancelled"] == 1


@pytest.mark.asyncio
async def test_business_summary_empty(api, business_user):
    summary = await business_summary(api, business_user.id)
    assert summary.open_requirements == 0
    assert summary.bookings_by_status == {}
    assert summary.pending == 0


@pytest.mark.asyncio
async def test_professional_summary(api, storage, business_user, professional):
    other = await storage.create_user(
        UserCreate(email="second@example.com", password="x", role="business", name="Second Co")
    )
    await _book(storage, business_user.id, professional, status="completed", payment_status="paid", amount=247800)
    await _book(storage, business_user.id, professional, status="completed", payment_status="pending", amount=100000)
    await _book(storage, other.id, professional, status="confirmed", amount=50000)
    await _book(storage, "gone-business", professional, status="cancelled", amount=70000)

    summary = await professional_summary(api, professional.id)
    assert summary.earnings_minor == 247800
    assert summary.active_clients == 2
    assert summary.rating == 49
    assert summary.total_reviews == 127


@pytest.mark.asyncio
async def test_admin_summary(api, storage, business_user, professional):
    await _book(storage, business_user.id, professional)
    await api.login("admin@complianceconnect.com", "password123")

    summary = await admin_summary(api)
    assert summary.verified_professionals == 2
    assert summary.total_bookings == 1
    assert [p.user.name for p in summary.pending_kyc] == ["CA Vikash Singh"]


@pytest.mark.asyncio
async def test_admin_summary_requires_admin(api):
    await api.login("business@example.com", "password123")
    with pytest.raises(ApiError) as exc_info:
        await admin_summary(api)
    assert exc_info.value.status_code == 403
