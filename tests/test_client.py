"""
tests/test_client.py
The async API client and message poller, run against the app over ASGI.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport

from client.api import ApiError, MarketplaceClient
from client.polling import MessagePoller
from main import create_app
from shared.schemas.entities import RequirementCreate
from shared.storage.memory import MemoryStorage

WHEN = datetime(2025, 4, 1, 10, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def api(app):
    async with MarketplaceClient("http://test", transport=ASGITransport(app=app)) as client:
        yield client


@pytest_asyncio.fixture
async def business_api(api):
    await api.login("business@example.com", "password123")
    return api


@pytest.mark.asyncio
async def test_login_sets_identity(api, business_user):
    result = await api.login("business@example.com", "password123")
    assert result.user.id == business_user.id
    assert api.token == result.token

    me = await api.me()
    assert me.email == "business@example.com"


@pytest.mark.asyncio
async def test_errors_carry_server_message(api):
    with pytest.raises(ApiError) as exc_info:
        await api.login("business@example.com", "wrong")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid credentials"


@pytest.mark.asyncio
async def test_me_requires_login(api):
    with pytest.raises(ApiError) as exc_info:
        await api.me()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_register_returns_user(api):
    user = await api.register("fresh@example.com", "pass1234", "business", "Fresh Co")
    assert user.email == "fresh@example.com"
    assert user.role == "business"


@pytest.mark.asyncio
async def test_book_sends_quoted_total(business_api, storage, business_user):
    services = await business_api.list_services()
    service = next(s for s in services if s.price == 2000)

    booking = await business_api.book(service, WHEN, notes="First consult")
    assert booking.total_amount == 247800
    assert booking.business_id == business_user.id
    assert (await storage.get_booking(booking.id)).total_amount == 247800


@pytest.mark.asyncio
async def test_booking_invalidates_cached_list(business_api, business_user):
    path = f"/api/bookings/business/{business_user.id}"
    assert await business_api.business_bookings(business_user.id) == []
    assert business_api.cached(path)

    service = (await business_api.list_services())[0]
    await business_api.book(service, WHEN)
    assert not business_api.cached(path)

    bookings = await business_api.business_bookings(business_user.id)
    assert len(bookings) == 1
    assert bookings[0].professional.user.name


@pytest.mark.asyncio
async def test_cached_get_is_not_refetched(business_api, storage, business_user):
    await business_api.requirements()
    await storage.create_requirement(
        RequirementCreate(business_id=business_user.id, title="Hidden", description="-", category="Tax")
    )
    assert await business_api.requirements() == []

    business_api.invalidate("/api/requirements")
    assert len(await business_api.requirements()) == 1


@pytest.mark.asyncio
async def test_update_booking_status(business_api):
    service = (await business_api.list_services())[0]
    booking = await business_api.book(service, WHEN)
    confirmed = await business_api.update_booking(booking.id, status="confirmed")
    assert confirmed.status == "confirmed"

    with pytest.raises(ApiError) as exc_info:
        await business_api.update_booking(booking.id, status="pending")
    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_filters_professionals(api):
    mumbai = await api.list_professionals(city="Mumbai")
    assert [p.user.name for p in mumbai] == ["CA Rajesh Kumar"]


@pytest.mark.asyncio
async def test_poller_delivers_new_messages_once(business_api):
    service = (await business_api.list_services())[0]
    booking = await business_api.book(service, WHEN)
    await business_api.send_message(booking.id, "hello")

    received = []
    arrived = asyncio.Event()

    def on_messages(messages):
        received.extend(m.content for m in messages)
        if len(received) >= 2:
            arrived.set()

    async with MessagePoller(business_api, booking.id, on_messages, interval=0.01) as poller:
        assert poller.running
        await asyncio.sleep(0.05)
        await business_api.send_message(booking.id, "second")
        await asyncio.wait_for(arrived.wait(), timeout=2)
        await asyncio.sleep(0.05)

    assert not poller.running
    assert received == ["hello", "second"]


@pytest.mark.asyncio
async def test_poller_keeps_running_after_api_error(business_api, monkeypatch):
    attempts = []

    async def failing_messages(*args, **kwargs):
        attempts.append(1)
        raise ApiError(500, "Internal Server Error")

    monkeypatch.setattr(business_api, "messages", failing_messages)
    poller = MessagePoller(business_api, "any", lambda messages: None, interval=0.01)
    poller.start()
    await asyncio.sleep(0.1)
    assert poller.running
    await poller.stop()
    assert len(attempts) >= 2


class ManualClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def manual_clock_api():
    """A client over an app whose storage clock only moves when told to."""
    clock = ManualClock(WHEN)
    store = MemoryStorage(seed=True, clock=clock)
    app = create_app(store)
    async with MarketplaceClient("http://test", transport=ASGITransport(app=app)) as client:
        await client.login("business@example.com", "password123")
        service = (await client.list_services())[0]
        booking = await client.book(service, WHEN)
        yield client, clock, booking


@pytest.mark.asyncio
async def test_poller_delivers_messages_sharing_a_timestamp(manual_clock_api):
    api, _, booking = manual_clock_api
    got = []
    poller = MessagePoller(api, booking.id, lambda messages: got.extend(m.content for m in messages))

    await api.send_message(booking.id, "first")
    await poller.poll_once()
    await api.send_message(booking.id, "second")
    await poller.poll_once()
    assert await poller.poll_once() == []

    assert got == ["first", "second"]


@pytest.mark.asyncio
async def test_poller_picks_up_late_commit_with_older_timestamp(manual_clock_api):
    api, clock, booking = manual_clock_api
    got = []
    poller = MessagePoller(api, booking.id, lambda messages: got.extend(m.content for m in messages))

    clock.now = WHEN + timedelta(seconds=10)
    await api.send_message(booking.id, "newer")
    await poller.poll_once()

    clock.now = WHEN + timedelta(seconds=8)
    await api.send_message(booking.id, "stamped earlier")
    await poller.poll_once()

    assert got == ["newer", "stamped earlier"]


@pytest.mark.asyncio
async def test_poller_survives_failing_callback(manual_clock_api, caplog):
    api, _, booking = manual_clock_api
    calls = []

    def on_messages(messages):
        calls.append([m.content for m in messages])
        raise RuntimeError("render failed")

    await api.send_message(booking.id, "hello")
    poller = MessagePoller(api, booking.id, on_messages, interval=0.01)
    poller.start()
    await asyncio.sleep(0.05)
    await api.send_message(booking.id, "again")
    await asyncio.sleep(0.05)

    assert poller.running
    await poller.stop()
    assert calls == [["hello"], ["again"]]
    assert "Message callback for booking" in caplog.text


@pytest.mark.asyncio
async def test_uncached_reads_are_not_stored(manual_clock_api):
    api, _, booking = manual_clock_api
    await api.send_message(booking.id, "hello")

    await api.messages(booking.id, since=WHEN, use_cache=False)
    await api.messages(booking.id, use_cache=False)
    assert not any(key.startswith("/api/messages") for key in api._cache)

    await api.messages(booking.id)
    assert api.cached(f"/api/messages/booking/{booking.id}")
