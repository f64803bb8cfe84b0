"""
tests/conftest.py
Shared fixtures: an app around a fresh seeded MemoryStorage, an httpx
client over ASGI, seeded users and a SQLite-backed DatabaseStorage.
"""

import os

# Must be set before config.settings is first imported
os.environ["APP_ENV"] = "test"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["METRICS_ENABLED"] = "false"
os.environ["SEED_PASSWORD"] = "password123"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from config.database import build_engine
from main import create_app
from shared.schemas.entities import Professional, User
from shared.storage.database import DatabaseStorage
from shared.storage.memory import MemoryStorage
from shared.utils.security import create_access_token

SEED_PASSWORD = "password123"


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage(seed=True)


@pytest.fixture
def app(storage):
    return create_app(storage)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Build the two headers a signed-in browser sends for ``user``."""

    def _headers(user: User) -> dict:
        token = create_access_token(user_id=user.id, role=user.role, email=user.email)
        return {"Authorization": f"Bearer {token}", "x-user-id": user.id}

    return _headers


# ── Seeded accounts ───────────────────────────────────────────

@pytest_asyncio.fixture
async def admin_user(storage) -> User:
    return await storage.get_user_by_email("admin@complianceconnect.com")


@pytest_asyncio.fixture
async def business_user(storage) -> User:
    return await storage.get_user_by_email("business@example.com")


@pytest_asyncio.fixture
async def professional_user(storage) -> User:
    return await storage.get_user_by_email("rajesh.kumar@email.com")


@pytest_asyncio.fixture
async def professional(storage, professional_user) -> Professional:
    return await storage.get_professional_by_user_id(professional_user.id)


@pytest_asyncio.fixture
async def service(storage, professional):
    services = await storage.get_services_by_professional(professional.id)
    return next(s for s in services if s.title == "Tax Consultation")


# ── Relational backend ────────────────────────────────────────

def sqlite_storage(seed: bool = False, clock=None) -> DatabaseStorage:
    """One in-memory SQLite database shared by every session of the engine."""
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return DatabaseStorage(engine, seed=seed, clock=clock)


@pytest_asyncio.fixture
async def db_storage():
    storage = sqlite_storage(seed=True)
    await storage.startup()
    yield storage
    await storage.shutdown()


@pytest_asyncio.fixture(params=["memory", "database"])
async def make_storage(request):
    """Factory for empty or seeded stores of each backend, started and cleaned up."""
    created = []

    async def _make(seed: bool = False, clock=None):
        if request.param == "memory":
            store = MemoryStorage(seed=seed, clock=clock)
        else:
            store = sqlite_storage(seed=seed, clock=clock)
        await store.startup()
        created.append(store)
        return store

    yield _make
    for store in created:
        await store.shutdown()
