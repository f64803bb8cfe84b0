"""
config/database.py
Async SQLAlchemy engine, session factory, and base model.
Uses asyncpg for PostgreSQL in production; SQLite (aiosqlite) works for tests.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


# ── Base Model ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """All ORM models inherit from this."""
    pass


# ── Engine ────────────────────────────────────────────────────
def build_engine(url: str, **overrides) -> AsyncEngine:
    """
    Create the async engine for a connection string.
    Pool sizing only applies to server databases; SQLite uses its own pool.
    """
    options = {
        "echo": settings.DEBUG,          # Log SQL in debug mode
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_pre_ping=True,          # Detect stale connections
            pool_recycle=3600,           # Recycle connections every hour
        )
    options.update(overrides)
    return create_async_engine(url, **options)


# ── Session Factory ───────────────────────────────────────────
def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,      # Don't expire after commit (async-safe)
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables. Run during app startup."""
    # Import registers the tables on Base.metadata
    import shared.models.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
