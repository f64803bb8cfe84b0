"""
config/storage.py
Chooses the storage backend at startup and hands it to request handlers.
"""

from fastapi import Request

from config.settings import Settings, settings as default_settings
from shared.storage.base import Storage


def build_storage(settings: Settings = default_settings) -> Storage:
    """Backend named by STORAGE_BACKEND. Settings validation guarantees DATABASE_URL."""
    if settings.STORAGE_BACKEND == "database":
        from shared.storage.database import DatabaseStorage

        return DatabaseStorage.from_url(settings.DATABASE_URL, seed=settings.SEED_DATA)

    from shared.storage.memory import MemoryStorage

    return MemoryStorage(seed=settings.SEED_DATA)


def get_storage(request: Request) -> Storage:
    """
    FastAPI dependency: the Storage attached to the running app.

    Usage:
        @router.get("/things")
        async def list_things(storage: Storage = Depends(get_storage)):
            ...
    """
    return request.app.state.storage
