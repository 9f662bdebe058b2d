"""
Storage backends.

The backend is chosen once, at process start, from Settings.STORAGE_BACKEND and
then passed explicitly to every service that needs it.
"""
import logging

from app.core.config import Settings
from app.core.enums import StorageBackend
from app.services.storage.base import Storage, CatalogStore, SyncLogStore, AlertStore, WishlistStore
from app.services.storage.memory import MemoryStorage

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> Storage:
    backend = StorageBackend(str(settings.STORAGE_BACKEND).lower())

    if backend == StorageBackend.DATABASE:
        # Imported lazily so the in-memory backend never needs a database driver
        from app.database import get_session_factory
        from app.services.storage.database import DatabaseStorage

        logger.info("Using database storage backend")
        return DatabaseStorage(get_session_factory(settings))

    logger.info("Using in-memory storage backend")
    return MemoryStorage()


__all__ = [
    "Storage",
    "CatalogStore",
    "SyncLogStore",
    "AlertStore",
    "WishlistStore",
    "MemoryStorage",
    "create_storage",
]
