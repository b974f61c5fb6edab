"""Storage backend selection.

The backend is chosen once at startup from configuration. Nothing outside
this module depends on a concrete backend type.
"""

from linkauth.core.config import Settings
from linkauth.core.logging import get_logger
from linkauth.infrastructure.persistence.database import DatabaseManager
from linkauth.infrastructure.storage.base import StorageBackend
from linkauth.infrastructure.storage.memory_storage import MemoryStorage
from linkauth.infrastructure.storage.redis_storage import RedisStorage
from linkauth.infrastructure.storage.sql_storage import SQLStorage

logger = get_logger(__name__)


def create_storage(settings: Settings) -> StorageBackend:
    """Create the storage backend named by settings.storage_backend.

    Args:
        settings: Application settings.

    Returns:
        An unconnected storage backend. Call connect() before use.

    Raises:
        ValueError: If the backend name is unknown.
    """
    backend = settings.storage_backend
    if backend == "memory":
        storage: StorageBackend = MemoryStorage()
    elif backend == "sql":
        storage = SQLStorage(
            DatabaseManager(
                settings.database_url,
                echo=settings.db_echo,
                timeout=settings.storage_timeout_seconds,
            )
        )
    elif backend == "redis":
        storage = RedisStorage.from_url(
            settings.redis_url,
            timeout=settings.storage_timeout_seconds,
        )
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    logger.info("Storage backend selected", backend=backend)
    return storage
