"""Storage contract and backend implementations."""

from linkauth.infrastructure.storage.base import StorageBackend
from linkauth.infrastructure.storage.factory import create_storage
from linkauth.infrastructure.storage.memory_storage import MemoryStorage
from linkauth.infrastructure.storage.redis_storage import RedisStorage
from linkauth.infrastructure.storage.sql_storage import SQLStorage

__all__ = [
    "MemoryStorage",
    "RedisStorage",
    "SQLStorage",
    "StorageBackend",
    "create_storage",
]
