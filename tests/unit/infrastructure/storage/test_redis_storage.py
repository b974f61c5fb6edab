"""Redis backend specifics: key layout and error translation."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from linkauth.core.exceptions import StorageError
from linkauth.infrastructure.storage.base import to_millis
from linkauth.infrastructure.storage.redis_storage import RedisStorage


@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.mark.asyncio
async def test_token_keys_and_expiry_index(redis_client):
    storage = RedisStorage(redis_client, namespace="test")
    expires_at = datetime(2024, 1, 1, tzinfo=timezone.utc)

    await storage.put_token("app1-user1-01", expires_at)

    assert await redis_client.get("test:token:app1-user1-01") == str(to_millis(expires_at))
    assert await redis_client.zscore("test:token_expiry", "app1-user1-01") == to_millis(expires_at)

    await storage.delete_token("app1-user1-01")
    assert await redis_client.zcard("test:token_expiry") == 0


@pytest.mark.asyncio
async def test_namespaces_are_isolated(redis_client):
    first = RedisStorage(redis_client, namespace="one")
    second = RedisStorage(redis_client, namespace="two")

    await first.put_secret("hash-1", "a1b2")

    assert await first.verify_secret("hash-1", "a1b2") is True
    assert await second.verify_secret("hash-1", "a1b2") is False


@pytest.mark.asyncio
async def test_glob_characters_in_prefix_are_literal(redis_client):
    storage = RedisStorage(redis_client)
    await storage.put_token("app*-user-01", datetime.now(timezone.utc))
    await storage.put_token("appX-user-02", datetime.now(timezone.utc))

    assert await storage.count_tokens_by_prefix("app*-") == 1
    assert await storage.delete_tokens_by_prefix("app*-") == 1
    assert await storage.count_tokens_by_prefix("appX-") == 1


@pytest.mark.asyncio
async def test_redis_errors_become_storage_errors():
    client = AsyncMock()
    client.get.side_effect = RedisConnectionError("Connection refused")
    storage = RedisStorage(client)

    with pytest.raises(StorageError) as exc_info:
        await storage.get_app_by_id("a1b2")
    assert isinstance(exc_info.value.__cause__, RedisConnectionError)


@pytest.mark.asyncio
async def test_connection_check_reports_failure():
    client = AsyncMock()
    client.ping.side_effect = RedisConnectionError("Connection refused")

    ok, error = await RedisStorage(client).test_connection()

    assert ok is False
    assert "Connection refused" in error
