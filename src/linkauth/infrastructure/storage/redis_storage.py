"""Redis storage backend.

Key layout, under a configurable namespace:

    {ns}:app:{app_id}         JSON encoded application
    {ns}:secret:{hash}        application id
    {ns}:token:{token}        expiry in epoch milliseconds
    {ns}:token_expiry         sorted set of tokens scored by expiry

Prefix operations scan the token keys. The sorted set lets the sweep remove
expired tokens without a full scan.
"""

import json
import re
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import AsyncIterator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from linkauth.core.exceptions import (
    AppNotFoundError,
    NotFoundError,
    StorageError,
    TokenNotFoundError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.application import Application
from linkauth.infrastructure.storage.base import StorageBackend, from_millis, to_millis

logger = get_logger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class RedisStorage(StorageBackend):
    """Storage backend on top of an async Redis client."""

    def __init__(self, redis_client: Redis, namespace: str = "linkauth") -> None:
        """Initialize the backend.

        Args:
            redis_client: Async Redis client created with decode_responses=True.
                Its socket timeouts bound every operation of this backend.
            namespace: Prefix of every key written by this backend.
        """
        self._redis = redis_client
        self._ns = namespace

    @classmethod
    def from_url(cls, url: str, timeout: float = 5.0, namespace: str = "linkauth") -> "RedisStorage":
        """Create a backend connected to the Redis server at url."""
        client = Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client, namespace=namespace)

    def _app_key(self, app_id: str) -> str:
        return f"{self._ns}:app:{app_id}"

    def _secret_key(self, secret_hash: str) -> str:
        return f"{self._ns}:secret:{secret_hash}"

    def _token_key(self, token: str) -> str:
        return f"{self._ns}:token:{token}"

    @property
    def _expiry_key(self) -> str:
        return f"{self._ns}:token_expiry"

    @asynccontextmanager
    async def _errors(self, action: str) -> AsyncIterator[None]:
        """Translate Redis failures into StorageError."""
        try:
            yield
        except RedisError as e:
            logger.error("Redis operation failed", action=action, error=str(e))
            raise StorageError(f"redis {action} failed") from e

    async def _scan_tokens(self, prefix: str) -> list[str]:
        """Return the token strings whose key matches the prefix."""
        pattern = self._token_key(_GLOB_SPECIAL.sub(r"\\\1", prefix)) + "*"
        offset = len(self._token_key(""))
        return [key[offset:] async for key in self._redis.scan_iter(match=pattern)]

    async def close(self) -> None:
        async with self._errors("close"):
            await self._redis.aclose()

    async def test_connection(self) -> tuple[bool, str | None]:
        try:
            await self._redis.ping()
            return True, None
        except RedisError as e:
            return False, f"Redis connection failed: {e}"

    async def get_app_by_id(self, app_id: str) -> Application:
        async with self._errors("get app"):
            raw = await self._redis.get(self._app_key(app_id))
        if raw is None:
            raise AppNotFoundError()
        return Application(**json.loads(raw))

    async def get_app_by_secret_hash(self, secret_hash: str) -> Application:
        async with self._errors("get secret"):
            app_id = await self._redis.get(self._secret_key(secret_hash))
        if app_id is None:
            raise AppNotFoundError()
        return await self.get_app_by_id(app_id)

    async def put_app(self, app: Application) -> None:
        async with self._errors("put app"):
            await self._redis.set(self._app_key(app.id), json.dumps(asdict(app)))

    async def delete_app(self, app_id: str) -> None:
        async with self._errors("delete app"):
            deleted = await self._redis.delete(self._app_key(app_id))
        if not deleted:
            raise AppNotFoundError()

    async def verify_secret(self, secret_hash: str, app_id: str) -> bool:
        async with self._errors("verify secret"):
            stored = await self._redis.get(self._secret_key(secret_hash))
        return stored is not None and stored == app_id

    async def put_secret(self, secret_hash: str, app_id: str) -> None:
        async with self._errors("put secret"):
            await self._redis.set(self._secret_key(secret_hash), app_id)

    async def delete_secret(self, secret_hash: str) -> None:
        async with self._errors("delete secret"):
            deleted = await self._redis.delete(self._secret_key(secret_hash))
        if not deleted:
            raise NotFoundError("secret not found")

    async def get_token_expiry(self, token: str) -> datetime:
        async with self._errors("get token"):
            raw = await self._redis.get(self._token_key(token))
        if raw is None:
            raise TokenNotFoundError()
        return from_millis(int(raw))

    async def put_token(self, token: str, expires_at: datetime) -> None:
        millis = to_millis(expires_at)
        async with self._errors("put token"):
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(self._token_key(token), millis)
                pipe.zadd(self._expiry_key, {token: millis})
                await pipe.execute()

    async def _delete_tokens(self, tokens: list[str]) -> int:
        if not tokens:
            return 0
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(*[self._token_key(token) for token in tokens])
            pipe.zrem(self._expiry_key, *tokens)
            deleted, _ = await pipe.execute()
        return int(deleted)

    async def delete_token(self, token: str) -> None:
        async with self._errors("delete token"):
            deleted = await self._delete_tokens([token])
        if not deleted:
            raise TokenNotFoundError()

    async def delete_tokens_by_prefix(self, prefix: str) -> int:
        if not prefix:
            return 0
        async with self._errors("delete tokens by prefix"):
            tokens = await self._scan_tokens(prefix)
            return await self._delete_tokens(tokens)

    async def delete_expired_tokens(self, now: datetime | None = None) -> int:
        cutoff = to_millis(now or datetime.now(timezone.utc))
        async with self._errors("delete expired tokens"):
            expired = await self._redis.zrangebyscore(self._expiry_key, "-inf", f"({cutoff}")
            if not expired:
                return 0
            await self._delete_tokens(list(expired))
            return len(expired)

    async def count_tokens_by_prefix(self, prefix: str) -> int:
        async with self._errors("count tokens"):
            if not prefix:
                return int(await self._redis.zcard(self._expiry_key))
            return len(await self._scan_tokens(prefix))
