"""In-memory storage backend.

Keeps applications, secret mappings and tokens in dictionaries guarded by a
lock. Data is lost when the process exits, so it suits tests and
programs that embed the runtime in a single process.
"""

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock

from linkauth.core.exceptions import AppNotFoundError, NotFoundError, TokenNotFoundError
from linkauth.domain.entities.application import Application
from linkauth.infrastructure.storage.base import StorageBackend


class MemoryStorage(StorageBackend):
    """Thread-safe in-memory storage backend."""

    def __init__(self) -> None:
        self._apps: dict[str, Application] = {}
        self._secrets: dict[str, str] = {}
        self._tokens: dict[str, datetime] = {}
        self._lock = Lock()

    async def get_app_by_id(self, app_id: str) -> Application:
        with self._lock:
            app = self._apps.get(app_id)
            if app is None:
                raise AppNotFoundError()
            return replace(app)

    async def get_app_by_secret_hash(self, secret_hash: str) -> Application:
        with self._lock:
            app_id = self._secrets.get(secret_hash)
            app = self._apps.get(app_id) if app_id is not None else None
            if app is None:
                raise AppNotFoundError()
            return replace(app)

    async def put_app(self, app: Application) -> None:
        with self._lock:
            self._apps[app.id] = replace(app)

    async def delete_app(self, app_id: str) -> None:
        with self._lock:
            if self._apps.pop(app_id, None) is None:
                raise AppNotFoundError()

    async def verify_secret(self, secret_hash: str, app_id: str) -> bool:
        with self._lock:
            return self._secrets.get(secret_hash) == app_id

    async def put_secret(self, secret_hash: str, app_id: str) -> None:
        with self._lock:
            self._secrets[secret_hash] = app_id

    async def delete_secret(self, secret_hash: str) -> None:
        with self._lock:
            if self._secrets.pop(secret_hash, None) is None:
                raise NotFoundError("secret not found")

    async def get_token_expiry(self, token: str) -> datetime:
        with self._lock:
            expires_at = self._tokens.get(token)
            if expires_at is None:
                raise TokenNotFoundError()
            return expires_at

    async def put_token(self, token: str, expires_at: datetime) -> None:
        with self._lock:
            self._tokens[token] = expires_at

    async def delete_token(self, token: str) -> None:
        with self._lock:
            if self._tokens.pop(token, None) is None:
                raise TokenNotFoundError()

    async def delete_tokens_by_prefix(self, prefix: str) -> int:
        if not prefix:
            return 0
        with self._lock:
            matches = [token for token in self._tokens if token.startswith(prefix)]
            for token in matches:
                del self._tokens[token]
            return len(matches)

    async def delete_expired_tokens(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [token for token, expires_at in self._tokens.items() if expires_at < now]
            for token in expired:
                del self._tokens[token]
            return len(expired)

    async def count_tokens_by_prefix(self, prefix: str) -> int:
        with self._lock:
            if not prefix:
                return len(self._tokens)
            return sum(1 for token in self._tokens if token.startswith(prefix))
