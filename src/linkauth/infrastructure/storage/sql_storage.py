"""SQL storage backend.

Stores applications, secret mappings and tokens in three tables through
SQLAlchemy async. The default URL points at an embedded SQLite file opened
with aiosqlite.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from linkauth.core.exceptions import (
    AppNotFoundError,
    NotFoundError,
    StorageError,
    TokenNotFoundError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.application import Application
from linkauth.infrastructure.persistence.database import DatabaseManager
from linkauth.infrastructure.persistence.models import (
    AppSecretModel,
    ApplicationModel,
    SessionTokenModel,
)
from linkauth.infrastructure.storage.base import StorageBackend, from_millis, to_millis

logger = get_logger(__name__)

T = TypeVar("T")


class SQLStorage(StorageBackend):
    """Storage backend on top of a SQLAlchemy async database."""

    def __init__(self, db: DatabaseManager) -> None:
        """Initialize the backend.

        Args:
            db: Database manager owning the engine. Its timeout also bounds
                every operation of this backend.
        """
        self._db = db

    async def connect(self) -> None:
        self._db.ensure_directory()
        await self._db.create_tables()

    async def close(self) -> None:
        await self._db.disconnect()

    async def test_connection(self) -> tuple[bool, str | None]:
        if await self._db.check_connection():
            return True, None
        return False, "database connection failed"

    async def _execute(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run an operation in its own transaction, bounded by the timeout.

        NotFoundError raised by the operation propagates unchanged, driver
        errors and timeouts become StorageError.
        """

        async def run() -> T:
            async with self._db.session() as session:
                result = await operation(session)
                await session.commit()
                return result

        try:
            return await asyncio.wait_for(run(), timeout=self._db.timeout)
        except asyncio.TimeoutError as e:
            raise StorageError("database operation timed out") from e
        except SQLAlchemyError as e:
            logger.error("Database operation failed", error=str(e))
            raise StorageError("database operation failed") from e

    @staticmethod
    def _to_entity(model: ApplicationModel) -> Application:
        return Application(
            id=model.id,
            name=model.name,
            admin_email=model.admin_email,
            redirect_url=model.redirect_url,
            session_duration=model.session_duration,
            users_quota=model.users_quota,
            secret_hash=model.secret_hash,
        )

    async def get_app_by_id(self, app_id: str) -> Application:
        async def operation(session: AsyncSession) -> Application:
            model = await session.get(ApplicationModel, app_id)
            if model is None:
                raise AppNotFoundError()
            return self._to_entity(model)

        return await self._execute(operation)

    async def get_app_by_secret_hash(self, secret_hash: str) -> Application:
        async def operation(session: AsyncSession) -> Application:
            stmt = (
                select(ApplicationModel)
                .join(AppSecretModel, AppSecretModel.app_id == ApplicationModel.id)
                .where(AppSecretModel.secret_hash == secret_hash)
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                raise AppNotFoundError()
            return self._to_entity(model)

        return await self._execute(operation)

    async def put_app(self, app: Application) -> None:
        async def operation(session: AsyncSession) -> None:
            await session.merge(
                ApplicationModel(
                    id=app.id,
                    name=app.name,
                    admin_email=app.admin_email,
                    redirect_url=app.redirect_url,
                    session_duration=app.session_duration,
                    users_quota=app.users_quota,
                    secret_hash=app.secret_hash,
                )
            )

        await self._execute(operation)

    async def delete_app(self, app_id: str) -> None:
        async def operation(session: AsyncSession) -> None:
            stmt = delete(ApplicationModel).where(ApplicationModel.id == app_id)
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise AppNotFoundError()

        await self._execute(operation)

    async def verify_secret(self, secret_hash: str, app_id: str) -> bool:
        async def operation(session: AsyncSession) -> bool:
            model = await session.get(AppSecretModel, secret_hash)
            return model is not None and model.app_id == app_id

        return await self._execute(operation)

    async def put_secret(self, secret_hash: str, app_id: str) -> None:
        async def operation(session: AsyncSession) -> None:
            await session.merge(AppSecretModel(secret_hash=secret_hash, app_id=app_id))

        await self._execute(operation)

    async def delete_secret(self, secret_hash: str) -> None:
        async def operation(session: AsyncSession) -> None:
            stmt = delete(AppSecretModel).where(AppSecretModel.secret_hash == secret_hash)
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("secret not found")

        await self._execute(operation)

    async def get_token_expiry(self, token: str) -> datetime:
        async def operation(session: AsyncSession) -> datetime:
            model = await session.get(SessionTokenModel, token)
            if model is None:
                raise TokenNotFoundError()
            return from_millis(model.expires_at)

        return await self._execute(operation)

    async def put_token(self, token: str, expires_at: datetime) -> None:
        async def operation(session: AsyncSession) -> None:
            await session.merge(SessionTokenModel(token=token, expires_at=to_millis(expires_at)))

        await self._execute(operation)

    async def delete_token(self, token: str) -> None:
        async def operation(session: AsyncSession) -> None:
            stmt = delete(SessionTokenModel).where(SessionTokenModel.token == token)
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise TokenNotFoundError()

        await self._execute(operation)

    async def delete_tokens_by_prefix(self, prefix: str) -> int:
        if not prefix:
            return 0

        async def operation(session: AsyncSession) -> int:
            stmt = delete(SessionTokenModel).where(
                SessionTokenModel.token.startswith(prefix, autoescape=True)
            )
            result = await session.execute(stmt)
            return result.rowcount

        return await self._execute(operation)

    async def delete_expired_tokens(self, now: datetime | None = None) -> int:
        cutoff = to_millis(now or datetime.now(timezone.utc))

        async def operation(session: AsyncSession) -> int:
            stmt = delete(SessionTokenModel).where(SessionTokenModel.expires_at < cutoff)
            result = await session.execute(stmt)
            return result.rowcount

        return await self._execute(operation)

    async def count_tokens_by_prefix(self, prefix: str) -> int:
        async def operation(session: AsyncSession) -> int:
            stmt = select(func.count()).select_from(SessionTokenModel)
            if prefix:
                stmt = stmt.where(SessionTokenModel.token.startswith(prefix, autoescape=True))
            result = await session.execute(stmt)
            return int(result.scalar_one())

        return await self._execute(operation)
