"""Application registry.

Creates, reads, updates and deletes application records and verifies admin
secrets. The registry owns application records. It shares the storage backend
with the token lifecycle and relies on the application id being the prefix
of every token the application issued.
"""

from datetime import datetime, timezone
from typing import Callable
from urllib.parse import urlsplit

from linkauth.core.exceptions import (
    AppNotFoundError,
    InvalidInputError,
    NotFoundError,
    StorageError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.application import Application, AppView
from linkauth.domain.entities.session_token import token_prefix
from linkauth.domain.services.identifiers import (
    ID_SIZE,
    SECRET_SIZE,
    derive_id,
    hash_secret,
    random_secret,
)
from linkauth.infrastructure.storage.base import StorageBackend

logger = get_logger(__name__)

MIN_SESSION_DURATION = 60  # seconds
DEFAULT_USERS_QUOTA = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApplicationRegistry:
    """Service for the application lifecycle."""

    def __init__(
        self,
        storage: StorageBackend,
        min_duration: int = MIN_SESSION_DURATION,
        default_users_quota: int = DEFAULT_USERS_QUOTA,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the registry.

        Args:
            storage: Storage backend shared with the token lifecycle.
            min_duration: Shortest session duration accepted, in seconds.
            default_users_quota: Quota given to applications registered without one.
            clock: Source of the current time for token expiry checks.
        """
        self.storage = storage
        self.min_duration = min_duration
        self.default_users_quota = default_users_quota
        self.clock = clock

    def _check_duration(self, duration: int) -> None:
        if duration < self.min_duration:
            raise InvalidInputError(
                f"duration must be at least {self.min_duration} seconds"
            )

    @staticmethod
    def _check_redirect_url(redirect_url: str) -> None:
        parts = urlsplit(redirect_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidInputError(f"redirect URL must be absolute: {redirect_url!r}")

    async def register(
        self,
        name: str,
        admin_email: str,
        redirect_url: str,
        duration: int,
        users_quota: int | None = None,
    ) -> tuple[str, str]:
        """Register a new application.

        The plaintext secret is returned once and never stored.

        Args:
            name: Display name.
            admin_email: Email address of the owner. The app id derives from it.
            redirect_url: Default landing URL for issued links.
            duration: Default session duration in seconds.
            users_quota: Maximum active users, the registry default when None.

        Returns:
            A tuple of (app_id, plaintext_secret).

        Raises:
            InvalidInputError: If a field is empty, the redirect URL is not an
                absolute http(s) URL, the duration is below the floor or the
                quota is not positive.
        """
        if not name or not admin_email or not redirect_url:
            raise InvalidInputError("name, email, and redirect URL are required")
        self._check_redirect_url(redirect_url)
        self._check_duration(duration)
        quota = self.default_users_quota if users_quota is None else users_quota
        if quota < 1:
            raise InvalidInputError("users quota must be at least 1")

        app_id = derive_id(admin_email, ID_SIZE)
        secret = random_secret(SECRET_SIZE)
        secret_hash = hash_secret(secret)

        try:
            await self.storage.get_app_by_id(app_id)
        except AppNotFoundError:
            pass
        else:
            # Same admin email registered twice: the record is overwritten and
            # the previous secret mapping stays in place.
            logger.warning("Application id collision, overwriting record", app_id=app_id)

        await self.storage.put_app(
            Application(
                id=app_id,
                name=name,
                admin_email=admin_email,
                redirect_url=redirect_url,
                session_duration=duration,
                users_quota=quota,
                secret_hash=secret_hash,
            )
        )
        await self.storage.put_secret(secret_hash, app_id)
        logger.info("Application registered", app_id=app_id)
        return app_id, secret

    async def metadata(self, app_id: str) -> AppView:
        """Get an application with its number of active users.

        Raises:
            AppNotFoundError: If the application does not exist.
        """
        app = await self.storage.get_app_by_id(app_id)
        current_users = await self.active_users(app_id)
        return AppView.from_application(app, current_users)

    async def active_users(self, app_id: str) -> int:
        """Count the live tokens of an application, the admin session included.

        Expired tokens are swept first so they never hold a user slot.
        """
        await self.storage.delete_expired_tokens(self.clock())
        return await self.storage.count_tokens_by_prefix(token_prefix(app_id))

    async def update(
        self,
        app_id: str,
        name: str | None = None,
        redirect_url: str | None = None,
        duration: int | None = None,
    ) -> Application:
        """Partially update an application.

        Only non-empty values overwrite the stored ones.

        Returns:
            The updated application.

        Raises:
            AppNotFoundError: If the application does not exist.
            InvalidInputError: If a non-zero duration is below the floor or the
                redirect URL is not absolute.
        """
        app = await self.storage.get_app_by_id(app_id)
        if name:
            app.name = name
        if redirect_url:
            self._check_redirect_url(redirect_url)
            app.redirect_url = redirect_url
        if duration:
            self._check_duration(duration)
            app.session_duration = duration
        await self.storage.put_app(app)
        logger.info("Application updated", app_id=app_id)
        return app

    async def deregister(self, app_id: str) -> None:
        """Delete an application, its tokens and its secret mapping.

        Tokens go first. If the process stops halfway, leftover tokens can
        only be reached by prefix and expire on their own.

        Raises:
            AppNotFoundError: If the application does not exist.
        """
        app = await self.storage.get_app_by_id(app_id)
        deleted = await self.storage.delete_tokens_by_prefix(token_prefix(app_id))
        try:
            await self.storage.delete_secret(app.secret_hash)
        except NotFoundError:
            logger.warning("Application secret mapping already gone", app_id=app_id)
        await self.storage.delete_app(app_id)
        logger.info("Application deregistered", app_id=app_id, deleted_tokens=deleted)

    async def verify_admin_secret(self, app_id: str, secret: str) -> bool:
        """Check an admin secret against an application.

        Unknown applications and wrong secrets both return False.
        """
        if not app_id or not secret:
            return False
        try:
            return await self.storage.verify_secret(hash_secret(secret), app_id)
        except StorageError as e:
            logger.error("Secret verification failed", app_id=app_id, error=str(e))
            return False
