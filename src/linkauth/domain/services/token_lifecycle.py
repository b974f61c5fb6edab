"""Token lifecycle engine.

Issues, validates and expires session tokens. Each ``(app_id, subject_id)``
slot moves through absent -> active -> absent; a token is either stored with
its expiry or gone.

Issuance deletes the previous tokens of the slot and stores the new one while
holding a lock, so two issuances in this process never interleave. Backends
shared by several processes only get last-writer-wins: when two processes
issue for the same slot at once, both tokens can stay valid until the older
one expires or the slot is issued again.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from linkauth.core.exceptions import (
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    QuotaExceededError,
    StorageError,
    TokenNotFoundError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.session_token import (
    TOKEN_SEPARATOR,
    SessionToken,
    token_prefix,
)
from linkauth.domain.services.application_registry import ApplicationRegistry
from linkauth.domain.services.identifiers import (
    ID_SIZE,
    NONCE_SIZE,
    derive_id,
    hash_secret,
    random_secret,
)
from linkauth.infrastructure.storage.base import StorageBackend

logger = get_logger(__name__)

TOKEN_QUERY_PARAM = "token"


@dataclass(frozen=True)
class IssuedToken:
    """Result of a successful issuance.

    Attributes:
        link: Magic link carrying the token.
        token: Raw token string.
        app_name: Display name of the issuing application.
        expires_at: Expiry of the token.
    """

    link: str
    token: str
    app_name: str
    expires_at: datetime


def build_magic_link(base_url: str, token: str) -> str:
    """Add the token to a URL as a query parameter.

    The path, fragment and other query parameters of the base URL are kept;
    an existing token parameter is replaced.

    Raises:
        InvalidInputError: If the base URL has no scheme or host.
    """
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise InvalidInputError(f"invalid redirect URL: {base_url!r}")
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key != TOKEN_QUERY_PARAM
    ]
    query.append((TOKEN_QUERY_PARAM, token))
    return urlunsplit(parts._replace(query=urlencode(query)))


class TokenLifecycle:
    """Service issuing and validating session tokens."""

    def __init__(
        self,
        storage: StorageBackend,
        registry: ApplicationRegistry,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.storage = storage
        self.registry = registry
        self.clock = clock or registry.clock
        self._issue_lock = asyncio.Lock()

    async def issue_user_token(
        self,
        admin_secret: str,
        user_email: str,
        redirect_url: str | None = None,
        duration: int | None = None,
    ) -> IssuedToken:
        """Issue a token for a user of the application owning admin_secret.

        Any previous token of the same user is deleted first. Expired tokens
        of every application are swept before the quota is checked.

        Args:
            admin_secret: Plaintext admin secret of the application.
            user_email: Email address of the user.
            redirect_url: Landing URL overriding the application default.
            duration: Lifetime in seconds overriding the application default.

        Returns:
            The issued token with its magic link.

        Raises:
            InvalidInputError: If the secret or email is empty or the landing
                URL is not absolute.
            AppNotFoundError: If no application owns the secret.
            QuotaExceededError: If the application has no free user slot.
        """
        if not admin_secret or not user_email:
            raise InvalidInputError("secret and email are required")

        app = await self.storage.get_app_by_secret_hash(hash_secret(admin_secret))
        subject_id = derive_id(user_email, ID_SIZE)
        token = SessionToken(app.id, subject_id, random_secret(NONCE_SIZE)).encode()
        link = build_magic_link(redirect_url or app.redirect_url, token)
        lifetime = duration if duration and duration > 0 else app.session_duration
        expires_at = self.clock() + timedelta(seconds=lifetime)

        async with self._issue_lock:
            active = await self.registry.active_users(app.id)
            if active >= app.users_quota:
                raise QuotaExceededError(app.id, app.users_quota)
            replaced = await self.storage.delete_tokens_by_prefix(
                token_prefix(app.id, subject_id)
            )
            await self.storage.put_token(token, expires_at)

        logger.info(
            "Token issued",
            app_id=app.id,
            subject_id=subject_id,
            replaced=replaced,
            expires_at=expires_at.isoformat(),
        )
        return IssuedToken(link=link, token=token, app_name=app.name, expires_at=expires_at)

    async def _check(self, raw_token: str, admin_secret: str, admin: bool) -> str | None:
        """Return the app id of a live token, or None when it does not validate."""
        if not raw_token or not admin_secret:
            return None
        try:
            token = SessionToken.decode(raw_token)
        except InvalidTokenError:
            return None
        if admin and not token.is_admin:
            return None
        if not await self.registry.verify_admin_secret(token.app_id, admin_secret):
            return None

        try:
            expires_at = await self.storage.get_token_expiry(raw_token)
        except TokenNotFoundError:
            return None
        except StorageError as e:
            logger.error("Token lookup failed", app_id=token.app_id, error=str(e))
            return None

        if self.clock() > expires_at:
            await self._discard(token)
            return None
        return token.app_id

    async def _discard(self, token: SessionToken) -> None:
        try:
            await self.storage.delete_token(token.encode())
            logger.debug("Expired token deleted", app_id=token.app_id, subject_id=token.subject_id)
        except NotFoundError:
            pass
        except StorageError as e:
            logger.error("Failed to delete expired token", app_id=token.app_id, error=str(e))

    async def validate_user_token(self, token: str, admin_secret: str) -> bool:
        """Check that a token is live and was issued by the secret's application.

        Never raises for malformed input. An expired token is deleted.
        """
        return await self._check(token, admin_secret, admin=False) is not None

    async def validate_admin_token(
        self, token: str, admin_secret: str
    ) -> tuple[str | None, bool]:
        """Check an admin session token.

        Same rules as validate_user_token, and the subject id must equal the
        application id.

        Returns:
            Tuple of (app_id, valid). app_id is None when the token is invalid.
        """
        app_id = await self._check(token, admin_secret, admin=True)
        return app_id, app_id is not None

    async def revoke_token(self, token: str) -> None:
        """Delete a single token.

        Raises:
            TokenNotFoundError: If the token is not stored.
        """
        await self.storage.delete_token(token)
        logger.info("Token revoked", app_id=token.split(TOKEN_SEPARATOR, 1)[0])

    async def sweep_expired(self) -> int:
        """Delete every expired token.

        Failures are logged and reported as zero deletions.
        """
        try:
            deleted = await self.storage.delete_expired_tokens(self.clock())
        except StorageError as e:
            logger.error("Expired token sweep failed", error=str(e))
            return 0
        logger.info("Expired tokens swept", deleted=deleted)
        return deleted
