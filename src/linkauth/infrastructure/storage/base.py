"""Storage contract shared by every backend.

The token lifecycle and the application registry only talk to storage through
this interface. Tokens are keyed by their full string, so the application id
and the ``app_id-subject_id`` pair are literal key prefixes. Prefix scans are
the only index the contract requires.

Every "not found" outcome is reported with a NotFoundError subclass, every
other backend failure with StorageError.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from linkauth.domain.entities.application import Application


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to Unix epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert Unix epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    async def connect(self) -> None:
        """Open connections or create schema. No-op by default."""
        return None

    async def close(self) -> None:
        """Release connections. No-op by default."""
        return None

    async def test_connection(self) -> tuple[bool, str | None]:
        """Test backend connectivity.

        Returns:
            Tuple of (success, error_message). error_message is None on success.
        """
        try:
            await self.count_tokens_by_prefix("")
            return True, None
        except Exception as e:
            return False, str(e)

    # Applications

    @abstractmethod
    async def get_app_by_id(self, app_id: str) -> Application:
        """Get an application by id.

        Raises:
            AppNotFoundError: If no application has this id.
        """
        ...

    @abstractmethod
    async def get_app_by_secret_hash(self, secret_hash: str) -> Application:
        """Get the application owning a secret hash.

        Raises:
            AppNotFoundError: If the hash is unknown or its application is gone.
        """
        ...

    @abstractmethod
    async def put_app(self, app: Application) -> None:
        """Create or replace an application record."""
        ...

    @abstractmethod
    async def delete_app(self, app_id: str) -> None:
        """Delete an application record.

        Raises:
            AppNotFoundError: If no application has this id.
        """
        ...

    # Secrets

    @abstractmethod
    async def verify_secret(self, secret_hash: str, app_id: str) -> bool:
        """Check that a secret hash maps to the given application."""
        ...

    @abstractmethod
    async def put_secret(self, secret_hash: str, app_id: str) -> None:
        """Map a secret hash to an application id."""
        ...

    @abstractmethod
    async def delete_secret(self, secret_hash: str) -> None:
        """Remove a secret hash mapping.

        Raises:
            NotFoundError: If the hash is not mapped.
        """
        ...

    # Tokens

    @abstractmethod
    async def get_token_expiry(self, token: str) -> datetime:
        """Get the expiry of a token as an aware UTC datetime.

        Raises:
            TokenNotFoundError: If the token is not stored.
        """
        ...

    @abstractmethod
    async def put_token(self, token: str, expires_at: datetime) -> None:
        """Store a token with its expiry."""
        ...

    @abstractmethod
    async def delete_token(self, token: str) -> None:
        """Delete a single token.

        Raises:
            TokenNotFoundError: If the token is not stored.
        """
        ...

    @abstractmethod
    async def delete_tokens_by_prefix(self, prefix: str) -> int:
        """Delete every token starting with prefix.

        An empty prefix deletes nothing.

        Returns:
            Number of deleted tokens, 0 when none matched.
        """
        ...

    @abstractmethod
    async def delete_expired_tokens(self, now: datetime | None = None) -> int:
        """Delete every token whose expiry is before now.

        Returns:
            Number of deleted tokens.
        """
        ...

    @abstractmethod
    async def count_tokens_by_prefix(self, prefix: str) -> int:
        """Count the tokens starting with prefix. An empty prefix counts all."""
        ...
