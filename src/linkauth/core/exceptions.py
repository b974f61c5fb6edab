"""Error taxonomy for LinkAuth.

Every error raised on purpose by the domain and infrastructure layers derives
from LinkAuthError so callers can catch the whole family at their boundary.
"""


class LinkAuthError(Exception):
    """Base class for all LinkAuth errors."""

    pass


class InvalidInputError(LinkAuthError):
    """Raised when caller supplied fields are missing or malformed."""

    pass


class InvalidTokenError(InvalidInputError):
    """Raised when a token string cannot be parsed into its fields."""

    pass


class NotFoundError(LinkAuthError):
    """Raised when an application or token does not exist."""

    pass


class AppNotFoundError(NotFoundError):
    """Raised when the requested application is not stored."""

    def __init__(self, message: str = "app not found") -> None:
        super().__init__(message)


class TokenNotFoundError(NotFoundError):
    """Raised when the requested token is not stored."""

    def __init__(self, message: str = "token not found") -> None:
        super().__init__(message)


class QuotaExceededError(LinkAuthError):
    """Raised when an application already has its maximum of active users."""

    def __init__(self, app_id: str, quota: int) -> None:
        self.app_id = app_id
        self.quota = quota
        super().__init__(f"users quota reached ({quota})")


class UnauthorizedError(LinkAuthError):
    """Raised when a secret or token does not grant access.

    The message is deliberately generic so it never reveals which part of the
    credential was wrong.
    """

    def __init__(self, message: str = "invalid token or secret") -> None:
        super().__init__(message)


class InvalidRecipientError(LinkAuthError):
    """Raised when an email recipient is not a valid address."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"invalid email address: {address!r}")


class DisallowedDomainError(LinkAuthError):
    """Raised when an email recipient belongs to a disallowed domain."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__("disallowed email domain")


class DeliveryFailedError(LinkAuthError):
    """Raised when an email could not be queued or sent."""

    pass


class StorageError(LinkAuthError):
    """Raised when a storage backend fails for a reason other than not found."""

    pass
