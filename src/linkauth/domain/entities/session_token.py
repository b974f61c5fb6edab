"""Session token entity.

A token is the opaque string embedded in a magic link:

    [app_id]-[subject_id]-[nonce]

The application id and the subject id are literal prefixes of the token, so
storage can count and delete the tokens of an application or of a single
subject with a prefix scan. A token whose subject id equals its application
id belongs to the application admin.
"""

from dataclasses import dataclass

from linkauth.core.exceptions import InvalidTokenError

TOKEN_SEPARATOR = "-"


def token_prefix(app_id: str, subject_id: str | None = None) -> str:
    """Build the storage prefix shared by the tokens of an app or a subject.

    The trailing separator keeps one id from matching a longer id that
    starts with the same characters.

    Args:
        app_id: Application identifier.
        subject_id: Optional subject identifier.

    Returns:
        The key prefix, ending with the token separator.
    """
    parts = [app_id] if subject_id is None else [app_id, subject_id]
    return TOKEN_SEPARATOR.join(parts) + TOKEN_SEPARATOR


@dataclass(frozen=True)
class SessionToken:
    """Parsed session token.

    Attributes:
        app_id: Identifier of the application that issued the token.
        subject_id: Hashed user email, or the app id for admin tokens.
        nonce: Random hex string making the token unique.
    """

    app_id: str
    subject_id: str
    nonce: str

    @property
    def is_admin(self) -> bool:
        """Whether the token authenticates the application admin."""
        return self.subject_id == self.app_id

    @property
    def subject_prefix(self) -> str:
        """Storage prefix shared by every token of this subject."""
        return token_prefix(self.app_id, self.subject_id)

    def encode(self) -> str:
        """Serialize the token to its string form."""
        return TOKEN_SEPARATOR.join([self.app_id, self.subject_id, self.nonce])

    def __str__(self) -> str:
        return self.encode()

    @classmethod
    def decode(cls, raw: str) -> "SessionToken":
        """Parse a token string.

        Args:
            raw: Token string as found in a magic link.

        Returns:
            The parsed token.

        Raises:
            InvalidTokenError: If the string does not have three non-empty fields.
        """
        parts = raw.split(TOKEN_SEPARATOR) if raw else []
        if len(parts) != 3 or not all(parts):
            raise InvalidTokenError("invalid token")
        return cls(app_id=parts[0], subject_id=parts[1], nonce=parts[2])
