"""SQLAlchemy model for session tokens."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from linkauth.infrastructure.persistence.database import Base


class SessionTokenModel(Base):
    """SQLAlchemy model for the session_tokens table.

    Attributes:
        token: Primary key, the full token string. Its app and subject ids are
            key prefixes.
        expires_at: Unix timestamp in milliseconds when the token expires.
    """

    __tablename__ = "session_tokens"

    token: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Token string ([app_id]-[subject_id]-[nonce])",
    )
    expires_at: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
        comment="Unix timestamp in milliseconds of expiry",
    )

    def __repr__(self) -> str:
        return f"<SessionToken(expires_at={self.expires_at})>"
