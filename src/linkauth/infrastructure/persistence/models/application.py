"""SQLAlchemy models for applications and their secret mappings."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from linkauth.infrastructure.persistence.database import Base


class ApplicationModel(Base):
    """SQLAlchemy model for the applications table.

    Attributes:
        id: Primary key, derived from the admin email.
        name: Display name of the application.
        admin_email: Email address of the owner.
        redirect_url: Default landing URL for issued links.
        session_duration: Default token lifetime in seconds.
        users_quota: Maximum number of concurrently active tokens.
        secret_hash: Hash of the admin secret.
    """

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Application ID (hashed admin email)",
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Application display name",
    )
    admin_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Email address of the application admin",
    )
    redirect_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Default redirect URL for magic links",
    )
    session_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Default session duration in seconds",
    )
    users_quota: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Maximum number of active user sessions",
    )
    secret_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Hash of the admin secret",
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, name={self.name})>"


class AppSecretModel(Base):
    """SQLAlchemy model for the app_secrets table.

    Maps a secret hash to the application it unlocks.
    """

    __tablename__ = "app_secrets"

    secret_hash: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Hash of the admin secret",
    )
    app_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Application ID",
    )

    def __repr__(self) -> str:
        return f"<AppSecret(app_id={self.app_id})>"
