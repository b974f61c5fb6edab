"""Application entity.

An application is a tenant registered by its admin. Its users request magic
links through it and the admin manages it with an admin session token.
"""

from dataclasses import dataclass


@dataclass
class Application:
    """Registered application.

    Attributes:
        id: Identifier derived from the admin email. Not secret.
        name: Display name used in emails.
        admin_email: Email address of the owner.
        redirect_url: Default landing URL for issued links.
        session_duration: Default token lifetime in seconds.
        users_quota: Maximum number of concurrently active tokens.
        secret_hash: Hash of the admin secret. The plaintext secret is never stored.
    """

    id: str
    name: str
    admin_email: str
    redirect_url: str
    session_duration: int
    users_quota: int
    secret_hash: str


@dataclass
class AppView:
    """Read model of an application returned to its admin.

    Attributes:
        id: Application identifier.
        name: Display name.
        admin_email: Email address of the owner.
        redirect_url: Default landing URL for issued links.
        session_duration: Default token lifetime in seconds.
        users_quota: Maximum number of concurrently active tokens.
        current_users: Number of tokens currently stored for the application.
    """

    id: str
    name: str
    admin_email: str
    redirect_url: str
    session_duration: int
    users_quota: int
    current_users: int

    @classmethod
    def from_application(cls, app: Application, current_users: int) -> "AppView":
        """Build the view of an application, leaving its secret hash out."""
        return cls(
            id=app.id,
            name=app.name,
            admin_email=app.admin_email,
            redirect_url=app.redirect_url,
            session_duration=app.session_duration,
            users_quota=app.users_quota,
            current_users=current_users,
        )
