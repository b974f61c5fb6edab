"""Magic link service.

Ties the registry, the token lifecycle and the delivery queue together: each
issuance is followed by an email, and the issuance is undone when the email
cannot be handed over. By default the email is queued, and a send that fails
later in the worker is only logged. Callers that exit right away, such as
the command line, deliver immediately instead so that a failed send is
undone too.
"""

from linkauth.core.exceptions import (
    DeliveryFailedError,
    DisallowedDomainError,
    InvalidInputError,
    InvalidRecipientError,
    LinkAuthError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.application import Application, AppView
from linkauth.domain.entities.email_message import QueuedMessage
from linkauth.domain.services.application_registry import ApplicationRegistry
from linkauth.domain.services.token_lifecycle import IssuedToken, TokenLifecycle
from linkauth.infrastructure.services.email.delivery_queue import (
    DeliveryQueue,
    is_valid_address,
)
from linkauth.infrastructure.services.email.template_renderer import TemplateRenderer

logger = get_logger(__name__)

DEFAULT_SESSION_DURATION = 3600  # seconds


class MagicLinkService:
    """Service for the magic link flows of admins and users."""

    def __init__(
        self,
        registry: ApplicationRegistry,
        tokens: TokenLifecycle,
        queue: DeliveryQueue,
        renderer: TemplateRenderer,
        default_duration: int = DEFAULT_SESSION_DURATION,
    ) -> None:
        """Initialize the magic link service.

        Args:
            registry: Application registry.
            tokens: Token lifecycle engine.
            queue: Delivery queue for outgoing emails.
            renderer: Renderer of the email bodies.
            default_duration: Session duration of apps registered without one.
        """
        self.registry = registry
        self.tokens = tokens
        self.queue = queue
        self.renderer = renderer
        self.default_duration = default_duration

    def _check_recipient(self, address: str) -> None:
        if not is_valid_address(address):
            raise InvalidRecipientError(address)
        if not self.queue.allowed(address):
            raise DisallowedDomainError(address)

    async def _send(self, message: QueuedMessage, deliver_now: bool) -> None:
        if deliver_now:
            await self.queue.deliver(message)
        else:
            self.queue.push(message)

    async def register_app(
        self,
        name: str,
        admin_email: str,
        redirect_url: str,
        duration: int | None = None,
        users_quota: int | None = None,
        deliver_now: bool = False,
    ) -> str:
        """Register an application and email its secret to the admin.

        Args:
            deliver_now: Send the email before returning instead of queuing it.

        Returns:
            The application id. The secret only travels by email.

        Raises:
            InvalidRecipientError: If the admin email is not a valid address.
            DisallowedDomainError: If the admin email domain is disallowed.
            InvalidInputError: If the registry rejects the fields.
            DeliveryFailedError: If the email could not be queued or sent. The
                application is deregistered before this is raised.
        """
        self._check_recipient(admin_email)
        app_id, secret = await self.registry.register(
            name,
            admin_email,
            redirect_url,
            duration or self.default_duration,
            users_quota,
        )
        subject, body = self.renderer.render_app_email(
            app_id, name, redirect_url, secret, admin_email
        )
        try:
            await self._send(
                QueuedMessage(to=admin_email, subject=subject, body=body), deliver_now
            )
        except LinkAuthError as e:
            logger.error("Failed to send app email", app_id=app_id, error=str(e))
            await self._rollback_app(app_id)
            raise DeliveryFailedError("error sending email") from e
        return app_id

    async def _rollback_app(self, app_id: str) -> None:
        try:
            await self.registry.deregister(app_id)
        except (NotFoundError, StorageError) as e:
            logger.error("Failed to roll back application", app_id=app_id, error=str(e))

    async def request_user_link(
        self,
        admin_secret: str,
        email: str,
        redirect_url: str | None = None,
        duration: int | None = None,
        deliver_now: bool = False,
    ) -> IssuedToken:
        """Issue a token for a user and email them the magic link.

        Requesting a link for the admin's own email yields an admin session
        token.

        Raises:
            InvalidRecipientError: If the email is not a valid address.
            DisallowedDomainError: If the email domain is disallowed.
            InvalidInputError: If the secret is empty or the URL is invalid.
            AppNotFoundError: If no application owns the secret.
            QuotaExceededError: If the application has no free user slot.
            DeliveryFailedError: If the email could not be queued or sent. The
                token is deleted before this is raised.
        """
        self._check_recipient(email)
        issued = await self.tokens.issue_user_token(admin_secret, email, redirect_url, duration)
        subject, body = self.renderer.render_user_email(
            issued.app_name, email, issued.link, issued.token
        )
        try:
            await self._send(QueuedMessage(to=email, subject=subject, body=body), deliver_now)
        except LinkAuthError as e:
            logger.error("Failed to send magic link email", error=str(e))
            try:
                await self.tokens.revoke_token(issued.token)
            except (NotFoundError, StorageError) as rollback_error:
                logger.error("Failed to roll back token", error=str(rollback_error))
            raise DeliveryFailedError("error sending email") from e
        return issued

    async def validate_user_token(self, token: str, admin_secret: str) -> bool:
        """Check a user token against the application secret."""
        return await self.tokens.validate_user_token(token, admin_secret)

    async def _authorize_admin(self, admin_token: str, admin_secret: str) -> str:
        app_id, valid = await self.tokens.validate_admin_token(admin_token, admin_secret)
        if not valid or app_id is None:
            raise UnauthorizedError()
        return app_id

    async def app_metadata(self, admin_token: str, admin_secret: str) -> AppView:
        """Get the application of an admin session.

        Raises:
            UnauthorizedError: If the admin token or the secret is not valid.
        """
        app_id = await self._authorize_admin(admin_token, admin_secret)
        return await self.registry.metadata(app_id)

    async def update_app(
        self,
        admin_token: str,
        admin_secret: str,
        name: str | None = None,
        redirect_url: str | None = None,
        duration: int | None = None,
    ) -> Application:
        """Update the application of an admin session.

        Raises:
            UnauthorizedError: If the admin token or the secret is not valid.
            InvalidInputError: If nothing would change or the duration is too short.
        """
        if not name and not redirect_url and not duration:
            raise InvalidInputError("nothing to update")
        app_id = await self._authorize_admin(admin_token, admin_secret)
        return await self.registry.update(app_id, name, redirect_url, duration)

    async def delete_app(self, admin_token: str, admin_secret: str) -> None:
        """Delete the application of an admin session with all its tokens.

        Raises:
            UnauthorizedError: If the admin token or the secret is not valid.
        """
        app_id = await self._authorize_admin(admin_token, admin_secret)
        await self.registry.deregister(app_id)
