"""Console mail transport for development.

Emails are written to the log instead of being sent.
"""

from linkauth.core.logging import get_logger
from linkauth.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class ConsoleProvider(EmailProvider):
    """Log every email at INFO level and keep the sent ones in memory."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str, str]] = []

    async def send(
        self,
        from_address: str,
        to_address: str,
        subject: str,
        body: str,
    ) -> None:
        self.sent.append((from_address, to_address, subject, body))
        logger.info(
            f"[EMAIL] Sending email\n"
            f"From: {from_address}\n"
            f"To: {to_address}\n"
            f"Subject: {subject}\n"
            f"Body:\n{body}\n"
            f"{'=' * 80}"
        )

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None
