"""SMTP mail transport.

Uses aiosmtplib for asynchronous email sending via SMTP.
"""

from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from linkauth.core.logging import get_logger
from linkauth.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Configuration settings for the SMTP provider."""

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    from_name: str = "LinkAuth"
    timeout: int = 10


class SMTPProvider(EmailProvider):
    """Send emails using the SMTP protocol via aiosmtplib."""

    def __init__(self, settings: SMTPSettings) -> None:
        """Initialize the SMTP provider.

        Args:
            settings: SMTP configuration settings.
        """
        self.settings = settings

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,  # aiosmtplib uses use_tls for TLS on connect
            start_tls=self.settings.use_tls and not self.settings.use_ssl,
            timeout=self.settings.timeout,
        )

    async def _login(self, smtp: aiosmtplib.SMTP) -> None:
        if self.settings.username:
            await smtp.login(self.settings.username, self.settings.password or "")

    def build_message(
        self, from_address: str, to_address: str, subject: str, body: str
    ) -> MIMEText:
        """Compose the HTML MIME message."""
        message = MIMEText(body, "html", "utf-8")
        message["From"] = formataddr((self.settings.from_name, from_address))
        message["To"] = to_address
        message["Subject"] = subject
        return message

    async def send(
        self,
        from_address: str,
        to_address: str,
        subject: str,
        body: str,
    ) -> None:
        """Send an email via SMTP.

        Raises:
            aiosmtplib.SMTPException: If the connection or the send fails.
        """
        message = self.build_message(from_address, to_address, subject, body)
        try:
            async with self._client() as smtp:
                await self._login(smtp)
                await smtp.send_message(message)
        except Exception as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise

    async def test_connection(self) -> tuple[bool, str | None]:
        """Test the SMTP connection and authentication."""
        try:
            async with self._client() as smtp:
                await self._login(smtp)
            return True, None
        except Exception as e:
            error_msg = f"SMTP connection failed: {str(e)}"
            logger.error(error_msg, host=self.settings.host)
            return False, error_msg
