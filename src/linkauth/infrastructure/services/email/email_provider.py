"""Abstract base class for mail transports.

Defines the interface the delivery queue sends through.
"""

from abc import ABC, abstractmethod


class EmailProvider(ABC):
    """Abstract base class for mail transports.

    Implementations raise on failure. Retrying is left to the delivery queue,
    so a send must be safe to repeat.
    """

    @abstractmethod
    async def send(
        self,
        from_address: str,
        to_address: str,
        subject: str,
        body: str,
    ) -> None:
        """Send an HTML email.

        Args:
            from_address: Sender email address.
            to_address: Recipient email address.
            subject: Email subject line.
            body: HTML email body.

        Raises:
            Exception: If the message could not be handed to the transport.
        """
        pass

    @abstractmethod
    async def test_connection(self) -> tuple[bool, str | None]:
        """Test the transport connection.

        Returns:
            Tuple of (success: bool, error_message: str | None).
            If successful, error_message is None.
        """
        pass
