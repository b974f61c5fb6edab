"""In-process email delivery queue.

Producers push messages from any task or thread; one worker task sends them
in FIFO order. A message leaves the queue before its first send attempt, so
delivery is at-most-once: a message that fails every attempt, or that is
still queued or being sent at shutdown, is lost. Callers that need to undo
an issuance on failure either rely on the errors raised by ``push`` or send
with ``deliver`` themselves.
"""

import asyncio
import contextlib
import re
import threading
from collections import deque

from linkauth.core.exceptions import (
    DeliveryFailedError,
    DisallowedDomainError,
    InvalidInputError,
    InvalidRecipientError,
)
from linkauth.core.logging import get_logger
from linkauth.domain.entities.email_message import QueuedMessage
from linkauth.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,}$")
SEND_RETRIES = 3


def is_valid_address(address: str) -> bool:
    return bool(address) and EMAIL_PATTERN.match(address) is not None


class DeliveryQueue:
    """FIFO email queue with a single background consumer."""

    def __init__(
        self,
        provider: EmailProvider,
        from_address: str,
        disallowed_domains: list[str] | None = None,
        send_retries: int = SEND_RETRIES,
        poll_interval: float = 1.0,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            provider: Mail transport used for every send.
            from_address: Sender address of every message.
            disallowed_domains: Recipient domains to reject. Empty allows all.
            send_retries: Attempts per message before giving up.
            poll_interval: Seconds the worker sleeps while the queue is empty.
            shutdown: Event that stops the worker, shared with other tasks.
        """
        if send_retries < 1:
            raise ValueError("send_retries must be at least 1")
        self.provider = provider
        self.from_address = from_address
        self.send_retries = send_retries
        self.poll_interval = poll_interval
        self.shutdown = shutdown or asyncio.Event()
        self._disallowed = frozenset(domain.lower() for domain in disallowed_domains or [])
        self._items: deque[QueuedMessage] = deque()
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def set_disallowed_domains(self, domains: list[str]) -> None:
        """Replace the disallowed domain list."""
        self._disallowed = frozenset(domain.lower() for domain in domains)

    def allowed(self, address: str) -> bool:
        """Check that an address is well formed and not on a disallowed domain."""
        if not is_valid_address(address):
            return False
        if not self._disallowed:
            return True
        return address.rsplit("@", 1)[1].lower() not in self._disallowed

    def push(self, message: QueuedMessage) -> None:
        """Validate a message and append it to the queue.

        Raises:
            InvalidRecipientError: If the recipient is not a valid address.
            InvalidInputError: If the subject or the body is empty.
            DisallowedDomainError: If the recipient domain is disallowed.
        """
        if not is_valid_address(message.to):
            raise InvalidRecipientError(message.to)
        if not message.subject or not message.body:
            raise InvalidInputError("email subject and body are required")
        if not self.allowed(message.to):
            raise DisallowedDomainError(message.to)
        with self._lock:
            self._items.append(message)
        logger.debug("Email queued", pending=len(self))

    def pop(self) -> QueuedMessage | None:
        """Remove and return the head message, or None when empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    async def deliver(self, message: QueuedMessage) -> None:
        """Send one message with immediate retries.

        Raises:
            DeliveryFailedError: If the recipient is not allowed or every
                attempt failed.
        """
        if not self.allowed(message.to):
            raise DeliveryFailedError("recipient is not allowed")
        last_error: Exception | None = None
        for attempt in range(1, self.send_retries + 1):
            try:
                await self.provider.send(
                    self.from_address, message.to, message.subject, message.body
                )
                logger.info("Email sent", attempt=attempt)
                return
            except Exception as e:
                last_error = e
                logger.warning(
                    "Email send attempt failed",
                    attempt=attempt,
                    retries=self.send_retries,
                    error=str(e),
                )
        raise DeliveryFailedError(f"error sending email: {last_error}") from last_error

    async def _run(self) -> None:
        logger.info("Delivery worker started")
        try:
            while not self.shutdown.is_set():
                message = self.pop()
                if message is None:
                    try:
                        await asyncio.wait_for(
                            self.shutdown.wait(), timeout=self.poll_interval
                        )
                    except asyncio.TimeoutError:
                        pass
                    continue
                try:
                    await self.deliver(message)
                except DeliveryFailedError as e:
                    logger.error("Email delivery failed", error=str(e))
        finally:
            logger.info("Delivery worker stopped", dropped=len(self))

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name="linkauth-delivery-worker")

    async def stop(self) -> None:
        """Signal shutdown and cancel the worker.

        Pending messages are dropped, and so is a message whose send is in
        progress.
        """
        self.shutdown.set()
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
