"""Queued email message entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QueuedMessage:
    """An email waiting for delivery.

    Attributes:
        to: Recipient email address.
        subject: Email subject line.
        body: Rendered HTML body.
    """

    to: str
    subject: str
    body: str
