"""Domain entities for LinkAuth.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from linkauth.domain.entities.application import Application, AppView
from linkauth.domain.entities.email_message import QueuedMessage
from linkauth.domain.entities.session_token import (
    TOKEN_SEPARATOR,
    SessionToken,
    token_prefix,
)

__all__ = [
    "AppView",
    "Application",
    "QueuedMessage",
    "SessionToken",
    "TOKEN_SEPARATOR",
    "token_prefix",
]
