"""Mail transports, templates and the delivery queue."""

from linkauth.infrastructure.services.email.console_provider import ConsoleProvider
from linkauth.infrastructure.services.email.delivery_queue import DeliveryQueue
from linkauth.infrastructure.services.email.disposable_domains import (
    load_disposable_domains,
)
from linkauth.infrastructure.services.email.email_provider import EmailProvider
from linkauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from linkauth.infrastructure.services.email.template_renderer import TemplateRenderer

__all__ = [
    "ConsoleProvider",
    "DeliveryQueue",
    "EmailProvider",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
    "load_disposable_domains",
]
