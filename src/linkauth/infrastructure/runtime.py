"""Runtime wiring.

Builds every component from Settings and owns the shutdown event shared by
the delivery worker and the token sweeper.
"""

import asyncio
import signal

from linkauth.core.config import Settings
from linkauth.core.logging import get_logger
from linkauth.domain.services.application_registry import ApplicationRegistry
from linkauth.domain.services.magic_link_service import MagicLinkService
from linkauth.domain.services.token_lifecycle import TokenLifecycle
from linkauth.infrastructure.services.email.console_provider import ConsoleProvider
from linkauth.infrastructure.services.email.delivery_queue import DeliveryQueue
from linkauth.infrastructure.services.email.disposable_domains import (
    load_disposable_domains,
)
from linkauth.infrastructure.services.email.email_provider import EmailProvider
from linkauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from linkauth.infrastructure.services.email.template_renderer import TemplateRenderer
from linkauth.infrastructure.services.token_sweeper import TokenSweeper
from linkauth.infrastructure.storage.base import StorageBackend
from linkauth.infrastructure.storage.factory import create_storage

logger = get_logger(__name__)


def create_email_provider(settings: Settings) -> EmailProvider:
    """Create the mail transport named by settings.email_provider."""
    if settings.email_provider == "smtp":
        return SMTPProvider(
            SMTPSettings(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
                use_ssl=settings.smtp_use_ssl,
                from_name=settings.email_from_name,
                timeout=settings.smtp_timeout,
            )
        )
    return ConsoleProvider()


class Runtime:
    """Container for the storage, services and background tasks."""

    def __init__(
        self,
        settings: Settings,
        storage: StorageBackend | None = None,
        provider: EmailProvider | None = None,
    ) -> None:
        """Build the components.

        Args:
            settings: Application settings.
            storage: Storage backend, created from settings when None.
            provider: Mail transport, created from settings when None.
        """
        self.settings = settings
        self.shutdown = asyncio.Event()
        self.storage = storage or create_storage(settings)
        self.provider = provider or create_email_provider(settings)

        self.registry = ApplicationRegistry(
            self.storage,
            min_duration=settings.min_session_duration,
            default_users_quota=settings.default_users_quota,
        )
        self.tokens = TokenLifecycle(self.storage, self.registry)
        self.queue = DeliveryQueue(
            self.provider,
            settings.email_from_address,
            send_retries=settings.send_retries,
            poll_interval=settings.queue_poll_interval_seconds,
            shutdown=self.shutdown,
        )
        self.renderer = TemplateRenderer.from_paths(
            settings.user_email_template_path,
            settings.app_email_template_path,
        )
        self.service = MagicLinkService(
            self.registry,
            self.tokens,
            self.queue,
            self.renderer,
            default_duration=settings.default_session_duration,
        )
        self.sweeper = TokenSweeper(
            self.tokens,
            interval_seconds=settings.sweep_interval_seconds,
            shutdown=self.shutdown,
        )

    async def open(self) -> None:
        """Connect storage and load the disposable domain list."""
        await self.storage.connect()
        domains = await load_disposable_domains(self.settings.disposable_domains_source)
        self.queue.set_disallowed_domains(domains)

    async def close(self) -> None:
        await self.storage.close()

    async def start(self) -> None:
        """Open the runtime and start the background tasks."""
        await self.open()
        self.queue.start()
        self.sweeper.start()
        logger.info(
            "Runtime started",
            storage_backend=self.settings.storage_backend,
            email_provider=self.settings.email_provider,
        )

    async def stop(self) -> None:
        """Stop the background tasks and close storage.

        Queued emails are dropped.
        """
        self.shutdown.set()
        await self.queue.stop()
        await self.sweeper.stop()
        await self.close()
        logger.info("Runtime stopped")

    async def serve(self) -> None:
        """Run the background tasks until SIGINT or SIGTERM."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown.set)
        await self.start()
        try:
            await self.shutdown.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.stop()
