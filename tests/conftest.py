"""Pytest configuration for all tests."""

from datetime import datetime, timedelta, timezone

import pytest

from linkauth.domain.services.application_registry import ApplicationRegistry
from linkauth.domain.services.magic_link_service import MagicLinkService
from linkauth.domain.services.token_lifecycle import TokenLifecycle
from linkauth.infrastructure.services.email.console_provider import ConsoleProvider
from linkauth.infrastructure.services.email.delivery_queue import DeliveryQueue
from linkauth.infrastructure.services.email.template_renderer import TemplateRenderer
from linkauth.infrastructure.storage.memory_storage import MemoryStorage


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def registry(storage: MemoryStorage, clock: FrozenClock) -> ApplicationRegistry:
    return ApplicationRegistry(storage, min_duration=60, default_users_quota=100, clock=clock)


@pytest.fixture
def tokens(
    storage: MemoryStorage, registry: ApplicationRegistry, clock: FrozenClock
) -> TokenLifecycle:
    return TokenLifecycle(storage, registry, clock=clock)


@pytest.fixture
def provider() -> ConsoleProvider:
    return ConsoleProvider()


@pytest.fixture
def queue(provider: ConsoleProvider) -> DeliveryQueue:
    return DeliveryQueue(provider, "noreply@linkauth.test", poll_interval=0.01)


@pytest.fixture
def service(
    registry: ApplicationRegistry, tokens: TokenLifecycle, queue: DeliveryQueue
) -> MagicLinkService:
    return MagicLinkService(registry, tokens, queue, TemplateRenderer(), default_duration=3600)
