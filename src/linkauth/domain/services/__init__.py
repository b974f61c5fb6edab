"""Domain services: identifiers, application registry, token lifecycle."""

from linkauth.domain.services.application_registry import ApplicationRegistry
from linkauth.domain.services.identifiers import derive_id, hash_secret, random_secret
from linkauth.domain.services.magic_link_service import MagicLinkService
from linkauth.domain.services.token_lifecycle import (
    IssuedToken,
    TokenLifecycle,
    build_magic_link,
)

__all__ = [
    "ApplicationRegistry",
    "IssuedToken",
    "MagicLinkService",
    "TokenLifecycle",
    "build_magic_link",
    "derive_id",
    "hash_secret",
    "random_secret",
]
