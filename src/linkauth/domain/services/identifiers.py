"""Identifier and secret derivation.

Application ids and subject ids are truncated SHA-256 digests of email
addresses. The derivation is deterministic: it is the only way an application
or a user is located, there is no secondary index.

Secrets and token nonces come from the ``secrets`` module.
"""

import hashlib
import secrets

from linkauth.core.exceptions import InvalidInputError

# Sizes in bytes, hex encoding doubles them.
ID_SIZE = 8
SECRET_SIZE = 16
SECRET_HASH_SIZE = 16
NONCE_SIZE = 8


def derive_id(value: str, width: int = ID_SIZE) -> str:
    """Hash a value into a fixed width hex identifier.

    Args:
        value: Input to hash, usually an email address.
        width: Number of digest bytes to keep. Values below 1 or above the
            digest length keep the full digest.

    Returns:
        Hex string of ``2 * width`` characters.

    Raises:
        InvalidInputError: If value is empty. An empty input never maps to an
            identifier, so an unset field cannot collide with a real one.

    Examples:
        >>> derive_id("admin@x.com") == derive_id("admin@x.com")
        True
        >>> len(derive_id("admin@x.com", 4))
        8
    """
    if not value:
        raise InvalidInputError("cannot derive an identifier from an empty value")
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    if 0 < width < len(digest):
        digest = digest[:width]
    return digest.hex()


def random_secret(width: int = SECRET_SIZE) -> str:
    """Generate a cryptographically secure random hex string.

    Args:
        width: Number of random bytes.

    Returns:
        Hex string of ``2 * width`` characters.

    Raises:
        InvalidInputError: If width is lower than 1.
    """
    if width < 1:
        raise InvalidInputError("secret width must be at least 1 byte")
    return secrets.token_hex(width)


def hash_secret(secret: str) -> str:
    """Hash an admin secret for storage and lookup."""
    return derive_id(secret, SECRET_HASH_SIZE)
