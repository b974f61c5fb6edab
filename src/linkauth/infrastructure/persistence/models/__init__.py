"""SQLAlchemy models for LinkAuth.

All models inherit from the Base class defined in database.py and are created
when the SQL storage backend connects.
"""

from linkauth.infrastructure.persistence.models.application import (
    AppSecretModel,
    ApplicationModel,
)
from linkauth.infrastructure.persistence.models.session_token import SessionTokenModel

__all__ = [
    "AppSecretModel",
    "ApplicationModel",
    "SessionTokenModel",
]
