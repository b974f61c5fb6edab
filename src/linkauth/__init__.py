"""LinkAuth - Magic link authentication service.

Issues and validates short-lived, email-delivered credentials for the users
of registered applications and for the administrators that own them.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
