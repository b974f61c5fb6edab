"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- Storage backends (in-memory, SQLAlchemy, Redis)
- Mail transports (SMTP through aiosmtplib, console stub)
- Email templating and the delivery queue
- Background tasks and runtime wiring

The infrastructure layer implements the contracts the domain layer uses.
"""
