"""Infrastructure services: mail delivery and background tasks."""
