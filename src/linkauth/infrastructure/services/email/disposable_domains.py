"""Disposable email domain list loader.

The list is loaded once at startup, from an ``http(s)://`` URL or a local
file with one domain per line. Lines that are not a lowercase domain name are
skipped. A list that fails to load is empty, which allows every domain.
"""

import re
from pathlib import Path

import httpx

from linkauth.core.logging import get_logger

logger = get_logger(__name__)

DOMAIN_PATTERN = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$")
LOAD_TIMEOUT = 5.0  # seconds


def parse_domains(content: str) -> list[str]:
    """Keep the lines of content that are valid domain names."""
    domains = []
    for line in content.splitlines():
        domain = line.strip()
        if DOMAIN_PATTERN.match(domain):
            domains.append(domain)
    return domains


async def fetch_remote_domains(url: str, timeout: float = LOAD_TIMEOUT) -> list[str]:
    """Download a domain list.

    Raises:
        httpx.HTTPError: If the request fails or the status is not 2xx.
    """
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        response = await client.get(url)
        response.raise_for_status()
        return parse_domains(response.text)


async def load_disposable_domains(
    source: str | None, timeout: float = LOAD_TIMEOUT
) -> list[str]:
    """Load the disallowed domain list from a URL or a file.

    Args:
        source: URL or path of the list. None or empty loads nothing.
        timeout: Request timeout for remote sources, in seconds.

    Returns:
        The domains, empty when the source is unset or cannot be read.
    """
    if not source:
        return []
    try:
        if source.startswith(("http://", "https://")):
            domains = await fetch_remote_domains(source, timeout)
        else:
            domains = parse_domains(Path(source).read_text(encoding="utf-8"))
    except (httpx.HTTPError, OSError) as e:
        logger.warning("Failed to load disposable domains", source=source, error=str(e))
        return []
    logger.info("Disposable domains loaded", source=source, count=len(domains))
    return domains
