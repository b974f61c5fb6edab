from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from linkauth.infrastructure.services.email.disposable_domains import (
    load_disposable_domains,
    parse_domains,
)

DOMAIN_LIST = "mailinator.com\n# comment\nTrash.COM\n10minute-mail.org\r\nnot a domain\n\nyopmail.fr\n"


def test_parse_domains_keeps_valid_lines():
    assert parse_domains(DOMAIN_LIST) == ["mailinator.com", "10minute-mail.org", "yopmail.fr"]


@pytest.mark.asyncio
async def test_no_source_loads_nothing():
    assert await load_disposable_domains(None) == []
    assert await load_disposable_domains("") == []


@pytest.mark.asyncio
async def test_load_from_file(tmp_path):
    path = tmp_path / "domains.txt"
    path.write_text(DOMAIN_LIST, encoding="utf-8")

    assert await load_disposable_domains(str(path)) == [
        "mailinator.com",
        "10minute-mail.org",
        "yopmail.fr",
    ]


@pytest.mark.asyncio
async def test_missing_file_loads_nothing(tmp_path):
    assert await load_disposable_domains(str(tmp_path / "missing.txt")) == []


@pytest.mark.asyncio
async def test_load_from_url():
    response = MagicMock()
    response.text = DOMAIN_LIST
    response.raise_for_status = MagicMock()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_client_class.return_value.__aenter__.return_value
        mock_client.get = AsyncMock(return_value=response)

        domains = await load_disposable_domains("https://example.com/domains.txt")

        mock_client_class.assert_called_once_with(timeout=5.0, follow_redirects=True)
        mock_client.get.assert_awaited_once_with("https://example.com/domains.txt")
        assert domains == ["mailinator.com", "10minute-mail.org", "yopmail.fr"]


@pytest.mark.asyncio
async def test_url_failure_loads_nothing():
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_client_class.return_value.__aenter__.return_value
        mock_client.get = AsyncMock(side_effect=httpx.ConnectTimeout("timed out"))

        assert await load_disposable_domains("https://example.com/domains.txt") == []
