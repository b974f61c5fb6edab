"""Unit tests for the command-line interface."""

import asyncio
import re

import pytest
from click.testing import CliRunner

from linkauth.cli import cli
from linkauth.core.config import get_settings
from linkauth.core.exceptions import AppNotFoundError, StorageError
from linkauth.domain.services.identifiers import derive_id
from linkauth.infrastructure.runtime import Runtime


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("LINKAUTH_STORAGE_BACKEND", "sql")
    monkeypatch.setenv("LINKAUTH_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setenv("LINKAUTH_EMAIL_PROVIDER", "console")
    monkeypatch.setenv("LINKAUTH_ENVIRONMENT", "testing")
    monkeypatch.setattr("linkauth.cli.configure_logging", lambda settings: None)
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


@pytest.fixture
def sent(monkeypatch):
    """Capture every email sent by the console provider."""
    messages = []

    async def capture(self, from_address, to_address, subject, body):
        messages.append((to_address, subject, body))

    monkeypatch.setattr(
        "linkauth.infrastructure.services.email.console_provider.ConsoleProvider.send", capture
    )
    return messages


def read_code(body: str, label: str) -> str:
    return re.search(label + r": <code>([^<]+)</code>", body).group(1)


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "LinkAuth" in result.output


def test_full_flow(runner, sent):
    result = runner.invoke(
        cli,
        ["register-app", "--name", "App", "--email", "admin@x.com", "--redirect-url", "https://x.com/cb"],
    )
    assert result.exit_code == 0, result.output
    assert "App registered:" in result.output
    secret = read_code(sent[-1][2], "Secret")

    result = runner.invoke(cli, ["request-link", "--secret", secret, "--email", "user@y.com"])
    assert result.exit_code == 0, result.output
    assert "Magic link sent to user@y.com" in result.output
    user_token = re.search(r"token=([0-9a-f-]+)", sent[-1][2]).group(1)

    result = runner.invoke(cli, ["validate-token", "--secret", secret, "--token", user_token])
    assert result.exit_code == 0
    assert "valid" in result.output

    result = runner.invoke(cli, ["request-link", "--secret", secret, "--email", "admin@x.com"])
    assert result.exit_code == 0, result.output
    admin_token = re.search(r"token=([0-9a-f-]+)", sent[-1][2]).group(1)

    result = runner.invoke(cli, ["app-info", "--secret", secret, "--token", admin_token])
    assert result.exit_code == 0, result.output
    assert "Active users: 2" in result.output

    result = runner.invoke(
        cli, ["update-app", "--secret", secret, "--token", admin_token, "--name", "Renamed"]
    )
    assert result.exit_code == 0, result.output
    assert "Renamed" in result.output

    result = runner.invoke(cli, ["delete-app", "--secret", secret, "--token", admin_token, "--yes"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ["validate-token", "--secret", secret, "--token", user_token])
    assert result.exit_code == 1


def test_register_app_invalid_input(runner, sent):
    result = runner.invoke(
        cli,
        ["register-app", "--name", "App", "--email", "admin@x.com", "--redirect-url", "https://x.com", "--duration", "10"],
    )
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert sent == []


def test_request_link_unknown_secret(runner, sent):
    result = runner.invoke(cli, ["request-link", "--secret", "nope", "--email", "user@y.com"])
    assert result.exit_code == 1
    assert "app not found" in result.output


def test_app_info_rejects_bad_token(runner):
    result = runner.invoke(cli, ["app-info", "--secret", "nope", "--token", "a-b-c"])
    assert result.exit_code == 1
    assert "invalid token or secret" in result.output


def test_sweep(runner):
    result = runner.invoke(cli, ["sweep"])
    assert result.exit_code == 0
    assert "Deleted 0 expired token(s)." in result.output


def fail_sends(monkeypatch):
    async def refuse(self, from_address, to_address, subject, body):
        raise OSError("connection refused")

    monkeypatch.setattr(
        "linkauth.infrastructure.services.email.console_provider.ConsoleProvider.send", refuse
    )


async def stored_state(app_id: str) -> tuple[bool, int]:
    """Return whether the app exists and how many tokens it has."""
    runtime = Runtime(get_settings())
    await runtime.open()
    try:
        try:
            await runtime.storage.get_app_by_id(app_id)
            exists = True
        except AppNotFoundError:
            exists = False
        return exists, await runtime.storage.count_tokens_by_prefix(f"{app_id}-")
    finally:
        await runtime.close()


def test_register_app_send_failure_leaves_no_app(runner, monkeypatch):
    fail_sends(monkeypatch)

    result = runner.invoke(
        cli,
        ["register-app", "--name", "App", "--email", "admin@x.com", "--redirect-url", "https://x.com/cb"],
    )

    assert result.exit_code == 1
    assert "error sending email" in result.output
    assert asyncio.run(stored_state(derive_id("admin@x.com"))) == (False, 0)


def test_request_link_send_failure_leaves_no_token(runner, sent, monkeypatch):
    result = runner.invoke(
        cli,
        ["register-app", "--name", "App", "--email", "admin@x.com", "--redirect-url", "https://x.com/cb"],
    )
    assert result.exit_code == 0, result.output
    secret = read_code(sent[-1][2], "Secret")
    fail_sends(monkeypatch)

    result = runner.invoke(cli, ["request-link", "--secret", secret, "--email", "user@y.com"])

    assert result.exit_code == 1
    assert "error sending email" in result.output
    assert asyncio.run(stored_state(derive_id("admin@x.com"))) == (True, 0)


def test_runtime_closed_when_open_fails(runner, monkeypatch):
    closed = []

    async def broken_open(self):
        raise StorageError("database unavailable")

    async def record_close(self):
        closed.append(True)

    monkeypatch.setattr(Runtime, "open", broken_open)
    monkeypatch.setattr(Runtime, "close", record_close)

    result = runner.invoke(cli, ["app-info", "--secret", "s", "--token", "a-b-c"])

    assert result.exit_code == 1
    assert "database unavailable" in result.output
    assert closed == [True]
