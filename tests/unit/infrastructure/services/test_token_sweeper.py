"""Unit tests for TokenSweeper."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from linkauth.core.exceptions import StorageError
from linkauth.infrastructure.services.token_sweeper import TokenSweeper


@pytest.mark.asyncio
async def test_sweep_once_deletes_expired_tokens(tokens, registry, clock):
    _, secret = await registry.register("App", "admin@x.com", "https://x.com", 3600)
    issued = await tokens.issue_user_token(secret, "user@y.com", duration=60)
    clock.advance(120)

    sweeper = TokenSweeper(tokens, interval_seconds=60)

    assert await sweeper.sweep_once() == 1
    assert await tokens.validate_user_token(issued.token, secret) is False


@pytest.mark.asyncio
async def test_loop_sweeps_on_interval():
    tokens = AsyncMock()
    tokens.sweep_expired.return_value = 0
    sweeper = TokenSweeper(tokens, interval_seconds=0.01)

    sweeper.start()
    for _ in range(100):
        if tokens.sweep_expired.await_count >= 2:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert tokens.sweep_expired.await_count >= 2
    assert sweeper.is_running is False


@pytest.mark.asyncio
async def test_stop_is_prompt_with_long_interval():
    tokens = AsyncMock()
    sweeper = TokenSweeper(tokens, interval_seconds=3600)

    sweeper.start()
    await asyncio.sleep(0)
    await asyncio.wait_for(sweeper.stop(), timeout=1)

    tokens.sweep_expired.assert_not_awaited()


@pytest.mark.asyncio
async def test_storage_failure_does_not_stop_sweeps(tokens, storage, monkeypatch):
    failing = AsyncMock(side_effect=StorageError("down"))
    monkeypatch.setattr(storage, "delete_expired_tokens", failing)
    sweeper = TokenSweeper(tokens, interval_seconds=0.01)

    sweeper.start()
    for _ in range(100):
        if failing.await_count >= 2:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert failing.await_count >= 2


@pytest.mark.asyncio
async def test_start_twice_keeps_one_task():
    sweeper = TokenSweeper(AsyncMock(), interval_seconds=3600)
    sweeper.start()
    task = sweeper._task
    sweeper.start()

    assert sweeper._task is task
    await sweeper.stop()
