from __future__ import annotations

import asyncio

import pytest
from agent_session.cancellation import CancellationToken
from agent_session.errors import HookTimeoutError, ProviderAbortedError


@pytest.mark.asyncio
async def test_cancel_wakes_waiters_and_keeps_first_reason() -> None:
    token = CancellationToken()
    waiter = asyncio.ensure_future(token.wait())
    await asyncio.sleep(0)
    assert not waiter.done()

    token.cancel("first")
    token.cancel("second")
    await asyncio.wait_for(waiter, timeout=1)

    assert token.cancelled
    assert token.reason == "first"


def test_raise_if_cancelled() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()
    with pytest.raises(ProviderAbortedError, match="Operation cancelled"):
        token.raise_if_cancelled()


def test_hook_timeout_message() -> None:
    error = HookTimeoutError(30.0)

    assert str(error) == "Hook timed out after 30000ms"
    assert error.timeout == 30.0
