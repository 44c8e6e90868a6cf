from __future__ import annotations

import asyncio

import pytest

from agentforge.agents import AgentCancelledError
from agentforge.core import CancellationToken
from agentforge.core.cancellation import DEFAULT_CANCEL_REASON


def run_async(coro):
    return asyncio.run(coro)


def test_cancel_is_idempotent():
    token = CancellationToken()

    assert token.cancel("stop") is True
    assert token.cancel("again") is False
    assert token.reason == "stop"


def test_raise_if_cancelled():
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()
    with pytest.raises(AgentCancelledError, match=DEFAULT_CANCEL_REASON):
        token.raise_if_cancelled()


def test_wait_returns_after_cancel():
    async def scenario():
        token = CancellationToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()
        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)
        return waiter.done()

    assert run_async(scenario()) is True


def test_callbacks_fire_once_and_can_be_removed():
    token = CancellationToken()
    fired: list[str] = []
    token.add_callback(lambda: fired.append("a"))
    remove = token.add_callback(lambda: fired.append("b"))
    remove()

    token.cancel()
    token.cancel()
    token.add_callback(lambda: fired.append("late"))

    assert fired == ["a", "late"]
