from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Helpers for LLM calls: backoff and cancellation racing.
"""

import asyncio
import random
from typing import TYPE_CHECKING, Awaitable, TypeVar

from .errors import LLMCancelledError

if TYPE_CHECKING:
    from ..core.cancellation import CancellationToken

ReturnT = TypeVar("ReturnT")


def backoff_delay(attempt: int, base_s: float, jitter_s: float) -> float:
    """
    Exponential backoff with jitter.
    attempt=0 => base, attempt=1 => 2*base, etc.
    """
    exp = base_s * (2 ** attempt)
    jitter = random.uniform(0.0, jitter_s)
    return exp + jitter


async def race_cancellation(
    awaitable: Awaitable[ReturnT], token: "CancellationToken | None"
) -> ReturnT:
    """
    Await `awaitable`, abandoning it as soon as `token` is cancelled.

    Raises:
        LLMCancelledError: When the token fires first (or already fired).
    """
    if token is None:
        return await awaitable
    work = asyncio.ensure_future(awaitable)
    if token.cancelled:
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise LLMCancelledError(token.reason or "Request cancelled")
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        waiter.cancel()
        raise
    if work in done:
        waiter.cancel()
        return work.result()
    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    raise LLMCancelledError(token.reason or "Request cancelled")
