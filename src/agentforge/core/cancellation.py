"""
Cooperative cancellation for agent runs.

A `CancellationToken` is the abort handle of one run. It is registered with
the run tracker, shared with nested sub-agent runs and passed to every LLM,
tool, docrepo and A2A call the run awaits.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from ..agents.errors import AgentCancelledError

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Run was cancelled"


class CancellationToken:
    """
    One-shot cancellation signal.

    Cancelling is idempotent and synchronous, so it can be called from the
    tracker without awaiting. Awaiting code observes it either by polling
    `cancelled`/`raise_if_cancelled()` at safe boundaries or by racing work
    against `wait()`.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """
        Signal cancellation.

        Returns:
            `True` on the first call, `False` when already cancelled.
        """
        if self._event.is_set():
            return False
        self._reason = reason or DEFAULT_CANCEL_REASON
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AgentCancelledError(self._reason or DEFAULT_CANCEL_REASON)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run `callback` on cancellation; immediately when already cancelled.

        Returns:
            Callable that unregisters the callback.
        """
        if self._event.is_set():
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove
