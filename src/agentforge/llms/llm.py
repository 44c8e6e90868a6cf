from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.
"""

import asyncio
import logging
import socket
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from .config import LLMConfig
from .errors import (
    LLMCancelledError,
    LLMCapabilityError,
    LLMConfigurationError,
    LLMError,
    LLMInvalidResponseError,
    LLMRetryableError,
)
from .types import (
    LLMCapabilities,
    LLMOptions,
    LLMResponse,
    LLMStreamEvent,
    Message,
    StreamCompletedEvent,
)
from .utils import backoff_delay, race_cancellation

logger = logging.getLogger(__name__)

ReturnT = TypeVar("ReturnT")

_RETRY_PHRASES = (
    "rate limit",
    "rate_limit",
    "quota exceeded",
    "temporarily unavailable",
    "overloaded",
    "service unavailable",
    "try again",
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
    "connection error",
)


class LLM(ABC):
    """
    Base class for provider-agnostic LLM interactions.

    Public methods define one stable client contract for executors:
      - complete: one request, one response
      - generate: one request, a stream of events ending with exactly one
        `StreamCompletedEvent`

    Both honour `LLMOptions.abort_signal`: the provider call is raced against
    the token and `LLMCancelledError` is raised as soon as it fires.
    """

    def __init__(self, *, config: LLMConfig | None = None) -> None:
        self.config = config or LLMConfig.from_env()

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Stable provider id (e.g. 'litellm')."""

    @property
    @abstractmethod
    def capabilities(self) -> LLMCapabilities:
        """Capability flags for the concrete adapter."""

    @classmethod
    def from_env(cls) -> "LLM":
        """
        Build an LLM client from environment configuration.

        If called on the abstract base class, this delegates to the adapter
        factory (`AGENTFORGE_LLM_ADAPTER`).
        """
        if cls is LLM:
            from .factory import create_llm_from_env

            return create_llm_from_env()
        return cls(config=LLMConfig.from_env())

    async def complete(self, messages: list[Message], opts: LLMOptions) -> LLMResponse:
        """Run one non-streaming request."""
        self._validate(messages, opts)
        token = opts.abort_signal
        if token is not None and token.cancelled:
            raise LLMCancelledError(token.reason or "Request cancelled")
        return await race_cancellation(
            self._call_with_retries(lambda: self._complete_core(messages, opts)),
            token,
        )

    async def generate(
        self, messages: list[Message], opts: LLMOptions
    ) -> AsyncIterator[LLMStreamEvent]:
        """
        Stream one request.

        Raises:
            LLMCapabilityError: When the adapter cannot stream.
            LLMCancelledError: When the abort signal fires mid-stream.
        """
        if not self.capabilities.streaming:
            raise LLMCapabilityError(f"{self.provider_id} does not support streaming")
        self._validate(messages, opts)
        token = opts.abort_signal
        source = self._generate_core(messages, opts)
        completed = 0
        try:
            while True:
                try:
                    event = await race_cancellation(source.__anext__(), token)
                except StopAsyncIteration:
                    break
                except LLMError:
                    raise
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    raise self._classify_error(e) from e
                if isinstance(event, StreamCompletedEvent):
                    completed += 1
                yield event
        finally:
            await source.aclose()
        if completed != 1:
            raise LLMInvalidResponseError(
                "Stream ended without exactly one completion event"
            )

    @abstractmethod
    async def _complete_core(self, messages: list[Message], opts: LLMOptions) -> LLMResponse:
        """Provider-specific non-streaming call."""

    def _generate_core(
        self, messages: list[Message], opts: LLMOptions
    ) -> AsyncIterator[LLMStreamEvent]:
        """Provider-specific streaming call; adapters with `streaming=True` override."""
        raise LLMCapabilityError(f"{self.provider_id} does not support streaming")

    def _validate(self, messages: list[Message], opts: LLMOptions) -> None:
        if not messages:
            raise LLMConfigurationError("At least one message is required")
        if not (opts.model or "").strip():
            raise LLMConfigurationError("A model is required")
        if opts.tools and not self.capabilities.tool_calling:
            raise LLMCapabilityError(f"{self.provider_id} does not support tool calling")

    async def _call_with_retries(
        self,
        fn: Callable[[], Awaitable[ReturnT]],
        *,
        max_retries: int | None = None,
    ) -> ReturnT:
        """Execute a callable with retry-on-transient-error semantics."""
        retries = self.config.max_retries if max_retries is None else max_retries
        for attempt in range(retries + 1):
            try:
                return await fn()
            except (LLMCancelledError, asyncio.CancelledError):
                raise
            except Exception as e:
                classified = e if isinstance(e, LLMError) else self._classify_error(e)
                if isinstance(classified, LLMRetryableError) and attempt < retries:
                    delay = backoff_delay(
                        attempt, self.config.backoff_base_s, self.config.backoff_jitter_s
                    )
                    logger.warning(
                        "%s call failed (attempt %d), retrying in %.2fs: %s",
                        self.provider_id,
                        attempt + 1,
                        delay,
                        classified,
                    )
                    await asyncio.sleep(delay)
                    continue
                if classified is e:
                    raise
                raise classified from e
        raise LLMError(f"LLM call failed after {retries} retries")

    def _classify_error(self, e: Exception) -> LLMError:
        """Map arbitrary exceptions into retryable vs non-retryable LLM errors."""
        msg = str(e) or repr(e)
        status = None
        for attr in ("status_code", "status"):
            val = getattr(e, attr, None)
            if isinstance(val, int):
                status = val
                break

        if status is not None:
            if status in (408, 429) or 500 <= status < 600:
                return LLMRetryableError(msg)
            if 400 <= status < 500:
                return LLMError(msg)

        if isinstance(e, (asyncio.TimeoutError, TimeoutError, socket.timeout, ConnectionError)):
            return LLMRetryableError(msg)

        lowered = msg.lower()
        if any(phrase in lowered for phrase in _RETRY_PHRASES):
            return LLMRetryableError(msg)
        return LLMError(msg)
