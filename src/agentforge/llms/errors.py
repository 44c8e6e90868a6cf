from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines custom exceptions for error handling in the llms package.
"""


class LLMError(Exception):
    """Base exception for all agentforge LLM-related errors."""

    pass


class LLMTimeoutError(LLMError):
    pass


class LLMRetryableError(LLMError):
    """
    Transient failures: rate limits, timeouts, provider issues, etc.
    These errors may be retried with backoff.
    """

    pass


class LLMInvalidResponseError(LLMError):
    """The provider returned a response that could not be parsed."""

    pass


class LLMConfigurationError(LLMError):
    pass


class LLMCapabilityError(LLMError):
    """
    Raised when the selected adapter does not support a requested capability
    (e.g. streaming or tool calling).
    """

    pass


class LLMCancelledError(LLMError):
    """Raised when an in-flight request is cancelled through its abort signal."""

    pass
