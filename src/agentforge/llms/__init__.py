from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the public API for the agentforge LLM layer.
"""

from .config import LLMConfig
from .errors import (
    LLMCancelledError,
    LLMCapabilityError,
    LLMConfigurationError,
    LLMError,
    LLMInvalidResponseError,
    LLMRetryableError,
    LLMTimeoutError,
)
from .factory import (
    available_llm_adapters,
    create_llm,
    create_llm_from_env,
    register_llm_adapter,
)
from .llm import LLM
from .types import (
    JSONObject,
    JSONValue,
    LLMCapabilities,
    LLMOptions,
    LLMResponse,
    LLMStreamEvent,
    Message,
    StreamCompletedEvent,
    StreamTextDeltaEvent,
    StreamToolCallEvent,
    ToolCall,
    ToolDefinition,
    Usage,
)

__all__ = [
    "LLM",
    "LLMConfig",
    "LLMError",
    "LLMTimeoutError",
    "LLMRetryableError",
    "LLMInvalidResponseError",
    "LLMConfigurationError",
    "LLMCapabilityError",
    "LLMCancelledError",
    "create_llm",
    "create_llm_from_env",
    "register_llm_adapter",
    "available_llm_adapters",
    "JSONObject",
    "JSONValue",
    "LLMCapabilities",
    "LLMOptions",
    "LLMResponse",
    "LLMStreamEvent",
    "Message",
    "StreamCompletedEvent",
    "StreamTextDeltaEvent",
    "StreamToolCallEvent",
    "ToolCall",
    "ToolDefinition",
    "Usage",
]
