from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines common provider-agnostic types used in LLM interactions.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, NotRequired, TypeAlias, TypedDict

if TYPE_CHECKING:
    from ..core.cancellation import CancellationToken


JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONSchema: TypeAlias = dict[str, JSONValue]

Role = Literal["user", "assistant", "system", "tool"]


class ToolFunctionSpec(TypedDict):
    name: str
    parameters: JSONSchema
    description: NotRequired[str]


class ToolDefinition(TypedDict):
    type: Literal["function"]
    function: ToolFunctionSpec


@dataclass(frozen=True, slots=True)
class ToolCall:
    """
    Data-only representation of a model-returned tool call.
    The executor decides if/when/how to execute this.
    """

    id: str | None = None
    tool_name: str = ""
    arguments: JSONObject = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Message:
    """
    One provider-facing chat message.

    `tool_calls` is set on assistant messages that requested tools and
    `tool_call_id` on the `tool` messages answering them.
    """

    role: Role
    content: str
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Usage:
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class LLMResponse:
    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None
    usage: Usage = field(default_factory=Usage)
    raw: dict[str, Any] = field(default_factory=dict)
    model: str | None = None


@dataclass(frozen=True, slots=True)
class LLMCapabilities:
    chat: bool = True
    streaming: bool = False
    tool_calling: bool = False


@dataclass(frozen=True, slots=True)
class LLMOptions:
    """
    Per-call options.

    Attributes:
        model: Provider model id.
        streaming: Whether the caller intends to stream.
        abort_signal: Cancellation token raced against the provider call.
        tools: Tool definitions exposed to the model.
        model_opts: Extra provider parameters (temperature, max_tokens...).
    """

    model: str
    streaming: bool = True
    abort_signal: "CancellationToken | None" = None
    tools: list[ToolDefinition] | None = None
    model_opts: JSONObject = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StreamTextDeltaEvent:
    type: Literal["text_delta"] = "text_delta"
    delta: str = ""


@dataclass(frozen=True, slots=True)
class StreamToolCallEvent:
    call: ToolCall
    type: Literal["tool_call"] = "tool_call"


@dataclass(frozen=True, slots=True)
class StreamCompletedEvent:
    response: LLMResponse
    type: Literal["completed"] = "completed"


LLMStreamEvent: TypeAlias = StreamTextDeltaEvent | StreamToolCallEvent | StreamCompletedEvent
