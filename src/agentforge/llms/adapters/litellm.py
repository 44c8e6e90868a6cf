from __future__ import annotations

"""
LiteLLM-backed adapter using the chat completions API.
"""

import json
from typing import Any, AsyncIterator

from ..errors import LLMConfigurationError, LLMInvalidResponseError
from ..llm import LLM
from ..types import (
    LLMCapabilities,
    LLMOptions,
    LLMResponse,
    LLMStreamEvent,
    Message,
    StreamCompletedEvent,
    StreamTextDeltaEvent,
    StreamToolCallEvent,
    ToolCall,
    Usage,
)


def _import_acompletion():
    try:
        from litellm import acompletion
    except ImportError as e:  # pragma: no cover - environment dependent
        raise LLMConfigurationError(
            "litellm is not installed. Install the dependency to use LiteLLMClient."
        ) from e
    return acompletion


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise LLMInvalidResponseError(f"Tool call arguments are not valid JSON: {raw!r}") from e
    if not isinstance(parsed, dict):
        raise LLMInvalidResponseError("Tool call arguments must be a JSON object")
    return parsed


class LiteLLMClient(LLM):
    """Concrete adapter using `litellm.acompletion`."""

    @property
    def provider_id(self) -> str:
        return "litellm"

    @property
    def capabilities(self) -> LLMCapabilities:
        return LLMCapabilities(chat=True, streaming=True, tool_calling=True)

    async def _complete_core(self, messages: list[Message], opts: LLMOptions) -> LLMResponse:
        acompletion = _import_acompletion()
        response = await acompletion(**self._payload(messages, opts, stream=False))
        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(
                id=call.id,
                tool_name=call.function.name,
                arguments=_parse_arguments(call.function.arguments),
            )
            for call in (getattr(message, "tool_calls", None) or [])
        ]
        usage = getattr(response, "usage", None)
        return LLMResponse(
            text=message.content or "",
            tool_calls=tool_calls,
            finish_reason=getattr(choice, "finish_reason", None),
            usage=Usage(
                input_tokens=getattr(usage, "prompt_tokens", None),
                output_tokens=getattr(usage, "completion_tokens", None),
                total_tokens=getattr(usage, "total_tokens", None),
            ),
            model=getattr(response, "model", None),
        )

    async def _generate_core(
        self, messages: list[Message], opts: LLMOptions
    ) -> AsyncIterator[LLMStreamEvent]:
        acompletion = _import_acompletion()
        stream = await acompletion(**self._payload(messages, opts, stream=True))
        text_parts: list[str] = []
        # index -> [id, name, argument fragments]
        pending: dict[int, list[Any]] = {}
        finish_reason: str | None = None
        model: str | None = None

        async for chunk in stream:
            model = getattr(chunk, "model", None) or model
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            finish_reason = getattr(choice, "finish_reason", None) or finish_reason
            delta = choice.delta
            content = getattr(delta, "content", None)
            if content:
                text_parts.append(content)
                yield StreamTextDeltaEvent(delta=content)
            for call in getattr(delta, "tool_calls", None) or []:
                slot = pending.setdefault(call.index or 0, [None, "", []])
                if call.id:
                    slot[0] = call.id
                if call.function is not None:
                    if call.function.name:
                        slot[1] = call.function.name
                    if call.function.arguments:
                        slot[2].append(call.function.arguments)

        tool_calls = [
            ToolCall(id=call_id, tool_name=name, arguments=_parse_arguments("".join(parts)))
            for _, (call_id, name, parts) in sorted(pending.items())
        ]
        for call in tool_calls:
            yield StreamToolCallEvent(call=call)
        yield StreamCompletedEvent(
            response=LLMResponse(
                text="".join(text_parts),
                tool_calls=tool_calls,
                finish_reason=finish_reason,
                model=model,
            )
        )

    def _payload(self, messages: list[Message], opts: LLMOptions, *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **dict(opts.model_opts),
            "model": opts.model,
            "messages": [self._message_to_dict(message) for message in messages],
            "stream": stream,
            "timeout": self.config.timeout_s,
        }
        if opts.tools:
            payload["tools"] = list(opts.tools)
        if self.config.api_base_url:
            payload.setdefault("api_base", self.config.api_base_url)
        if self.config.api_key:
            payload.setdefault("api_key", self.config.api_key)
        return payload

    @staticmethod
    def _message_to_dict(message: Message) -> dict[str, Any]:
        """Convert one normalized message into an OpenAI-style chat message."""
        out: dict[str, Any] = {"role": message.role, "content": message.content}
        if message.name:
            out["name"] = message.name
        if message.role == "tool":
            out["tool_call_id"] = message.tool_call_id
        if message.tool_calls:
            out["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.tool_name,
                        "arguments": json.dumps(call.arguments, ensure_ascii=True, default=str),
                    },
                }
                for call in message.tool_calls
            ]
        return out
