from __future__ import annotations

import pytest

from agentforge.llms import LLMConfig, LLMInvalidResponseError, LLMOptions, Message, ToolCall
from agentforge.llms.adapters.litellm import LiteLLMClient, _parse_arguments


def _client(**overrides) -> LiteLLMClient:
    config = LLMConfig(
        default_model="demo",
        timeout_s=12,
        max_retries=0,
        backoff_base_s=0.0,
        backoff_jitter_s=0.0,
        **overrides,
    )
    return LiteLLMClient(config=config)


def test_payload_merges_model_opts_and_tools():
    tools = [{"type": "function", "function": {"name": "add", "parameters": {}}}]
    payload = _client(api_base_url="http://localhost:4000")._payload(
        [Message(role="user", content="hi")],
        LLMOptions(model="gpt-x", tools=tools, model_opts={"temperature": 0.1}),
        stream=True,
    )

    assert payload["model"] == "gpt-x"
    assert payload["stream"] is True
    assert payload["temperature"] == 0.1
    assert payload["tools"] == tools
    assert payload["timeout"] == 12
    assert payload["api_base"] == "http://localhost:4000"
    assert payload["messages"] == [{"role": "user", "content": "hi"}]


def test_tool_turns_are_openai_shaped():
    assistant = LiteLLMClient._message_to_dict(
        Message(
            role="assistant",
            content="",
            tool_calls=[ToolCall(id="c1", tool_name="add", arguments={"a": 1})],
        )
    )
    tool = LiteLLMClient._message_to_dict(
        Message(role="tool", content="3", name="add", tool_call_id="c1")
    )

    assert assistant["tool_calls"][0]["function"] == {"name": "add", "arguments": '{"a": 1}'}
    assert tool == {"role": "tool", "content": "3", "name": "add", "tool_call_id": "c1"}


def test_parse_arguments():
    assert _parse_arguments('{"a": 1}') == {"a": 1}
    assert _parse_arguments("") == {}
    assert _parse_arguments({"b": 2}) == {"b": 2}
    with pytest.raises(LLMInvalidResponseError):
        _parse_arguments("[1, 2]")
    with pytest.raises(LLMInvalidResponseError):
        _parse_arguments("{nope")
