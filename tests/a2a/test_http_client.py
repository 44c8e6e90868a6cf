from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from agentforge.a2a import (
    A2AArtifactChunk,
    A2AContentChunk,
    A2AProtocolError,
    A2ARequest,
    A2AStatusChunk,
    A2ATransportError,
    HttpA2AClient,
)
from agentforge.agents import A2AContext
from agentforge.core import CancellationToken


def run_async(coro):
    return asyncio.run(coro)


def _sse(*events: dict) -> bytes:
    return "".join(
        f"data: {json.dumps({'jsonrpc': '2.0', 'id': '1', 'result': event})}\n\n"
        for event in events
    ).encode()


def _stream_response(content: bytes = b"") -> httpx.Response:
    return httpx.Response(200, content=content, headers={"content-type": "text/event-stream"})


def _client(handler) -> HttpA2AClient:
    return HttpA2AClient(http=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


async def _collect(client: HttpA2AClient, request: A2ARequest) -> list:
    return [chunk async for chunk in client.execute(request)]


def _agent_message(text: str, **ids: str) -> dict:
    return {
        "kind": "message",
        "messageId": f"m-{text}",
        "role": "agent",
        "parts": [{"kind": "text", "text": text}],
        **ids,
    }


TASK_EVENTS = (
    {"kind": "task", "id": "t1", "contextId": "c1", "status": {"state": "submitted"}},
    {
        "kind": "status-update",
        "taskId": "t1",
        "contextId": "c1",
        "final": False,
        "status": {"state": "working", "message": _agent_message("Searching...")},
    },
    {
        "kind": "artifact-update",
        "taskId": "t1",
        "contextId": "c1",
        "artifact": {"artifactId": "a1", "name": "report.md", "parts": [{"kind": "text", "text": "# Re"}]},
    },
    {
        "kind": "artifact-update",
        "taskId": "t1",
        "contextId": "c1",
        "artifact": {"artifactId": "a1", "parts": [{"kind": "text", "text": "port"}]},
        "lastChunk": True,
    },
    {
        "kind": "status-update",
        "taskId": "t1",
        "contextId": "c1",
        "final": True,
        "status": {"state": "completed", "message": _agent_message("All done")},
    },
)


def test_stream_maps_events_to_chunks():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers["accept"]
        return _stream_response(_sse(*TASK_EVENTS))

    chunks = run_async(
        _collect(_client(handler), A2ARequest(endpoint="http://remote/a2a", prompt="hello"))
    )

    assert seen["accept"] == "text/event-stream"
    assert seen["body"]["method"] == "message/stream"
    assert seen["body"]["params"]["message"]["role"] == "user"
    assert seen["body"]["params"]["message"]["parts"] == [{"kind": "text", "text": "hello"}]
    assert "taskId" not in seen["body"]["params"]["message"]

    assert chunks == [
        A2AStatusChunk(task_id="t1", context_id="c1"),
        A2AStatusChunk(task_id="t1", context_id="c1", status="Searching..."),
        A2AArtifactChunk(name="report.md", content="# Report"),
        A2AContentChunk(text="All done"),
        A2AStatusChunk(),
        A2AContentChunk(text="", done=True),
    ]


def test_input_required_keeps_remote_task_open():
    event = {
        "kind": "status-update",
        "taskId": "t1",
        "contextId": "c1",
        "final": True,
        "status": {"state": "input-required", "message": _agent_message("Which city?")},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return _stream_response(_sse(event))

    chunks = run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))

    assert chunks == [
        A2AStatusChunk(task_id="t1", context_id="c1"),
        A2AContentChunk(text="Which city?"),
        A2AContentChunk(text="", done=True),
    ]


def test_file_artifact_parts_are_named():
    event = {
        "kind": "artifact-update",
        "taskId": "t1",
        "contextId": "c1",
        "lastChunk": True,
        "artifact": {
            "artifactId": "a9",
            "parts": [{"kind": "file", "file": {"name": "chart.png", "uri": "http://r/chart.png"}}],
        },
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return _stream_response(_sse(event))

    chunks = run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))

    assert chunks[0] == A2AArtifactChunk(name="Artifact a9", content="File: chart.png")


def test_context_is_sent_to_resume_remote_task():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["message"] = json.loads(request.content)["params"]["message"]
        return _stream_response()

    request = A2ARequest(
        endpoint="http://remote/a2a",
        prompt="continue",
        context=A2AContext(current_task_id="t1", current_context_id="c1"),
    )
    chunks = run_async(_collect(_client(handler), request))

    assert seen["message"]["taskId"] == "t1"
    assert seen["message"]["contextId"] == "c1"
    assert chunks == [A2AContentChunk(text="", done=True)]


def test_message_events_switch_task_ids():
    event = _agent_message("hi", taskId="t2", contextId="c2")

    def handler(request: httpx.Request) -> httpx.Response:
        return _stream_response(_sse(event))

    chunks = run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))

    assert chunks[0] == A2AStatusChunk(task_id="t2", context_id="c2")
    assert chunks[1].text.startswith("Received message response: ")
    assert json.loads(chunks[1].text.removeprefix("Received message response: "))["taskId"] == "t2"


def test_json_rpc_error_raises_protocol_error():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.dumps(
            {"jsonrpc": "2.0", "id": "1", "error": {"code": -32600, "message": "Invalid Request"}}
        )
        return _stream_response(f"data: {body}\n\n".encode())

    with pytest.raises(A2AProtocolError, match="Invalid Request"):
        run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))


def test_malformed_event_raises_protocol_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return _stream_response(b"data: {not json\n\n")

    with pytest.raises(A2AProtocolError):
        run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))


def test_http_errors_raise_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    with pytest.raises(A2ATransportError):
        run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))


def test_non_sse_response_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": "1", "result": {}})

    with pytest.raises(A2ATransportError):
        run_async(_collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p")))


def test_cancelled_request_stops_streaming():
    def handler(request: httpx.Request) -> httpx.Response:
        return _stream_response(_sse(*TASK_EVENTS))

    token = CancellationToken()
    token.cancel()
    chunks = run_async(
        _collect(_client(handler), A2ARequest(endpoint="http://r", prompt="p", abort_signal=token))
    )
    assert chunks == []


AGENT_CARD = {
    "name": "Remote",
    "description": "Does things",
    "url": "http://remote/a2a",
    "version": "1.0.0",
    "capabilities": {"streaming": True},
    "defaultInputModes": ["text"],
    "defaultOutputModes": ["text"],
    "skills": [],
}


def test_fetch_agent_card():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/.well-known/agent.json"
        return httpx.Response(200, json=AGENT_CARD)

    agent = run_async(_client(handler).fetch_agent_card("http://remote/"))

    assert agent.source == "a2a"
    assert agent.name == "Remote"
    assert agent.description == "Does things"
    assert agent.instructions == "http://remote/"
    assert len(agent.steps) == 1


def test_fetch_agent_card_failure_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    assert run_async(_client(handler).fetch_agent_card("http://remote")) is None


def test_incomplete_agent_card_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"name": "Remote"})

    assert run_async(_client(handler).fetch_agent_card("http://remote")) is None
