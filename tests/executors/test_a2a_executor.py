from __future__ import annotations

import asyncio
from typing import AsyncIterator

from agentforge.a2a import (
    A2AArtifactChunk,
    A2AContentChunk,
    A2ARequest,
    A2AStatusChunk,
    A2ATransportError,
)
from agentforge.agents import A2AContext, Agent, AgentStep, Chat
from agentforge.core import CancellationToken, RunTracker
from agentforge.executors import A2AExecutor, ExecutionEnv, ExecutorOptions, create_executor
from agentforge.store import InMemoryAgentStore

WS = "ws"


def run_async(coro):
    return asyncio.run(coro)


class FakeA2AClient:
    def __init__(self, chunks: list, *, fail_after: Exception | None = None, delay: float = 0.0) -> None:
        self._chunks = chunks
        self._fail_after = fail_after
        self._delay = delay
        self.requests: list[A2ARequest] = []

    async def execute(self, request: A2ARequest) -> AsyncIterator:
        self.requests.append(request)
        for chunk in self._chunks:
            if self._delay:
                await asyncio.sleep(self._delay)
            yield chunk
        if self._fail_after is not None:
            raise self._fail_after


def _env(client: FakeA2AClient) -> ExecutionEnv:
    return ExecutionEnv(
        workspace_id=WS,
        store=InMemoryAgentStore(),
        tracker=RunTracker(),
        a2a_client=client,
    )


def _agent() -> Agent:
    return Agent(
        name="Remote",
        source="a2a",
        instructions="http://remote.example/a2a",
        steps=[AgentStep(prompt="Ask about {{topic}}")],
    )


def test_factory_selects_a2a_executor():
    assert isinstance(create_executor(_env(FakeA2AClient([])), _agent()), A2AExecutor)


def test_stream_builds_assistant_message_and_context():
    client = FakeA2AClient(
        [
            A2AStatusChunk(task_id="t1", context_id="c1"),
            A2AStatusChunk(task_id="t1", context_id="c1", status="Thinking"),
            A2AContentChunk(text="Hello "),
            A2AContentChunk(text="world"),
            A2AContentChunk(text="", done=True),
        ]
    )
    env = _env(client)
    agent = _agent()
    chunks: list = []

    run = run_async(
        A2AExecutor(env, agent).run("manual", {"topic": "owls"}, ExecutorOptions(callback=chunks.append))
    )

    assert run.status == "success"
    assert run.prompt == "Ask about owls"
    assert [m.role for m in run.messages] == ["system", "user", "assistant"]
    assert run.messages[0].content == ""
    assistant = run.messages[2]
    assert assistant.content == "Hello world"
    assert assistant.status == "Thinking"
    assert assistant.a2a_context.current_task_id == "t1"
    assert run.a2a_context.current_task_id == "t1"
    assert run.to_json_dict()["a2aContext"]["currentTaskId"] == "t1"
    assert [c.text for c in chunks] == ["Hello ", "world", ""]

    request = client.requests[0]
    assert request.endpoint == "http://remote.example/a2a"
    assert request.prompt == "Ask about owls"
    assert env.store.get_agent_run(WS, agent.uuid, run.uuid).status == "success"


def test_finished_remote_task_clears_message_context_only():
    client = FakeA2AClient(
        [
            A2AStatusChunk(task_id="t1", context_id="c1"),
            A2AContentChunk(text="done"),
            A2AStatusChunk(),
        ]
    )

    run = run_async(A2AExecutor(_env(client), _agent()).run("manual", {"message": "hi"}))

    assert run.messages[-1].a2a_context is None
    assert run.a2a_context.current_task_id == "t1"


def test_artifacts_are_rendered_inline():
    client = FakeA2AClient([A2AArtifactChunk(name="notes.txt", content="line")])
    chunks: list = []

    run = run_async(
        A2AExecutor(_env(client), _agent()).run(
            "manual", {"message": "hi"}, ExecutorOptions(callback=chunks.append)
        )
    )

    expected = '\n\n<artifact title="notes.txt">\n```\nline\n```\n</artifact>\n\n'
    assert run.messages[-1].content == expected
    assert chunks == [A2AContentChunk(text=expected)]


def test_context_is_forwarded_to_resume_task():
    client = FakeA2AClient([])
    context = A2AContext(current_task_id="t9", current_context_id="c9")

    run_async(
        A2AExecutor(_env(client), _agent()).run(
            "manual", {"message": "more"}, ExecutorOptions(a2a_context=context)
        )
    )

    assert client.requests[0].context == context


def test_transport_failure_marks_error():
    client = FakeA2AClient(
        [A2AContentChunk(text="partial")],
        fail_after=A2ATransportError("connection refused"),
    )

    run = run_async(A2AExecutor(_env(client), _agent()).run("manual", {"message": "hi"}))

    assert run.status == "error"
    assert run.error == "connection refused"
    assert run.messages[-1].content.startswith("partial")


def test_pre_cancelled_run_makes_no_request():
    client = FakeA2AClient([A2AContentChunk(text="never")])
    token = CancellationToken()
    token.cancel()

    run = run_async(
        A2AExecutor(_env(client), _agent()).run("manual", {"message": "hi"}, ExecutorOptions(abort_signal=token))
    )

    assert run.status == "canceled"
    assert run.messages == []
    assert client.requests == []


def test_cancel_mid_stream_stops_iteration():
    async def scenario():
        client = FakeA2AClient(
            [A2AContentChunk(text="a"), A2AContentChunk(text="b")], delay=0.5
        )
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.7, token.cancel)
        run = await A2AExecutor(_env(client), _agent()).run(
            "manual", {"message": "hi"}, ExecutorOptions(abort_signal=token)
        )
        return run

    run = run_async(scenario())

    assert run.status == "canceled"
    assert run.messages[-1].content == "a"


def test_chat_response_is_the_assistant_message():
    client = FakeA2AClient([A2AContentChunk(text="reply")])
    chat = Chat()
    agent = _agent()

    run = run_async(A2AExecutor(_env(client), agent).run("manual", {"message": "hi"}, ExecutorOptions(chat=chat)))

    assert [m.role for m in chat.messages] == ["user", "assistant"]
    assert chat.messages[-1] is run.messages[-1]
    assert chat.messages[-1].agent_run_id == run.uuid
    assert chat.messages[-1].content == "reply"
