"""
A2A client speaking JSON-RPC 2.0 `message/stream` over HTTP with SSE responses.

Wire shapes come from `a2a.types` (the a2a-sdk models); the SSE framing is
decoded by httpx-sse.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

import httpx
from a2a.types import (
    AgentCard,
    FilePart,
    JSONRPCErrorResponse,
    Message,
    MessageSendParams,
    Part,
    Role,
    SendStreamingMessageRequest,
    SendStreamingMessageResponse,
    Task,
    TaskArtifactUpdateEvent,
    TaskState,
    TaskStatusUpdateEvent,
    TextPart,
)
from httpx_sse import aconnect_sse
from pydantic import ValidationError

from ..agents.types import Agent, AgentStep
from .errors import A2AProtocolError, A2ATransportError
from .types import A2AArtifactChunk, A2AChunk, A2AContentChunk, A2ARequest, A2AStatusChunk

logger = logging.getLogger(__name__)

AGENT_CARD_PATH = "/.well-known/agent.json"

StreamEvent = Task | Message | TaskStatusUpdateEvent | TaskArtifactUpdateEvent


@dataclass(slots=True)
class _Artifact:
    name: str
    content: str = ""


@dataclass(slots=True)
class _StreamState:
    task_id: str | None
    context_id: str | None
    artifacts: dict[str, _Artifact] = field(default_factory=dict)


class HttpA2AClient:
    """
    A2A transport on top of `httpx.AsyncClient`.

    Pass `http` to share a client (or inject a `MockTransport` in tests);
    otherwise one client is created per call.
    """

    def __init__(self, *, http: httpx.AsyncClient | None = None, timeout: float = 60.0) -> None:
        self._http = http
        self._timeout = timeout

    async def fetch_agent_card(self, base_url: str) -> Agent | None:
        """Import a remote agent definition from its agent card."""
        url = base_url.rstrip("/") + AGENT_CARD_PATH
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                card = AgentCard.model_validate(response.json())
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.error("Error fetching agent card from %s: %s", url, e)
            return None
        return Agent(
            source="a2a",
            name=card.name,
            description=card.description,
            instructions=base_url,
            steps=[AgentStep(prompt="", description="", tools=[], agents=[], docrepo=None)],
        )

    async def execute(self, request: A2ARequest) -> AsyncIterator[A2AChunk]:
        message_id = str(uuid.uuid4())
        context = request.context
        state = _StreamState(
            task_id=context.current_task_id if context else None,
            context_id=context.current_context_id if context else None,
        )
        rpc = SendStreamingMessageRequest(
            id=message_id,
            params=MessageSendParams(
                message=Message(
                    message_id=message_id,
                    role=Role.user,
                    parts=[Part(root=TextPart(text=request.prompt))],
                    task_id=state.task_id,
                    context_id=state.context_id,
                )
            ),
        )
        body = rpc.model_dump(mode="json", by_alias=True, exclude_none=True)

        logger.info("Starting A2A streaming task for message %s", message_id)
        try:
            async with self._client() as client:
                async with aconnect_sse(client, "POST", request.endpoint, json=body) as source:
                    source.response.raise_for_status()
                    async for sse in source.aiter_sse():
                        if request.abort_signal is not None and request.abort_signal.cancelled:
                            return
                        for chunk in _map_event(_decode(sse.data), state):
                            yield chunk
        except httpx.HTTPError as e:
            raise A2ATransportError(f"A2A request to {request.endpoint} failed: {e}") from e

        logger.info("A2A streaming for message %s finished", message_id)
        yield A2AContentChunk(text="", done=True)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        # a shared client is lent, never closed here
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client


def _decode(data: str) -> StreamEvent:
    try:
        response = SendStreamingMessageResponse.model_validate_json(data).root
    except ValidationError as e:
        raise A2AProtocolError(f"Invalid A2A event payload: {data!r}") from e
    if isinstance(response, JSONRPCErrorResponse):
        error = response.error
        raise A2AProtocolError(f"A2A server error {error.code}: {error.message}")
    return response.result


def _switch_ids(
    task_id: str | None, context_id: str | None, state: _StreamState
) -> A2AStatusChunk | None:
    if (task_id and task_id != state.task_id) or (context_id and context_id != state.context_id):
        state.task_id = task_id or state.task_id
        state.context_id = context_id or state.context_id
        return A2AStatusChunk(task_id=state.task_id, context_id=state.context_id)
    return None


def _first_text(message: Message | None) -> str | None:
    if message is None or not message.parts:
        return None
    part = message.parts[0].root
    return part.text if isinstance(part, TextPart) else None


def _part_content(part: Part) -> str:
    inner = part.root
    if isinstance(inner, TextPart):
        return inner.text
    if isinstance(inner, FilePart):
        return f"File: {inner.file.name or ''}"
    return ""


def _map_event(event: StreamEvent, state: _StreamState) -> list[A2AChunk]:
    chunks: list[A2AChunk] = []

    if isinstance(event, Task):
        state.task_id = event.id
        state.context_id = event.context_id
        chunks.append(A2AStatusChunk(task_id=state.task_id, context_id=state.context_id))

    elif isinstance(event, TaskStatusUpdateEvent):
        switched = _switch_ids(event.task_id, event.context_id, state)
        if switched is not None:
            chunks.append(switched)
        status = event.status
        text = _first_text(status.message)
        if text is not None:
            if status.state == TaskState.working:
                chunks.append(
                    A2AStatusChunk(task_id=state.task_id, context_id=state.context_id, status=text)
                )
            else:
                chunks.append(A2AContentChunk(text=text))
        if event.final and status.state != TaskState.input_required:
            state.task_id = None
            state.context_id = None
            chunks.append(A2AStatusChunk())

    elif isinstance(event, TaskArtifactUpdateEvent):
        artifact = event.artifact
        entry = state.artifacts.setdefault(
            artifact.artifact_id,
            _Artifact(name=artifact.name or f"Artifact {artifact.artifact_id}"),
        )
        entry.content += "".join(_part_content(part) for part in artifact.parts)
        if event.last_chunk and entry.content:
            chunks.append(A2AArtifactChunk(name=entry.name, content=entry.content))

    elif isinstance(event, Message):
        switched = _switch_ids(event.task_id, event.context_id, state)
        if switched is not None:
            chunks.append(switched)
        payload = event.model_dump_json(by_alias=True, exclude_none=True)
        chunks.append(A2AContentChunk(text=f"Received message response: {payload}"))

    return chunks
