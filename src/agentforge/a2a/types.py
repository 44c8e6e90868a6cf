"""
Chunk and request types exchanged between the A2A executor and A2A clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Literal, Protocol, TypeAlias

from ..agents.types import A2AContext

if TYPE_CHECKING:
    from ..core.cancellation import CancellationToken


@dataclass(frozen=True, slots=True)
class A2AContentChunk:
    """Text produced by the remote agent."""

    text: str
    done: bool = False
    type: Literal["content"] = "content"


@dataclass(frozen=True, slots=True)
class A2AStatusChunk:
    """
    Remote task bookkeeping.

    Attributes:
        task_id: Current remote task id; `None` once the remote task ended.
        context_id: Current remote context id.
        status: Optional progress text (e.g. "Searching...").
    """

    task_id: str | None = None
    context_id: str | None = None
    status: str | None = None
    type: Literal["status"] = "status"


@dataclass(frozen=True, slots=True)
class A2AArtifactChunk:
    """A complete artifact produced by the remote agent."""

    name: str
    content: str
    type: Literal["artifact"] = "artifact"


A2AChunk: TypeAlias = A2AContentChunk | A2AStatusChunk | A2AArtifactChunk


@dataclass(frozen=True, slots=True)
class A2ARequest:
    """
    One A2A turn.

    Attributes:
        endpoint: Base URL of the remote agent.
        prompt: User text sent to the remote agent.
        context: Task/context ids to resume, if any.
        abort_signal: Cancellation token of the calling run.
    """

    endpoint: str
    prompt: str
    context: A2AContext | None = None
    abort_signal: "CancellationToken | None" = None


class A2AClient(Protocol):
    """Protocol implemented by agent-to-agent transports."""

    def execute(self, request: A2ARequest) -> AsyncIterator[A2AChunk]:
        """Send `request.prompt` and stream back chunks until the turn ends."""
        ...
