"""
Persisted data model for agent definitions and agent runs.

Everything here is stored as camelCase JSON on disk. Unknown keys are kept on
the model (``extra="allow"``) so loading and re-saving a file written by a
newer version never drops data.
"""

from __future__ import annotations

import copy
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AgentSource = Literal["witsy", "a2a"]
RunTrigger = Literal["manual", "schedule", "webhook", "workflow"]
RunStatus = Literal["running", "success", "error", "canceled"]
MessageRole = Literal["system", "user", "assistant"]

JSONDict: TypeAlias = dict[str, Any]

TERMINAL_STATUSES: frozenset[str] = frozenset({"success", "error", "canceled"})


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )

    def to_json_dict(self) -> JSONDict:
        """Return the on-disk (camelCase, JSON-safe) representation."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_json_dict(cls, payload: JSONDict):
        return cls.model_validate(payload)


class AgentParameter(_CamelModel):
    """One declared input of an agent."""

    name: str
    type: str = "string"
    description: str = ""
    required: bool = False


class AgentStep(_CamelModel):
    """
    One step of an agent workflow.

    Attributes:
        prompt: Prompt template; supports ``{{name}}`` inputs and ``{{output.N}}``.
        description: Optional human-readable status shown while the step runs.
        tools: Tool ids enabled for the step. ``None`` enables every registered tool.
        agents: Sub-agent uuids invoked before the step's LLM call.
        docrepo: Document repository queried for extra context.
    """

    prompt: str = ""
    description: str | None = None
    tools: list[str] | None = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    docrepo: str | None = None


class Agent(_CamelModel):
    """User-authored agent definition, one file per agent."""

    uuid: str = Field(default_factory=new_id)
    source: AgentSource = "witsy"
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    last_run_id: str | None = None
    name: str = ""
    description: str = ""
    type: str = "runnable"
    engine: str = ""
    model: str = ""
    model_opts: JSONDict = Field(default_factory=dict)
    disable_streaming: bool = False
    locale: str = ""
    instructions: str = ""
    parameters: list[AgentParameter] = Field(default_factory=list)
    steps: list[AgentStep] = Field(default_factory=lambda: [AgentStep()])
    schedule: str | None = None
    webhook_token: str | None = None
    invocation_values: dict[str, Any] = Field(default_factory=dict)

    def is_runnable(self) -> bool:
        return len(self.steps) > 0

    def snapshot(self) -> "AgentInfo":
        """Freeze name and steps so later edits don't rewrite run history."""
        return AgentInfo(
            name=self.name,
            steps=[step.model_copy(deep=True) for step in self.steps],
        )

    def duplicate(self, name_suffix: str = "Copy") -> "Agent":
        """Return a deep copy with a fresh uuid and timestamps."""
        data = copy.deepcopy(self.model_dump())
        data.update(
            uuid=new_id(),
            created_at=now_ms(),
            updated_at=now_ms(),
            last_run_id=None,
            name=f"{self.name} - {name_suffix}",
        )
        return Agent.model_validate(data)


class AgentInfo(_CamelModel):
    """Snapshot of the agent stored on each run."""

    name: str = ""
    steps: list[AgentStep] = Field(default_factory=list)


class A2AContext(_CamelModel):
    """Remote task identifiers carried between A2A turns."""

    current_task_id: str | None = Field(default=None, alias="currentTaskId")
    current_context_id: str | None = Field(default=None, alias="currentContextId")


class ToolCallRecord(_CamelModel):
    """One tool invocation made while producing an assistant message."""

    id: str | None = None
    name: str
    params: JSONDict = Field(default_factory=dict)
    result: Any = None
    done: bool = True


class Message(_CamelModel):
    """One transcript entry."""

    uuid: str = Field(default_factory=new_id)
    role: MessageRole
    content: str = ""
    created_at: int = Field(default_factory=now_ms)
    engine: str | None = None
    model: str | None = None
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    agent_id: str | None = None
    agent_run_id: str | None = None
    a2a_context: A2AContext | None = Field(default=None, alias="a2aContext")
    status: str | None = None

    def append_text(self, text: str) -> None:
        self.content += text


class SubRunRef(_CamelModel):
    agent_id: str
    run_id: str


class RunStepRecord(_CamelModel):
    """Pointers from one agent step into the run transcript."""

    index: int
    user_message_index: int
    assistant_message_index: int
    sub_runs: list[SubRunRef] = Field(default_factory=list)


class AgentRun(_CamelModel):
    """Execution record of one agent run, one file per run."""

    uuid: str = Field(default_factory=new_id)
    agent_id: str
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    trigger: RunTrigger
    status: RunStatus = "running"
    prompt: str | None = None
    messages: list[Message] = Field(default_factory=list)
    steps: list[RunStepRecord] = Field(default_factory=list)
    error: str | None = None
    agent_info: AgentInfo | None = None
    a2a_context: A2AContext | None = Field(default=None, alias="a2aContext")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def output_text(self) -> str:
        """Return the text of the last assistant message, or an empty string."""
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message.content
        return ""


@dataclass(frozen=True, slots=True)
class RunningRun:
    """
    In-memory presence entry for a run executing in this process.

    Attributes:
        run_id: Run identifier.
        start_time: Epoch milliseconds when the run was registered.
    """

    run_id: str
    start_time: int

    def to_payload(self) -> JSONDict:
        return {"runId": self.run_id, "startTime": self.start_time}


@dataclass(slots=True)
class Chat:
    """
    Live conversation an interactive run appends into.

    The executor shares message objects with the chat, so text streamed into
    the run's final assistant message is visible here as it arrives.
    """

    messages: list[Message] = field(default_factory=list)
    engine: str | None = None
    model: str | None = None
    locale: str | None = None
    model_opts: JSONDict | None = None
    title: str | None = None

    def add_message(self, message: Message) -> None:
        self.messages.append(message)

    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def set_engine_model(self, engine: str | None, model: str | None) -> None:
        self.engine = engine
        self.model = model
