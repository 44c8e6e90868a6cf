"""
Executor contract shared by the direct step-loop and A2A strategies.

`Executor.run` owns the run lifecycle: it registers the run with the tracker
before the first await, hands control to the strategy's `_execute`, then
performs exactly one terminal status write, persists the final record and
deregisters the run. Nothing raised by a strategy escapes `run`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ..a2a.types import A2AClient
from ..agents.errors import AgentCancelledError
from ..agents.runtime import validate_status_transition
from ..agents.types import A2AContext, Agent, AgentRun, Chat, RunStatus, RunTrigger, now_ms
from ..core.cancellation import CancellationToken
from ..core.config import ExecutorConfig
from ..core.telemetry import (
    RUN_DURATION_MS,
    RUN_SPAN,
    RUNS_TOTAL,
    NullTelemetrySink,
    TelemetrySink,
    TelemetrySpan,
)
from ..core.tracker import RunTracker
from ..docrepo import DocRepo
from ..llms.errors import LLMCancelledError
from ..llms.factory import create_llm
from ..llms.llm import LLM
from ..store.base import AgentStore
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[Any], Any]

_CANCEL_ERRORS = (AgentCancelledError, LLMCancelledError)


@dataclass(slots=True)
class ExecutorOptions:
    """
    Per-run options.

    Attributes:
        chat: Live conversation the run appends into.
        ephemeral: Skip every store write.
        abort_signal: Cancellation token; a fresh one is created when omitted.
        callback: Streaming chunk sink, sync or async.
        a2a_context: Remote task to resume (A2A runs).
        run_id: Caller-chosen run id.
        lineage: Ancestor agent ids of a nested run.
    """

    chat: Chat | None = None
    ephemeral: bool = False
    abort_signal: CancellationToken | None = None
    callback: ChunkCallback | None = None
    a2a_context: A2AContext | None = None
    run_id: str | None = None
    lineage: tuple[str, ...] = ()


@dataclass(slots=True)
class ExecutionEnv:
    """Collaborators shared by every executor working in one workspace."""

    workspace_id: str
    store: AgentStore
    tracker: RunTracker
    config: ExecutorConfig = field(default_factory=ExecutorConfig)
    llm: LLM | None = None
    docrepo: DocRepo | None = None
    tools: ToolRegistry | None = None
    a2a_client: A2AClient | None = None
    telemetry: TelemetrySink = field(default_factory=NullTelemetrySink)
    _llms: dict[str, LLM] = field(default_factory=dict, repr=False)

    def llm_for(self, engine: str) -> LLM:
        """Return the injected LLM, or a cached adapter for `engine`."""
        if self.llm is not None:
            return self.llm
        if engine not in self._llms:
            self._llms[engine] = create_llm(engine)
        return self._llms[engine]


class Executor(ABC):
    """Base class for agent execution strategies."""

    kind: str = "base"

    def __init__(self, env: ExecutionEnv, agent: Agent) -> None:
        self.env = env
        self.agent = agent

    async def run(
        self,
        trigger: RunTrigger,
        values: Mapping[str, Any] | None = None,
        options: ExecutorOptions | None = None,
    ) -> AgentRun:
        """
        Execute the agent once and return the terminal run record.

        Args:
            trigger: What started the run.
            values: Input parameters (`message` plus declared parameters).
            options: Per-run options.
        """
        options = options or ExecutorOptions()
        token = options.abort_signal or CancellationToken()
        run = AgentRun(
            agent_id=self.agent.uuid,
            trigger=trigger,
            agent_info=self.agent.snapshot(),
        )
        if options.run_id:
            run.uuid = options.run_id

        self._register(run, token)
        started = time.monotonic()
        span = self.env.telemetry.start_span(
            RUN_SPAN,
            attributes={
                "agent_id": self.agent.uuid,
                "run_id": run.uuid,
                "trigger": trigger,
                "executor": self.kind,
            },
        )
        try:
            if token.cancelled:
                self._finish(run, "canceled")
                return run
            if not options.ephemeral:
                self._stamp_last_run(run)
                self._persist(run, options)
            await self._execute(run, dict(values or {}), options, token)
            self._finish(run, "success")
        except asyncio.CancelledError:
            token.cancel("Run task was cancelled")
            self._finish(run, "canceled")
            raise
        except Exception as exc:
            if isinstance(exc, _CANCEL_ERRORS) or token.cancelled:
                logger.info("Run %s of agent %s canceled", run.uuid, self.agent.uuid)
                self._finish(run, "canceled")
            else:
                logger.warning(
                    "Run %s of agent %s failed: %s", run.uuid, self.agent.uuid, exc, exc_info=True
                )
                self._fail(run, exc)
        finally:
            self._persist(run, options)
            self.env.tracker.remove_running_run(self.agent.uuid, run.uuid)
            self._record_telemetry(span, run, started)
        return run

    @abstractmethod
    async def _execute(
        self,
        run: AgentRun,
        values: dict[str, Any],
        options: ExecutorOptions,
        token: CancellationToken,
    ) -> None:
        """Strategy body: append messages to `run`; raise on failure."""

    def _register(self, run: AgentRun, token: CancellationToken) -> None:
        tracker = self.env.tracker
        tracker.register_abort_controller(self.agent.uuid, run.uuid, token)
        tracker.add_running_run(self.agent.uuid, run.uuid, run.created_at)

    def _stamp_last_run(self, run: AgentRun) -> None:
        self.agent.last_run_id = run.uuid
        if not self.env.store.save_agent(self.env.workspace_id, self.agent):
            logger.warning("Could not record last run id on agent %s", self.agent.uuid)

    def _persist(self, run: AgentRun, options: ExecutorOptions) -> None:
        if options.ephemeral:
            return
        run.updated_at = now_ms()
        if not self.env.store.save_agent_run(self.env.workspace_id, run):
            logger.warning("Could not persist run %s of agent %s", run.uuid, self.agent.uuid)

    def _finish(self, run: AgentRun, status: RunStatus) -> None:
        run.status = validate_status_transition(run.status, status)
        run.updated_at = now_ms()

    def _fail(self, run: AgentRun, exc: BaseException) -> None:
        last = run.last_message()
        if last is not None and last.role == "assistant":
            last.append_text(self.env.config.cannot_continue_text)
        run.error = str(exc) or "Unknown error"
        self._finish(run, "error")

    def _record_telemetry(self, span: TelemetrySpan | None, run: AgentRun, started: float) -> None:
        attributes = {"status": run.status, "executor": self.kind}
        telemetry = self.env.telemetry
        telemetry.end_span(
            span,
            status="ok" if run.status == "success" else run.status,
            error=run.error,
            attributes=attributes,
        )
        telemetry.increment_counter(RUNS_TOTAL, attributes=attributes)
        telemetry.record_histogram(
            RUN_DURATION_MS, (time.monotonic() - started) * 1000.0, attributes=attributes
        )

    @staticmethod
    async def _emit(options: ExecutorOptions, chunk: Any) -> None:
        if options.callback is None:
            return
        result = options.callback(chunk)
        if inspect.isawaitable(result):
            await result
