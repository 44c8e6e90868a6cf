"""
Application-facing entry point that wires stores, the run tracker and the
executors together.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Mapping

from .a2a.types import A2AClient
from .agents.errors import AgentConfigurationError
from .agents.runtime import allocate_webhook_token
from .agents.types import Agent, AgentRun, RunTrigger, new_id
from .core.cancellation import CancellationToken
from .core.config import ExecutorConfig
from .core.recovery import cancel_all_stale_running_runs
from .core.telemetry import NullTelemetrySink, TelemetrySink
from .core.tracker import RunTracker
from .docrepo import DocRepo
from .executors.base import ExecutionEnv, ExecutorOptions
from .executors.factory import create_executor
from .llms.llm import LLM
from .store.base import AgentStore
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class AgentRunner:
    """
    Runs agents of any workspace against one store and one tracker.

    The runner owns the process-wide `RunTracker`; every executor it creates
    shares it, so `abort_run` and the `agent-run-update` broadcast see all
    runs of the process.
    """

    def __init__(
        self,
        store: AgentStore,
        tracker: RunTracker | None = None,
        *,
        llm: LLM | None = None,
        docrepo: DocRepo | None = None,
        tools: ToolRegistry | None = None,
        a2a_client: A2AClient | None = None,
        config: ExecutorConfig | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.store = store
        self.tracker = tracker or RunTracker()
        self.config = config or ExecutorConfig()
        self._llm = llm
        self._docrepo = docrepo
        self._tools = tools
        self._a2a_client = a2a_client
        self._telemetry = telemetry or NullTelemetrySink()
        self._envs: dict[str, ExecutionEnv] = {}
        self._tasks: set[asyncio.Task[AgentRun]] = set()

    def env_for(self, workspace_id: str) -> ExecutionEnv:
        env = self._envs.get(workspace_id)
        if env is None:
            env = ExecutionEnv(
                workspace_id=workspace_id,
                store=self.store,
                tracker=self.tracker,
                config=self.config,
                llm=self._llm,
                docrepo=self._docrepo,
                tools=self._tools,
                a2a_client=self._a2a_client,
                telemetry=self._telemetry,
            )
            self._envs[workspace_id] = env
        return env

    def startup(self) -> int:
        """Close runs left `running` by a previous process."""
        fixed = cancel_all_stale_running_runs(self.store, self.tracker)
        logger.info("Startup recovery closed %d stale run(s)", fixed)
        return fixed

    async def run_agent(
        self,
        workspace_id: str,
        agent: Agent | str,
        trigger: RunTrigger,
        values: Mapping[str, Any] | None = None,
        options: ExecutorOptions | None = None,
    ) -> AgentRun | None:
        """
        Execute one agent run to completion.

        Returns:
            The terminal run, or `None` when the agent does not exist.
        """
        resolved = self._resolve(workspace_id, agent)
        if resolved is None:
            return None
        values = dict(values or {})
        options = options or ExecutorOptions()
        if trigger == "manual" and not options.ephemeral:
            resolved.invocation_values = dict(values)
            self.store.save_agent(workspace_id, resolved)
        executor = create_executor(self.env_for(workspace_id), resolved)
        logger.info(
            "Running agent %s (%s) with %s executor", resolved.uuid, trigger, executor.kind
        )
        return await executor.run(trigger, values, options)

    def start_agent(
        self,
        workspace_id: str,
        agent: Agent | str,
        trigger: RunTrigger,
        values: Mapping[str, Any] | None = None,
        options: ExecutorOptions | None = None,
    ) -> tuple[str, asyncio.Task[AgentRun | None]] | None:
        """
        Schedule a run in the background.

        The run id and abort handle exist before the task starts, so the
        caller can report the id and abort it right away.

        Returns:
            `(run_id, task)`, or `None` when the agent does not exist.
        """
        resolved = self._resolve(workspace_id, agent)
        if resolved is None:
            return None
        options = options or ExecutorOptions()
        run_id = options.run_id or new_id()
        token = options.abort_signal or CancellationToken()
        options = replace(options, run_id=run_id, abort_signal=token)
        self.tracker.register_abort_controller(resolved.uuid, run_id, token)

        task = asyncio.create_task(
            self.run_agent(workspace_id, resolved, trigger, values, options),
            name=f"agent-run-{run_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return run_id, task

    async def run_webhook(
        self, token: str, values: Mapping[str, Any] | None = None
    ) -> AgentRun | None:
        """Run the agent owning webhook `token`; `None` when no agent does."""
        found = self.find_agent_by_webhook_token(token)
        if found is None:
            logger.warning("No agent found for webhook token")
            return None
        agent, workspace_id = found
        return await self.run_agent(workspace_id, agent, "webhook", values)

    def abort_run(
        self, agent_id: str, run_id: str, local_token: CancellationToken | None = None
    ) -> bool:
        """
        Abort a run through the token the caller holds and the registered handle.

        Returns:
            Whether something was cancelled.
        """
        cancelled = local_token.cancel() if local_token is not None else False
        return self.tracker.abort_run(agent_id, run_id) or cancelled

    def generate_webhook_token(self, workspace_id: str, agent_id: str) -> str:
        """
        Assign a new webhook token to an agent and save it.

        Raises:
            AgentConfigurationError: When the agent is missing or no unique
                token can be allocated.
        """
        agent = self.store.load_agent(workspace_id, agent_id)
        if agent is None:
            raise AgentConfigurationError(f"Agent not found: {agent_id}")
        token = allocate_webhook_token(
            a.webhook_token
            for ws in self.store.list_workspaces()
            for a in self.store.list_agents(ws)
        )
        agent.webhook_token = token
        if not self.store.save_agent(workspace_id, agent):
            logger.warning("Could not save webhook token on agent %s", agent_id)
        return token

    def find_agent_by_webhook_token(self, token: str) -> tuple[Agent, str] | None:
        """Return `(agent, workspace_id)` for the agent owning `token`."""
        if not token:
            return None
        for workspace_id in self.store.list_workspaces():
            for agent in self.store.list_agents(workspace_id):
                if agent.webhook_token == token:
                    return agent, workspace_id
        return None

    def _resolve(self, workspace_id: str, agent: Agent | str) -> Agent | None:
        if isinstance(agent, Agent):
            return agent
        loaded = self.store.load_agent(workspace_id, agent)
        if loaded is None:
            logger.warning("Agent %s not found in workspace %s", agent, workspace_id)
        return loaded
