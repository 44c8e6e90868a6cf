from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the in-process agent store for tests and ephemeral embedding.
"""

from ..agents.types import Agent, AgentRun
from .base import AgentStore


class InMemoryAgentStore(AgentStore):
    """
    Process-local agent store.

    Records are copied on the way in and on the way out, so callers never
    share mutable state with the store (same observable behaviour as a
    serialising backend).
    """

    def __init__(self) -> None:
        self._agents: dict[str, dict[str, Agent]] = {}
        self._runs: dict[str, dict[str, dict[str, AgentRun]]] = {}

    def list_workspaces(self) -> list[str]:
        return sorted(set(self._agents) | set(self._runs))

    def list_agents(self, workspace_id: str) -> list[Agent]:
        agents = self._agents.get(workspace_id, {})
        return [agent.model_copy(deep=True) for agent in agents.values()]

    def load_agent(self, workspace_id: str, agent_id: str) -> Agent | None:
        agent = self._agents.get(workspace_id, {}).get(agent_id)
        return agent.model_copy(deep=True) if agent is not None else None

    def save_agent(self, workspace_id: str, agent: Agent) -> bool:
        self._agents.setdefault(workspace_id, {})[agent.uuid] = agent.model_copy(deep=True)
        return True

    def delete_agent(self, workspace_id: str, agent_id: str) -> bool:
        agents = self._agents.get(workspace_id, {})
        if agent_id not in agents:
            return False
        del agents[agent_id]
        return self.delete_agent_runs(workspace_id, agent_id)

    def list_agents_with_runs(self, workspace_id: str) -> list[str]:
        return sorted(agent_id for agent_id, runs in self._runs.get(workspace_id, {}).items() if runs)

    def get_agent_runs(self, workspace_id: str, agent_id: str) -> list[AgentRun]:
        runs = self._runs.get(workspace_id, {}).get(agent_id, {})
        return self._sort_runs([run.model_copy(deep=True) for run in runs.values()])

    def get_agent_run(
        self, workspace_id: str, agent_id: str, run_id: str
    ) -> AgentRun | None:
        run = self._runs.get(workspace_id, {}).get(agent_id, {}).get(run_id)
        return run.model_copy(deep=True) if run is not None else None

    def save_agent_run(self, workspace_id: str, run: AgentRun) -> bool:
        by_agent = self._runs.setdefault(workspace_id, {})
        by_agent.setdefault(run.agent_id, {})[run.uuid] = run.model_copy(deep=True)
        return True

    def delete_agent_run(self, workspace_id: str, agent_id: str, run_id: str) -> bool:
        runs = self._runs.get(workspace_id, {}).get(agent_id, {})
        if run_id not in runs:
            return False
        del runs[run_id]
        return True

    def delete_agent_runs(self, workspace_id: str, agent_id: str) -> bool:
        self._runs.get(workspace_id, {}).pop(agent_id, None)
        return True
