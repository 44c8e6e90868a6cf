from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines the abstract contract shared by agent store backends.
"""

from abc import ABC, abstractmethod

from ..agents.types import Agent, AgentRun


class AgentStore(ABC):
    """
    Base contract for agent definition and run record persistence.

    Stores are I/O firewalls: reads return `None`/`[]` instead of raising and
    writes report failure as `False`. Failures are logged by the backend.
    Every write replaces the whole record.
    """

    @abstractmethod
    def list_workspaces(self) -> list[str]:
        """Return the ids of every workspace that holds agents."""

    @abstractmethod
    def list_agents(self, workspace_id: str) -> list[Agent]:
        """Return all agents of a workspace, `[]` when the workspace is unknown."""

    @abstractmethod
    def load_agent(self, workspace_id: str, agent_id: str) -> Agent | None:
        """Return one agent or `None` when missing or unreadable."""

    @abstractmethod
    def save_agent(self, workspace_id: str, agent: Agent) -> bool:
        """Create or overwrite an agent definition."""

    @abstractmethod
    def delete_agent(self, workspace_id: str, agent_id: str) -> bool:
        """Delete an agent definition together with its whole run history."""

    @abstractmethod
    def list_agents_with_runs(self, workspace_id: str) -> list[str]:
        """Return the ids of agents that have run records, whether or not the agent itself loads."""

    @abstractmethod
    def get_agent_runs(self, workspace_id: str, agent_id: str) -> list[AgentRun]:
        """Return the runs of one agent, most recently updated first."""

    @abstractmethod
    def get_agent_run(
        self, workspace_id: str, agent_id: str, run_id: str
    ) -> AgentRun | None:
        """Return one run or `None`."""

    @abstractmethod
    def save_agent_run(self, workspace_id: str, run: AgentRun) -> bool:
        """Create or overwrite a run record."""

    @abstractmethod
    def delete_agent_run(self, workspace_id: str, agent_id: str, run_id: str) -> bool:
        """Delete one run record."""

    @abstractmethod
    def delete_agent_runs(self, workspace_id: str, agent_id: str) -> bool:
        """Delete every run record of one agent."""

    @staticmethod
    def _sort_runs(runs: list[AgentRun]) -> list[AgentRun]:
        return sorted(runs, key=lambda run: run.updated_at, reverse=True)
