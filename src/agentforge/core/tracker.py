"""
In-process registry of running agent runs and their abort handles.
"""

from __future__ import annotations

import logging
from typing import Any

from ..agents.runtime import run_key
from ..agents.types import RunningRun, now_ms
from .broadcast import AGENT_RUN_UPDATE, BroadcastSink, NullBroadcastSink
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


class RunTracker:
    """
    Answers "what is running in this process right now" and "abort this run".

    All methods are synchronous. Every mutation of the presence map is
    broadcast as `agent-run-update` with the full snapshot, so listeners
    never have to merge deltas.
    """

    def __init__(self, broadcast: BroadcastSink | None = None) -> None:
        self._broadcast: BroadcastSink = broadcast or NullBroadcastSink()
        self._running_by_agent: dict[str, list[RunningRun]] = {}
        self._abort_handles: dict[str, CancellationToken] = {}

    def add_running_run(
        self, agent_id: str, run_id: str, start_time: int | None = None
    ) -> None:
        """Register a run as running; re-adding keeps the original start time."""
        runs = self._running_by_agent.setdefault(agent_id, [])
        if not any(entry.run_id == run_id for entry in runs):
            runs.append(
                RunningRun(
                    run_id=run_id,
                    start_time=start_time if start_time is not None else now_ms(),
                )
            )
        logger.debug("Run %s of agent %s is running", run_id, agent_id)
        self._notify(agent_id, run_id)

    def remove_running_run(self, agent_id: str, run_id: str) -> None:
        runs = self._running_by_agent.get(agent_id)
        if runs is not None:
            remaining = [entry for entry in runs if entry.run_id != run_id]
            if remaining:
                self._running_by_agent[agent_id] = remaining
            else:
                del self._running_by_agent[agent_id]
        self._abort_handles.pop(run_key(agent_id, run_id), None)
        logger.debug("Run %s of agent %s is no longer running", run_id, agent_id)
        self._notify(agent_id, run_id)

    def remove_all_running_runs_for_agent(self, agent_id: str) -> None:
        runs = self._running_by_agent.pop(agent_id, [])
        for entry in runs:
            self._abort_handles.pop(run_key(agent_id, entry.run_id), None)
        prefix = f"{agent_id}:"
        for key in [key for key in self._abort_handles if key.startswith(prefix)]:
            del self._abort_handles[key]
        self._notify(agent_id, None)

    def register_abort_controller(
        self, agent_id: str, run_id: str, handle: CancellationToken
    ) -> None:
        self._abort_handles[run_key(agent_id, run_id)] = handle

    def abort_run(self, agent_id: str, run_id: str) -> bool:
        """
        Cancel a registered run.

        Returns:
            `True` when a handle was found and cancelled. The handle is
            dropped, so a second call returns `False`.
        """
        handle = self._abort_handles.pop(run_key(agent_id, run_id), None)
        if handle is None:
            return False
        handle.cancel()
        logger.info("Abort requested for run %s of agent %s", run_id, agent_id)
        return True

    def get_running_agent_runs(self) -> dict[str, list[RunningRun]]:
        return {agent_id: list(runs) for agent_id, runs in self._running_by_agent.items()}

    def is_running(self, agent_id: str, run_id: str) -> bool:
        return any(
            entry.run_id == run_id for entry in self._running_by_agent.get(agent_id, [])
        )

    def snapshot_payload(self) -> dict[str, list[dict[str, Any]]]:
        return {
            agent_id: [entry.to_payload() for entry in runs]
            for agent_id, runs in self._running_by_agent.items()
        }

    def _notify(self, agent_id: str, run_id: str | None) -> None:
        self._broadcast.send(
            AGENT_RUN_UPDATE,
            {
                "agentId": agent_id,
                "runId": run_id,
                "runningAgentRuns": self.snapshot_payload(),
            },
        )
