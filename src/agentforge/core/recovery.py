"""
Startup reconciliation of persisted runs with the in-process tracker.

A run file still marked `running` while no executor in this process owns it
was interrupted by a crash or shutdown. Those runs are closed as `canceled`.
"""

from __future__ import annotations

import logging

from ..agents.runtime import validate_status_transition
from ..agents.types import now_ms
from ..store.base import AgentStore
from .config import STALE_RUN_ERROR
from .tracker import RunTracker

logger = logging.getLogger(__name__)


def cancel_stale_running_runs(
    store: AgentStore, workspace_id: str, tracker: RunTracker | None = None
) -> int:
    """
    Mark orphaned `running` runs of one workspace as `canceled`.

    Args:
        store: Agent store to scan and rewrite.
        workspace_id: Workspace to reconcile.
        tracker: Optional tracker; runs it reports as live are left alone.

    Returns:
        Number of runs rewritten.
    """
    fixed = 0
    # Scan run records directly so runs of unreadable agents are still closed.
    for agent_id in store.list_agents_with_runs(workspace_id):
        for run in store.get_agent_runs(workspace_id, agent_id):
            if run.status != "running":
                continue
            if tracker is not None and tracker.is_running(run.agent_id, run.uuid):
                continue
            run.status = validate_status_transition(run.status, "canceled")
            run.error = STALE_RUN_ERROR
            run.updated_at = now_ms()
            if store.save_agent_run(workspace_id, run):
                fixed += 1
            else:
                logger.warning("Could not close stale run %s of agent %s", run.uuid, agent_id)
    if fixed:
        logger.info("Canceled %d stale running run(s) in workspace %s", fixed, workspace_id)
    return fixed


def cancel_all_stale_running_runs(
    store: AgentStore, tracker: RunTracker | None = None
) -> int:
    """Apply `cancel_stale_running_runs` to every workspace of the store."""
    return sum(
        cancel_stale_running_runs(store, workspace_id, tracker)
        for workspace_id in store.list_workspaces()
    )
