"""
Executor selection by agent source.
"""

from __future__ import annotations

from ..agents.types import Agent
from .a2a import A2AExecutor
from .base import ExecutionEnv, Executor
from .direct import DirectExecutor


def create_executor(env: ExecutionEnv, agent: Agent) -> Executor:
    """Return the strategy matching `agent.source`."""
    if agent.source == "a2a":
        return A2AExecutor(env, agent)
    return DirectExecutor(env, agent)
