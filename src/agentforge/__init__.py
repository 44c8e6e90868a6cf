"""
agentforge: persistent, multi-step LLM agents with run tracking.
"""

from .agents import Agent, AgentRun, AgentStep, Chat, Message
from .core import CancellationToken, ExecutorConfig, RunTracker
from .executors import ExecutorOptions, create_executor
from .runner import AgentRunner
from .store import FileAgentStore, InMemoryAgentStore, create_agent_store_from_env

__all__ = [
    "Agent",
    "AgentRun",
    "AgentStep",
    "Chat",
    "Message",
    "CancellationToken",
    "ExecutorConfig",
    "RunTracker",
    "ExecutorOptions",
    "create_executor",
    "AgentRunner",
    "FileAgentStore",
    "InMemoryAgentStore",
    "create_agent_store_from_env",
]
