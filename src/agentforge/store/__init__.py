from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module exports the agent store backends.
"""

from .base import AgentStore
from .factory import create_agent_store_from_env
from .filesystem import FileAgentStore
from .in_memory import InMemoryAgentStore

__all__ = [
    "AgentStore",
    "FileAgentStore",
    "InMemoryAgentStore",
    "create_agent_store_from_env",
]
