from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides factory functions for creating agent store backends based on environment variables.
"""

import os

from .base import AgentStore
from .filesystem import FileAgentStore
from .in_memory import InMemoryAgentStore

DEFAULT_DATA_DIR = "agentforge_data"


def create_agent_store_from_env() -> AgentStore:
    """Create an agent store based on `AGENTFORGE_STORE_BACKEND` and related environment settings."""
    backend = os.getenv("AGENTFORGE_STORE_BACKEND", "file").strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryAgentStore()

    if backend in ("file", "fs", "filesystem", "json"):
        root = os.getenv("AGENTFORGE_DATA_DIR", DEFAULT_DATA_DIR)
        return FileAgentStore(root=root)

    raise ValueError(f"Unknown AGENTFORGE_STORE_BACKEND: {backend}")
