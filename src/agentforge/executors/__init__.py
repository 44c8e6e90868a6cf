"""
Agent execution strategies.
"""

from .a2a import A2AExecutor
from .base import ExecutionEnv, Executor, ExecutorOptions
from .direct import DirectExecutor
from .factory import create_executor

__all__ = [
    "A2AExecutor",
    "DirectExecutor",
    "ExecutionEnv",
    "Executor",
    "ExecutorOptions",
    "create_executor",
]
