"""
Agent-layer error taxonomy.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base exception for all agent-runtime failures."""
    pass


class AgentConfigurationError(AgentError):
    """
    Raised when an agent definition or runtime wiring is invalid.

    Typical cases:
    - agent has no steps
    - required parameters missing from invocation values
    - webhook token cannot be allocated
    """
    pass


class AgentExecutionError(AgentError):
    """Raised for runtime execution failures not tied to configuration."""
    pass


class AgentCancelledError(AgentExecutionError):
    """Raised when a run is cancelled by caller or control plane."""
    pass


class SubagentRoutingError(AgentExecutionError):
    """Raised when a sub-agent call would recurse or exceed the depth limit."""
    pass


class SubagentExecutionError(AgentExecutionError):
    """Raised when a delegated sub-agent run ends in error."""
    pass


class InvalidStatusTransition(AgentExecutionError):
    """Raised when a run status change would leave a terminal state."""
    pass
