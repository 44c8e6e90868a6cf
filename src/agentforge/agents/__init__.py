"""
Agent definitions, run records and their helpers.
"""

from .errors import (
    AgentCancelledError,
    AgentConfigurationError,
    AgentError,
    AgentExecutionError,
    InvalidStatusTransition,
    SubagentExecutionError,
    SubagentRoutingError,
)
from .prompt import (
    PromptInput,
    extract_prompt_inputs,
    missing_inputs,
    render_prompt,
    replace_prompt_inputs,
)
from .runtime import allocate_webhook_token, run_key, validate_status_transition
from .types import (
    A2AContext,
    Agent,
    AgentInfo,
    AgentParameter,
    AgentRun,
    AgentSource,
    AgentStep,
    Chat,
    Message,
    RunningRun,
    RunStatus,
    RunStepRecord,
    RunTrigger,
    SubRunRef,
    ToolCallRecord,
    now_ms,
    new_id,
)

__all__ = [
    "A2AContext",
    "Agent",
    "AgentInfo",
    "AgentParameter",
    "AgentRun",
    "AgentSource",
    "AgentStep",
    "Chat",
    "Message",
    "RunningRun",
    "RunStatus",
    "RunStepRecord",
    "RunTrigger",
    "SubRunRef",
    "ToolCallRecord",
    "now_ms",
    "new_id",
    "PromptInput",
    "extract_prompt_inputs",
    "missing_inputs",
    "render_prompt",
    "replace_prompt_inputs",
    "allocate_webhook_token",
    "run_key",
    "validate_status_transition",
    "AgentError",
    "AgentConfigurationError",
    "AgentExecutionError",
    "AgentCancelledError",
    "InvalidStatusTransition",
    "SubagentExecutionError",
    "SubagentRoutingError",
]
