"""
Executor configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SYSTEM_INSTRUCTIONS = (
    "You are a helpful assistant running as one step of an automated workflow. "
    "Answer the request directly and concisely."
)
DEFAULT_DOCQUERY_TEMPLATE = (
    "Use the following context to answer the request when it is relevant.\n\n"
    "<context>\n{context}\n</context>"
)
DEFAULT_SUBAGENT_OUTPUT_TEMPLATE = (
    '{prompt}\n\n<agent_output name="{name}">\n{output}\n</agent_output>'
)
DEFAULT_CANNOT_CONTINUE_TEXT = (
    "\n\nAn error occurred and the workflow cannot continue."
)
STALE_RUN_ERROR = "Run was interrupted by application shutdown"


@dataclass(frozen=True, slots=True)
class ExecutorConfig:
    """
    Runtime configuration shared by executors.

    Attributes:
        default_engine: Engine used when an agent declares none.
        default_model: Model used when an agent declares none.
        system_instructions: Base system prompt prepended to agent
            instructions.
        max_subagent_depth: Maximum nesting of sub-agent runs.
        max_tool_rounds: Maximum LLM/tool round trips per step.
        docquery_template: Format string with a `{context}` field.
        subagent_output_template: Format string with `{prompt}`, `{name}`
            and `{output}` fields.
        cannot_continue_text: Text appended to the last assistant message
            of a failed run.
    """

    default_engine: str = "litellm"
    default_model: str = "gpt-4.1-mini"
    system_instructions: str = DEFAULT_SYSTEM_INSTRUCTIONS
    max_subagent_depth: int = 4
    max_tool_rounds: int = 8
    docquery_template: str = DEFAULT_DOCQUERY_TEMPLATE
    subagent_output_template: str = DEFAULT_SUBAGENT_OUTPUT_TEMPLATE
    cannot_continue_text: str = DEFAULT_CANNOT_CONTINUE_TEXT

    @staticmethod
    def from_env() -> "ExecutorConfig":
        return ExecutorConfig(
            default_engine=os.getenv("AGENTFORGE_DEFAULT_ENGINE", "litellm"),
            default_model=os.getenv("AGENTFORGE_DEFAULT_MODEL", "gpt-4.1-mini"),
            system_instructions=os.getenv(
                "AGENTFORGE_SYSTEM_INSTRUCTIONS", DEFAULT_SYSTEM_INSTRUCTIONS
            ),
            max_subagent_depth=int(os.getenv("AGENTFORGE_MAX_SUBAGENT_DEPTH", "4")),
            max_tool_rounds=int(os.getenv("AGENTFORGE_MAX_TOOL_ROUNDS", "8")),
        )
