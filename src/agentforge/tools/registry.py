from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the tool registry used by the direct executor.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Sequence

from ..llms.types import ToolDefinition
from .base import Tool, ToolContext, ToolResult, ToolSpec
from .errors import ToolAlreadyRegisteredError, ToolNotFoundError, ToolTimeoutError

logger = logging.getLogger(__name__)


def normalize_json_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Ensure a tool schema is at least an object schema with 'properties'."""
    if not isinstance(schema, dict):
        return {"type": "object", "properties": {}}
    out = dict(schema)
    out.setdefault("type", "object")
    out.setdefault("properties", {})
    return out


def toolspec_to_definition(spec: ToolSpec) -> ToolDefinition:
    """Convert a ToolSpec into an OpenAI-compatible function tool definition."""
    return {
        "type": "function",
        "function": {
            "name": spec.name,
            "description": spec.description,
            "parameters": normalize_json_schema(spec.parameters_schema),
        },
    }


class ToolRegistry:
    """
    Stores tools by id and provides async execution with:
      - concurrency limiting
      - registry-level default timeout
      - tool definition export for LLM tool-calling
    """

    def __init__(
        self,
        *,
        max_concurrency: int = 32,
        default_timeout: float | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")

        self._tools: Dict[str, Tool[Any, Any]] = {}
        self._sem = asyncio.Semaphore(max_concurrency)
        self._default_timeout = default_timeout

    def register(self, tool: Tool[Any, Any], *, overwrite: bool = False) -> None:
        name = tool.spec.name
        if not overwrite and name in self._tools:
            raise ToolAlreadyRegisteredError(f"Tool already registered: {name}")
        self._tools[name] = tool

    def register_many(self, tools: Iterable[Tool[Any, Any]], *, overwrite: bool = False) -> None:
        for t in tools:
            self.register(t, overwrite=overwrite)

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool[Any, Any]:
        try:
            return self._tools[name]
        except KeyError as e:
            raise ToolNotFoundError(f"Unknown tool: {name}") from e

    def list(self) -> List[Tool[Any, Any]]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools.keys())

    def has(self, name: str) -> bool:
        return name in self._tools

    def resolve(self, names: Sequence[str] | None) -> List[Tool[Any, Any]]:
        """
        Resolve tool ids enabled for a step.

        `None` selects every registered tool. Unknown ids are logged and
        skipped.
        """
        if names is None:
            return self.list()
        tools: List[Tool[Any, Any]] = []
        for name in names:
            if name in self._tools:
                tools.append(self._tools[name])
            else:
                logger.warning("Skipping unknown tool %r", name)
        return tools

    def definitions(self, names: Sequence[str] | None = None) -> List[ToolDefinition]:
        return [toolspec_to_definition(t.spec) for t in self.resolve(names)]

    async def call(
        self,
        name: str,
        raw_args: Dict[str, Any],
        *,
        ctx: ToolContext | None = None,
        timeout: float | None = None,
        tool_call_id: str | None = None,
    ) -> ToolResult[Any]:
        """
        Execute a registered tool by id.

        Timeout precedence:
          1) call(timeout=...)
          2) tool.default_timeout
          3) registry default_timeout
        """
        tool = self.get(name)
        ctx = ctx or ToolContext()

        async with self._sem:
            effective_timeout = (
                timeout
                if timeout is not None
                else (tool.default_timeout if tool.default_timeout is not None else self._default_timeout)
            )
            if effective_timeout is None:
                return await tool.call(raw_args, ctx=ctx, timeout=None, tool_call_id=tool_call_id)
            try:
                return await asyncio.wait_for(
                    tool.call(raw_args, ctx=ctx, timeout=None, tool_call_id=tool_call_id),
                    timeout=effective_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ToolTimeoutError(
                    f"Tool '{name}' timed out after {effective_timeout} seconds."
                ) from e

    def specs(self) -> List[ToolSpec]:
        return [t.spec for t in self._tools.values()]
