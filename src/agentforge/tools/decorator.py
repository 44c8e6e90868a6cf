from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the decorator for defining tools in a concise way.
"""

import inspect
from typing import Any, Callable, Type, TypeVar

from pydantic import BaseModel

from .base import Tool, ToolFn, ToolSpec

ArgsT = TypeVar("ArgsT", bound=BaseModel)
ReturnT = TypeVar("ReturnT")


def _default_description(fn: Callable[..., Any], fallback: str) -> str:
    doc = inspect.getdoc(fn) or ""
    first_line = doc.splitlines()[0].strip() if doc else ""
    return first_line or fallback


def tool(
    *,
    args_model: Type[ArgsT],
    name: str | None = None,
    description: str | None = None,
    timeout: float | None = None,
    raise_on_error: bool = False,
) -> Callable[[ToolFn], Tool[ArgsT, ReturnT]]:
    """
    Create a Tool from a sync/async function and a Pydantic v2 args model.

    Tool function can be sync or async and should use one of:
      def/async def fn(args: ArgsModel) -> Any
      def/async def fn(args: ArgsModel, ctx: ToolContext) -> Any
      def/async def fn(ctx: ToolContext, args: ArgsModel) -> Any

    The tool name doubles as the tool id referenced by agent steps.
    """

    def decorator(fn: ToolFn) -> Tool[ArgsT, ReturnT]:
        tool_name = name or getattr(fn, "__name__", "tool")
        tool_desc = description or _default_description(fn, tool_name)
        schema = args_model.model_json_schema()
        spec = ToolSpec(name=tool_name, description=tool_desc, parameters_schema=schema)
        return Tool(
            spec=spec,
            fn=fn,
            args_model=args_model,
            default_timeout=timeout,
            raise_on_error=raise_on_error,
        )

    return decorator
