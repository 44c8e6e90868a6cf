"""
Prompt template helpers.

Step prompts reference inputs as ``{{name}}``, ``{{name:description}}``,
``{{name::default}}`` or ``{{name:description:default}}``. The executor also
exposes the text output of earlier steps as ``{{output.1}}``, ``{{output.2}}``...
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

OUTPUT_VAR_PREFIX = "output."
MESSAGE_VAR = "message"

_INPUT_RE = re.compile(r"{{\s*([^:}]+)(?::([^:}]*?)(?::([^}]*))?)?\s*}}")


@dataclass(frozen=True, slots=True)
class PromptInput:
    """
    One input placeholder found in a prompt template.

    Attributes:
        name: Input name.
        description: Optional description shown to the user.
        default: Optional default value used when no value is supplied.
    """

    name: str
    description: str | None = None
    default: str | None = None


def extract_prompt_inputs(prompt: str, *, skip_system: bool = False) -> list[PromptInput]:
    """
    Return the distinct inputs referenced by `prompt`, first occurrence wins.

    Args:
        prompt: Template text.
        skip_system: Drop executor-provided variables (`output.N`).
    """
    inputs: list[PromptInput] = []
    seen: set[str] = set()
    for match in _INPUT_RE.finditer(prompt or ""):
        name = match.group(1).strip()
        if skip_system and name.startswith(OUTPUT_VAR_PREFIX):
            continue
        if name in seen:
            continue
        seen.add(name)
        description = (match.group(2) or "").strip() or None
        default = (match.group(3) or "").strip() or None
        inputs.append(PromptInput(name=name, description=description, default=default))
    return inputs


def _to_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if value is None:
        return ""
    return str(value)


def replace_prompt_inputs(prompt: str, values: Mapping[str, Any]) -> str:
    """Substitute every supplied value into its placeholders."""
    for key, value in values.items():
        text = _to_text(value)
        pattern = re.compile(
            r"{{\s*" + re.escape(str(key)) + r"\s*(?::[^:}]*?)?(?::[^}]*)?\s*}}"
        )
        prompt = pattern.sub(lambda _m: text, prompt)
    return prompt


def render_prompt(prompt: str, values: Mapping[str, Any]) -> str:
    """
    Substitute supplied values, then fall back to declared defaults.

    Placeholders with neither a value nor a default are left untouched.
    """
    rendered = replace_prompt_inputs(prompt or "", values)
    defaults = {
        item.name: item.default
        for item in extract_prompt_inputs(rendered)
        if item.default is not None and item.name not in values
    }
    if defaults:
        rendered = replace_prompt_inputs(rendered, defaults)
    return rendered


def missing_inputs(prompt: str, values: Mapping[str, Any]) -> list[PromptInput]:
    """Return user inputs of `prompt` that have neither a value nor a default."""
    return [
        item
        for item in extract_prompt_inputs(prompt, skip_system=True)
        if item.name not in values and item.default is None
    ]


def step_output_values(outputs: list[str]) -> dict[str, str]:
    """Map prior step outputs to their `output.N` variable names (1-based)."""
    return {f"{OUTPUT_VAR_PREFIX}{idx + 1}": text for idx, text in enumerate(outputs)}
