"""
Runtime helpers shared by executors, recovery and the runner.
"""

from __future__ import annotations

import secrets
import string
from typing import Callable, Iterable

from .errors import AgentConfigurationError, InvalidStatusTransition
from .types import RunStatus

WEBHOOK_TOKEN_LENGTH = 8
WEBHOOK_TOKEN_ALPHABET = string.ascii_lowercase + string.digits
WEBHOOK_TOKEN_MAX_ATTEMPTS = 10


_ALLOWED_TRANSITIONS: dict[RunStatus, set[RunStatus]] = {
    "running": {"success", "error", "canceled"},
    "success": set(),
    "error": set(),
    "canceled": set(),
}


def validate_status_transition(current: RunStatus, target: RunStatus) -> RunStatus:
    """Validate and return a legal run status transition target."""
    allowed = _ALLOWED_TRANSITIONS.get(current, set())
    if target not in allowed:
        raise InvalidStatusTransition(
            f"Invalid run status transition: {current} -> {target}"
        )
    return target


def run_key(agent_id: str, run_id: str) -> str:
    """Return the composite key shared by presence entries and abort handles."""
    return f"{agent_id}:{run_id}"


def random_webhook_token() -> str:
    return "".join(secrets.choice(WEBHOOK_TOKEN_ALPHABET) for _ in range(WEBHOOK_TOKEN_LENGTH))


def allocate_webhook_token(
    existing: Iterable[str | None],
    *,
    generator: Callable[[], str] = random_webhook_token,
    max_attempts: int = WEBHOOK_TOKEN_MAX_ATTEMPTS,
) -> str:
    """
    Return a token that collides with none of `existing`.

    Raises:
        AgentConfigurationError: When no unique token is found in `max_attempts`.
    """
    taken = {token for token in existing if token}
    for _ in range(max_attempts):
        token = generator()
        if token not in taken:
            return token
    raise AgentConfigurationError("Failed to generate unique webhook token")
