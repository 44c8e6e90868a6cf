"""
Outbound event sinks used to tell UIs about run state changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

AGENT_RUN_UPDATE = "agent-run-update"


class BroadcastSink(Protocol):
    """Protocol implemented by event transports (IPC, websockets, queues...)."""

    def send(self, event: str, payload: dict[str, Any]) -> None:
        """
        Deliver one event to every listener.

        Args:
            event: Event name, e.g. `agent-run-update`.
            payload: JSON-safe payload.
        """
        ...


@dataclass(slots=True)
class NullBroadcastSink:
    """No-op sink used when nothing listens."""

    def send(self, event: str, payload: dict[str, Any]) -> None:
        _ = event
        _ = payload
        return None


@dataclass(slots=True)
class InMemoryBroadcastSink:
    """Test/debug sink that keeps every event it receives."""

    _sent: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def send(self, event: str, payload: dict[str, Any]) -> None:
        self._sent.append((event, payload))

    def events(self, name: str | None = None) -> list[tuple[str, dict[str, Any]]]:
        """Return captured events, optionally filtered by name."""
        return [item for item in self._sent if name is None or item[0] == name]

    def payloads(self, name: str = AGENT_RUN_UPDATE) -> list[dict[str, Any]]:
        return [payload for event, payload in self._sent if event == name]

    def clear(self) -> None:
        self._sent.clear()


@dataclass(slots=True)
class CallbackBroadcastSink:
    """
    Sink forwarding to a plain callable.

    Listener failures are logged and never reach the tracker.
    """

    callback: Callable[[str, dict[str, Any]], None]

    def send(self, event: str, payload: dict[str, Any]) -> None:
        try:
            self.callback(event, payload)
        except Exception:
            logger.exception("Broadcast listener failed for %s", event)
