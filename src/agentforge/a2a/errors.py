"""
A2A client error taxonomy.
"""

from __future__ import annotations


class A2AError(Exception):
    """Base exception for agent-to-agent protocol failures."""


class A2AProtocolError(A2AError):
    """The remote answered with a JSON-RPC error or an unparseable event."""


class A2ATransportError(A2AError):
    """The HTTP exchange with the remote agent failed."""
