"""
Agent-to-agent (A2A) protocol client layer.
"""

from .errors import A2AError, A2AProtocolError, A2ATransportError
from .http_client import HttpA2AClient
from .types import (
    A2AArtifactChunk,
    A2AChunk,
    A2AClient,
    A2AContentChunk,
    A2ARequest,
    A2AStatusChunk,
)

__all__ = [
    "A2AArtifactChunk",
    "A2AChunk",
    "A2AClient",
    "A2AContentChunk",
    "A2ARequest",
    "A2AStatusChunk",
    "HttpA2AClient",
    "A2AError",
    "A2AProtocolError",
    "A2ATransportError",
]
