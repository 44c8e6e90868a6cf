"""Concrete LLM adapters."""

from .litellm import LiteLLMClient

__all__ = ["LiteLLMClient"]
