"""Model client."""

from .client import LLMClient, ToolCallAccumulator

__all__ = ["LLMClient", "ToolCallAccumulator"]
