"""Tool registry and tool collections.

Builtin tools live in ``codeAgent.tools.builtin`` and tool-server bridging in
``codeAgent.tools.mcp``; only the registry is exported here.
"""

from .registry import TRUNCATION_MARKER, ToolMeta, ToolRegistry, ToolResult

__all__ = ["TRUNCATION_MARKER", "ToolMeta", "ToolRegistry", "ToolResult"]
