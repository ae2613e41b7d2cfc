"""Tool catalog, permission resolution and capped execution."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from langchain_core.tools import BaseTool
from langchain_core.utils.function_calling import convert_to_openai_tool

from codeAgent.config.settings import PermissionLevel, PermissionSettings

LOGGER = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[output truncated]"


@dataclass(frozen=True, slots=True)
class ToolMeta:
    """Describes governance attributes for a tool."""

    name: str
    permission: PermissionLevel = "confirm"
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ToolResult:
    content: str
    truncated: bool = False


@dataclass(slots=True)
class PermissionOverrides:
    auto_approve: List[str] = field(default_factory=list)
    require_approval: List[str] = field(default_factory=list)


class ToolRegistry:
    """Tracks tool instances, their default permission and config overrides.

    Effective permission: ``auto_approve`` list, then ``require_approval``
    list, then the tool's registered default; unknown tools resolve to
    ``confirm``.
    """

    def __init__(self, permissions: Optional[PermissionSettings] = None) -> None:
        self._tools: Dict[str, BaseTool] = {}
        self._meta: Dict[str, ToolMeta] = {}
        self._overrides: Optional[PermissionOverrides] = None
        if permissions is not None:
            self.set_permissions(permissions)

    def register(self, tool: BaseTool, permission: PermissionLevel = "confirm", tags: Iterable[str] = ()) -> None:
        self._tools[tool.name] = tool
        self._meta[tool.name] = ToolMeta(name=tool.name, permission=permission, tags=tuple(tags))
        LOGGER.debug(f"Registered tool: {tool.name} ({permission})")

    def unregister(self, name: str) -> bool:
        self._meta.pop(name, None)
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def get_meta(self, name: str) -> Optional[ToolMeta]:
        return self._meta.get(name)

    def list_tools(self, tag: Optional[str] = None) -> List[str]:
        """Registered tool names; with ``tag``, only tools registered under it."""
        if tag is None:
            return list(self._tools.keys())
        return [name for name, meta in self._meta.items() if tag in meta.tags]

    def allowed_tools(self, allowlist: Optional[Iterable[str]] = None) -> List[BaseTool]:
        """Registered tools, optionally filtered by name (registration order is kept)."""
        if allowlist is None:
            return list(self._tools.values())
        wanted = set(allowlist)
        return [tool for name, tool in self._tools.items() if name in wanted]

    def tool_definitions(self, allowlist: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """Export tools in OpenAI function-calling format."""
        return [convert_to_openai_tool(tool) for tool in self.allowed_tools(allowlist)]

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def set_permissions(self, permissions: PermissionSettings) -> None:
        self._overrides = PermissionOverrides(
            auto_approve=list(permissions.auto_approve),
            require_approval=list(permissions.require_approval),
        )

    def add_auto_approve(self, name: str) -> None:
        """Promote a tool to always-allowed (the "always" answer at a confirmation prompt)."""
        if self._overrides is None:
            self._overrides = PermissionOverrides()
        if name not in self._overrides.auto_approve:
            self._overrides.auto_approve.append(name)
        self._overrides.require_approval = [n for n in self._overrides.require_approval if n != name]
        LOGGER.info(f"Tool promoted to auto-approve: {name}")

    def get_permission_level(self, name: str) -> PermissionLevel:
        if self._overrides is not None:
            if name in self._overrides.auto_approve:
                return "auto"
            if name in self._overrides.require_approval:
                return "confirm"
        meta = self._meta.get(name)
        return meta.permission if meta else "confirm"

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, name: str, params: Dict[str, Any], max_output: int) -> ToolResult:
        """Run a tool; never raises. Failures come back as ``Error: ...`` content."""
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult(content=f'Error: tool "{name}" not found')

        try:
            output = await tool.ainvoke(params)
        except Exception as e:
            LOGGER.warning(f"Tool {name} raised: {e}")
            return ToolResult(content=f"Error: tool execution failed: {e}")

        content = output if isinstance(output, str) else json.dumps(output, ensure_ascii=False, default=str)

        if len(content) > max_output:
            return ToolResult(content=content[:max_output] + TRUNCATION_MARKER, truncated=True)

        return ToolResult(content=content)
