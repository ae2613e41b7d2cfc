"""Bridge tool-server tools into the ToolRegistry."""

from __future__ import annotations

import logging
from typing import List

from codeAgent.tools.registry import ToolRegistry

from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

LOGGER = logging.getLogger(__name__)


async def bridge_mcp_tools(manager: MCPServerManager, registry: ToolRegistry, server_id: str) -> List[str]:
    """Start ``server_id``, list its tools and register each one at ``confirm`` level."""
    connection = await manager.get_server(server_id)
    registered: List[str] = []

    for server_tool in await connection.list_tools():
        wrapper = MCPToolWrapper(
            server_id=server_id,
            original_tool_name=server_tool.name,
            description=server_tool.description or "",
            manager=manager,
            input_schema=server_tool.inputSchema,
        )
        registry.register(wrapper, "confirm", tags=("mcp", server_id))
        registered.append(wrapper.name)
        LOGGER.info(f"Loaded MCP tool: {wrapper.name}")

    return registered


async def connect_mcp_servers(manager: MCPServerManager, registry: ToolRegistry) -> List[str]:
    """Bridge every configured server; a server that fails is logged and skipped."""
    registered: List[str] = []
    for server_id in manager.list_configured_servers():
        try:
            registered.extend(await bridge_mcp_tools(manager, registry, server_id))
        except Exception as e:
            LOGGER.error(f"MCP server '{server_id}' failed to connect: {e}")
    return registered
