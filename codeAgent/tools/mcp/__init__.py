"""Tool-server (MCP) integration."""

from .loader import bridge_mcp_tools, connect_mcp_servers
from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

__all__ = [
    "MCPServerManager",
    "MCPToolWrapper",
    "bridge_mcp_tools",
    "connect_mcp_servers",
]
