"""stdio connection to one tool server."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

LOGGER = logging.getLogger(__name__)


def resolve_env(env: Dict[str, str]) -> Dict[str, str]:
    """Process environment plus ``env``; ``${NAME}`` values are looked up in os.environ."""
    full_env = os.environ.copy()
    for key, value in env.items():
        if value.startswith("${") and value.endswith("}"):
            full_env[key] = os.environ.get(value[2:-1], "")
        else:
            full_env[key] = value
    return full_env


class StdioMCPConnection:
    """Client session over a server process's stdin/stdout."""

    def __init__(self, server_id: str, command: str, args: List[str], env: Optional[Dict[str, str]] = None):
        self.server_id = server_id
        self.command = command
        self.args = args
        self.env = env or {}
        self._client: Optional[ClientSession] = None
        self._stdio_context = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def start(self) -> None:
        LOGGER.debug(f"Starting stdio server: {self.command} {' '.join(self.args)}")

        server_params = StdioServerParameters(command=self.command, args=self.args, env=resolve_env(self.env))

        # stdio_client is an async context manager; keep it open until close()
        stdio_context = stdio_client(server_params)
        read_stream, write_stream = await stdio_context.__aenter__()
        self._stdio_context = stdio_context

        self._client = ClientSession(read_stream, write_stream)
        await self._client.__aenter__()
        await self._client.initialize()
        self._initialized = True

        LOGGER.debug(f"Stdio connection established for server: {self.server_id}")

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        if not self._initialized:
            raise RuntimeError(f"Server not initialized: {self.server_id}")

        LOGGER.debug(f"Calling tool: {tool_name} on server {self.server_id}")
        result = await self._client.call_tool(tool_name, arguments)

        # CallToolResult.content mixes text and binary items; keep the text
        text_parts = [item.text for item in result.content or [] if hasattr(item, "text")]
        text = "\n".join(text_parts)
        if result.isError:
            return f"Error: {text or 'tool server reported an error'}"
        return text

    async def list_tools(self) -> List[Any]:
        if not self._initialized:
            raise RuntimeError(f"Server not initialized: {self.server_id}")

        result = await self._client.list_tools()
        return result.tools

    async def close(self) -> None:
        if self._client:
            try:
                await self._client.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"Error closing client session for {self.server_id}: {e}")
            self._client = None

        if self._stdio_context:
            try:
                await self._stdio_context.__aexit__(None, None, None)
            except Exception as e:
                LOGGER.warning(f"Error closing stdio context for {self.server_id}: {e}")
            self._stdio_context = None

        self._initialized = False
        LOGGER.debug(f"Closed stdio connection for server: {self.server_id}")
