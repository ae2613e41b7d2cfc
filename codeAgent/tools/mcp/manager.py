"""Tool-server lifecycle manager with lazy startup."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterable, List

from codeAgent.config.settings import McpServerSettings

from .connection import StdioMCPConnection

LOGGER = logging.getLogger(__name__)

DEFAULT_STARTUP_TIMEOUT = 30.0

ConnectionFactory = Callable[[McpServerSettings], StdioMCPConnection]


def create_connection(server: McpServerSettings) -> StdioMCPConnection:
    return StdioMCPConnection(server.name, server.command, list(server.args), dict(server.env))


class MCPServerManager:
    """Starts a configured server on first use and reuses the connection afterwards."""

    def __init__(
        self,
        servers: Iterable[McpServerSettings],
        startup_timeout: float = DEFAULT_STARTUP_TIMEOUT,
        connection_factory: ConnectionFactory = create_connection,
    ):
        self._server_configs: Dict[str, McpServerSettings] = {server.name: server for server in servers}
        self._servers: Dict[str, StdioMCPConnection] = {}
        self._startup_timeout = startup_timeout
        self._connection_factory = connection_factory

    async def get_server(self, server_id: str) -> StdioMCPConnection:
        """Return the connection for ``server_id``, starting the process if needed.

        Raises:
            ValueError: If the server is not configured
            RuntimeError: If the server fails to start
        """
        if server_id in self._servers:
            return self._servers[server_id]

        if server_id not in self._server_configs:
            raise ValueError(f"MCP server not configured: {server_id}")

        LOGGER.info(f"Starting MCP server: {server_id}")
        connection = self._connection_factory(self._server_configs[server_id])
        try:
            await asyncio.wait_for(connection.start(), timeout=self._startup_timeout)
        except asyncio.TimeoutError:
            raise RuntimeError(f"MCP server startup timeout: {server_id}") from None
        except Exception as e:
            raise RuntimeError(f"Failed to start MCP server '{server_id}': {e}") from e

        self._servers[server_id] = connection
        LOGGER.info(f"MCP server started: {server_id}")
        return connection

    async def shutdown(self) -> None:
        """Close every started server; call on application exit."""
        if not self._servers:
            return

        LOGGER.info(f"Shutting down {len(self._servers)} MCP server(s)...")
        for server_id, connection in self._servers.items():
            try:
                await connection.close()
            except Exception as e:
                LOGGER.error(f"Failed to close {server_id}: {e}")
        self._servers.clear()

    def is_server_started(self, server_id: str) -> bool:
        return server_id in self._servers

    def list_configured_servers(self) -> List[str]:
        return list(self._server_configs.keys())

    def list_started_servers(self) -> List[str]:
        return list(self._servers.keys())
