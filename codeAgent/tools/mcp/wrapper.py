"""BaseTool wrapper around one tool of a tool server."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from langchain_core.tools import BaseTool
from pydantic import ConfigDict, Field

from codeAgent.utils.error_handler import ToolExecutionError

LOGGER = logging.getLogger(__name__)

EMPTY_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}


def tool_name_for(server_id: str, tool_name: str) -> str:
    return f"mcp-{server_id}-{tool_name}"


class MCPToolWrapper(BaseTool):
    """Forwards calls to the server through the manager (which starts it lazily)."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    server_id: str = Field(description="MCP server identifier")
    original_tool_name: str = Field(description="Tool name on the server")
    manager: Any = Field(description="MCPServerManager instance", exclude=True)

    def __init__(
        self,
        server_id: str,
        original_tool_name: str,
        description: str,
        manager: Any,
        input_schema: Optional[Dict[str, Any]] = None,
    ):
        schema = dict(input_schema or EMPTY_SCHEMA)
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        super().__init__(
            name=tool_name_for(server_id, original_tool_name),
            description=description or f"MCP tool: {original_tool_name}",
            args_schema=schema,
            server_id=server_id,
            original_tool_name=original_tool_name,
            manager=manager,
        )

    async def _arun(self, **kwargs: Any) -> str:
        try:
            connection = await self.manager.get_server(self.server_id)
            LOGGER.debug(f"Executing MCP tool: {self.name} (server: {self.server_id})")
            return await connection.call_tool(self.original_tool_name, kwargs)
        except Exception as e:
            LOGGER.error(f"MCP tool {self.name} failed on server {self.server_id}: {e}")
            return f"Error: MCP tool execution failed: {e}"

    def _run(self, **kwargs: Any) -> str:
        raise ToolExecutionError(f"{self.name} only supports async execution")
