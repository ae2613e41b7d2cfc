"""Builtin tools and their default permission levels."""

from __future__ import annotations

from typing import Dict

from langchain_core.tools import BaseTool

from codeAgent.config.settings import PermissionLevel
from codeAgent.tools.registry import ToolRegistry

from .bash import bash, git
from .dispatch import make_dispatch_tool
from .edit_file import edit_file
from .file_ops import read_file, write_file
from .memo import make_memo_tool
from .search import glob_files, grep_files
from .spawn_agents import make_spawn_agents_tool
from .todo import make_todo_tool

DEFAULT_PERMISSIONS: Dict[str, PermissionLevel] = {
    "read-file": "auto",
    "write-file": "confirm",
    "edit-file": "confirm",
    "bash": "confirm",
    "glob": "auto",
    "grep": "auto",
    "git": "confirm",
    "memo": "auto",
    "todo": "auto",
    "spawn-agents": "auto",
    "dispatch": "auto",
}

CORE_TOOLS = (read_file, write_file, edit_file, bash, glob_files, grep_files)


def register_tool(registry: ToolRegistry, tool: BaseTool) -> None:
    """Register with the tool's default permission level (``confirm`` when unknown)."""
    registry.register(tool, DEFAULT_PERMISSIONS.get(tool.name, "confirm"), tags=("builtin",))


def register_core_tools(registry: ToolRegistry) -> None:
    """read-file, write-file, edit-file, bash, glob, grep."""
    for tool in CORE_TOOLS:
        register_tool(registry, tool)


__all__ = [
    "CORE_TOOLS",
    "DEFAULT_PERMISSIONS",
    "bash",
    "edit_file",
    "git",
    "glob_files",
    "grep_files",
    "make_dispatch_tool",
    "make_memo_tool",
    "make_spawn_agents_tool",
    "make_todo_tool",
    "read_file",
    "register_core_tools",
    "register_tool",
    "write_file",
]
