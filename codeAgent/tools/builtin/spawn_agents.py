"""spawn-agents: run up to ten read-mostly sub-agents concurrently.

Each task runs in its own :class:`SubAgent` with its own conversation and
timeout. Failures are isolated per task; the tool always returns one
combined report.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Any, Dict, List, Optional, Sequence, Tuple

from langchain_core.tools import BaseTool, tool

from codeAgent.core.loop import DEFAULT_MAX_TOOL_OUTPUT
from codeAgent.core.sub_agent import (
    DEFAULT_MAX_TURNS,
    DEFAULT_SUB_AGENT_TOOLS,
    DEFAULT_TIMEOUT,
    EXCLUDED_SUB_AGENT_TOOLS,
    MAX_TURNS_LIMIT,
    SubAgent,
)
from codeAgent.core.sub_agent_tracker import SubAgentTracker
from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)

__all__ = ["MAX_CONCURRENT_TASKS", "make_spawn_agents_tool", "resolve_task_tools", "format_report"]

MAX_CONCURRENT_TASKS = 10


def resolve_task_tools(registry: ToolRegistry, requested: Optional[Sequence[str]]) -> List[str]:
    """Requested (or default) tools that are globally ``auto``, minus the excluded ones.

    Falls back to the auto subset of the default set when nothing is left.
    """
    auto_tools = {
        name for name in registry.list_tools()
        if registry.get_permission_level(name) == "auto" and name not in EXCLUDED_SUB_AGENT_TOOLS
    }
    candidates = requested if requested else DEFAULT_SUB_AGENT_TOOLS
    tools = [name for name in candidates if name in auto_tools]
    if not tools:
        tools = [name for name in DEFAULT_SUB_AGENT_TOOLS if name in auto_tools]
    return tools


def format_report(descriptions: Sequence[str], results: Sequence[Tuple[bool, str]]) -> str:
    succeeded = sum(1 for ok, _ in results if ok)
    failed = len(results) - succeeded

    sections = []
    for i, (description, (ok, value)) in enumerate(zip(descriptions, results), start=1):
        header = f"=== {'✓' if ok else '✗'} Task {i}: {description} ==="
        sections.append(f"{header}\n{value}" if ok else f"{header}\nError: {value}")

    return f"[{succeeded} succeeded, {failed} failed]\n\n" + "\n\n".join(sections)


def make_spawn_agents_tool(
    client: LLMClient,
    registry: ToolRegistry,
    *,
    gate: Optional[ConfirmationGate] = None,
    tracker: Optional[SubAgentTracker] = None,
    max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
    timeout: float = DEFAULT_TIMEOUT,
) -> BaseTool:
    async def settle(agent: SubAgent) -> Tuple[bool, str]:
        try:
            value = await agent.run()
        except Exception as e:
            LOGGER.warning(f"{agent.name} failed: {e}")
            if tracker is not None:
                tracker.mark_failed()
            return False, str(e)
        if tracker is not None:
            tracker.mark_completed()
        return True, value

    @tool("spawn-agents")
    async def spawn_agents(
        tasks: Annotated[
            List[Dict[str, Any]],
            "Tasks to run in parallel: {description: str, tools?: [str]} objects. "
            "tools defaults to read-file, glob, grep and may not include spawn-agents",
        ],
        max_turns: Annotated[Optional[int], f"Max turns per sub-agent (default {DEFAULT_MAX_TURNS}, limit {MAX_TURNS_LIMIT})"] = None,
    ) -> str:
        """Start several sub-agents in parallel, each with its own conversation.

        By default they can only use read-only tools (read-file, glob, grep).
        Use it to read and analyse several files or search several patterns at once.
        """
        if not tasks:
            return "Error: no tasks provided"
        if len(tasks) > MAX_CONCURRENT_TASKS:
            return f"Error: at most {MAX_CONCURRENT_TASKS} concurrent tasks are supported"
        if any(not isinstance(task, dict) or not task.get("description") for task in tasks):
            return "Error: every task needs a description"

        turns = min(max_turns or DEFAULT_MAX_TURNS, MAX_TURNS_LIMIT)
        descriptions = [str(task["description"]) for task in tasks]

        agents = [
            SubAgent(
                client,
                registry,
                description,
                resolve_task_tools(registry, task.get("tools")),
                turns,
                timeout,
                gate=gate,
                max_tool_output=max_tool_output,
                tracker=tracker,
                name=f"sub-agent-{i}",
            )
            for i, (task, description) in enumerate(zip(tasks, descriptions), start=1)
        ]

        LOGGER.info(f"Spawning {len(agents)} sub-agents (max_turns={turns})")
        if tracker is not None:
            tracker.start(descriptions)
        try:
            results = await asyncio.gather(*(settle(agent) for agent in agents))
        finally:
            if tracker is not None:
                tracker.finish()

        return format_report(descriptions, results)

    return spawn_agents
