"""Lightweight fan-out worker: own conversation, read-mostly tools, no streaming."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry
from codeAgent.utils.error_handler import SubAgentTimeoutError

from .callbacks import AgentCallbacks
from .conversation import Conversation
from .loop import DEFAULT_MAX_TOOL_OUTPUT, ToolLoop
from .memo_store import MemoStore
from .read_tracker import ReadTracker
from .sub_agent_tracker import SubAgentTracker

LOGGER = logging.getLogger(__name__)

DEFAULT_SUB_AGENT_TOOLS = ("read-file", "glob", "grep")
# No sub-agent may start further sub-agents or touch the shared plan
EXCLUDED_SUB_AGENT_TOOLS = frozenset({"spawn-agents", "dispatch", "todo"})
DEFAULT_MAX_TURNS = 10
MAX_TURNS_LIMIT = 15
DEFAULT_TIMEOUT = 120.0

SUB_AGENT_PROMPT = "You are a codeAgent sub-agent. Your task: {task}\nReturn the result directly when done, without extra explanation."


class SubAgent(ToolLoop):
    role = "sub-agent"

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        task: str,
        allowed_tools: Optional[Iterable[str]] = None,
        max_turns: int = DEFAULT_MAX_TURNS,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        gate: Optional[ConfirmationGate] = None,
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        memo_store: Optional[MemoStore] = None,
        tracker: Optional[SubAgentTracker] = None,
        name: str = "sub-agent",
    ) -> None:
        super().__init__(
            client, registry, gate,
            max_tool_output=max_tool_output, memo_store=memo_store, tracker=tracker, streaming=False,
        )
        tools = DEFAULT_SUB_AGENT_TOOLS if allowed_tools is None else allowed_tools
        self.task = task
        self.name = name
        self.allowed_tools = [t for t in tools if t not in EXCLUDED_SUB_AGENT_TOOLS]
        self.max_turns = max(1, min(max_turns, MAX_TURNS_LIMIT))
        self.timeout = timeout

    def _is_allowed(self, name: str) -> bool:
        return name in self.allowed_tools

    async def run(self) -> str:
        """Execute the task, raising :class:`SubAgentTimeoutError` past the deadline."""
        try:
            return await asyncio.wait_for(self._execute(), timeout=self.timeout)
        except asyncio.TimeoutError:
            LOGGER.warning(f"{self.name} timed out after {self.timeout}s: {self.task[:80]}")
            raise SubAgentTimeoutError(self.name, self.timeout) from None

    async def _execute(self) -> str:
        conversation = Conversation(SUB_AGENT_PROMPT.format(task=self.task))
        conversation.add_user_message(self.task)
        definitions = self.registry.tool_definitions(self.allowed_tools)
        return await self.run_loop(
            conversation, ReadTracker(), AgentCallbacks(), lambda: definitions, max_turns=self.max_turns,
        )
