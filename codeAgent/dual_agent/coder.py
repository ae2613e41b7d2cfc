"""Executor role of the dual-agent setup.

Short-lived: each delegated task gets a new conversation and a new read
tracker, so a coder must re-read a file inside its own task even when an
earlier task already read it.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from codeAgent.core.callbacks import AgentCallbacks
from codeAgent.core.conversation import Conversation
from codeAgent.core.loop import DEFAULT_MAX_TOOL_OUTPUT, ToolLoop
from codeAgent.core.memo_store import MemoStore
from codeAgent.core.read_tracker import ReadTracker
from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


class Coder(ToolLoop):
    role = "coder"

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        gate: Optional[ConfirmationGate],
        system_prompt: str,
        tool_names: Sequence[str],
        *,
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        memo_store: Optional[MemoStore] = None,
    ) -> None:
        super().__init__(client, registry, gate, max_tool_output=max_tool_output, memo_store=memo_store)
        self.system_prompt = system_prompt
        self.tool_names: List[str] = list(tool_names)
        self.last_conversation: Optional[Conversation] = None

    def _is_allowed(self, name: str) -> bool:
        return name in self.tool_names

    def _tool_definitions(self):
        if not self.tool_names:
            return []
        return self.registry.tool_definitions(self.tool_names)

    async def execute(self, task_message: str, callbacks: Optional[AgentCallbacks] = None) -> str:
        """Run one delegated task in a fresh conversation and return the final text."""
        conversation = Conversation(self.system_prompt)
        conversation.add_user_message(task_message)
        self.last_conversation = conversation

        LOGGER.info(f"Coder started with tools: {self.tool_names or 'none'}")
        return await self.run_loop(conversation, ReadTracker(), callbacks or AgentCallbacks(), self._tool_definitions)
