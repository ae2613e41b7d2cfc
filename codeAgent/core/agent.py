"""Single-role agent: one long-lived loop over the whole tool registry.

Message flow::

    user input -> messages -> model (with tools) -> response
      ├─ tool calls -> execute -> results appended -> back to the model
      └─ plain text -> return
"""

from __future__ import annotations

import logging
from typing import List, Optional

from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry
from codeAgent.utils.logging_utils import log_agent_response, log_user_message

from .callbacks import AgentCallbacks
from .conversation import Conversation
from .loop import DEFAULT_MAX_TOOL_OUTPUT, ToolLoop
from .memo_store import MemoStore
from .read_tracker import ReadTracker

LOGGER = logging.getLogger(__name__)


class Agent(ToolLoop):
    role = "agent"

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        gate: Optional[ConfirmationGate],
        system_prompt: str,
        *,
        tools: Optional[List[str]] = None,
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        memo_store: Optional[MemoStore] = None,
    ) -> None:
        super().__init__(client, registry, gate, max_tool_output=max_tool_output, memo_store=memo_store)
        self.conversation = Conversation(system_prompt)
        self.read_tracker = ReadTracker()
        self._fixed_tools = tools

    def _tool_definitions(self):
        return self.registry.tool_definitions(self._fixed_tools)

    async def run(self, user_message: str, callbacks: Optional[AgentCallbacks] = None) -> str:
        """Run one user turn to completion and return the final assistant text."""
        callbacks = callbacks or AgentCallbacks()
        self._interrupted = False
        self.conversation.clear_reasoning_content()
        log_user_message(LOGGER, user_message)
        self.conversation.add_user_message(user_message)

        content = await self.run_loop(self.conversation, self.read_tracker, callbacks, self._tool_definitions)
        log_agent_response(LOGGER, content)
        return content

    def get_conversation(self) -> Conversation:
        return self.conversation

    def reset(self) -> None:
        """Forget history and file observations (new session)."""
        self.conversation.clear()
        self.read_tracker = ReadTracker()
