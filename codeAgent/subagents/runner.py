"""Run one configured sub-agent to completion."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from codeAgent.core.callbacks import AgentCallbacks
from codeAgent.core.conversation import Conversation
from codeAgent.core.loop import DEFAULT_MAX_TOOL_OUTPUT, ToolLoop
from codeAgent.core.read_tracker import ReadTracker
from codeAgent.core.sub_agent import EXCLUDED_SUB_AGENT_TOOLS
from codeAgent.core.sub_agent_tracker import SubAgentTracker
from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry
from codeAgent.utils.error_handler import SubAgentTimeoutError

from .types import SubAgentConfig

LOGGER = logging.getLogger(__name__)


class SubAgentRunner(ToolLoop):
    """Streams through the caller's callbacks so its output shows up live.

    Tool calls go through the same read-tracker and permission checks as the
    main agent; tools outside ``config.tools`` are refused, and so are the
    fan-out tools even when a config lists them.
    """

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        config: SubAgentConfig,
        gate: Optional[ConfirmationGate] = None,
        *,
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        tracker: Optional[SubAgentTracker] = None,
    ) -> None:
        super().__init__(client, registry, gate, max_tool_output=max_tool_output, tracker=tracker)
        self.config = config
        self.role = f"sub-agent:{config.name}"
        self.allowed_tools = [t for t in config.tools if t not in EXCLUDED_SUB_AGENT_TOOLS]

    def _is_allowed(self, name: str) -> bool:
        return name in self.allowed_tools

    async def execute(
        self,
        task: str,
        context: Optional[str] = None,
        callbacks: Optional[AgentCallbacks] = None,
    ) -> str:
        """Run ``task``; raises :class:`SubAgentTimeoutError` past ``config.timeout``."""
        try:
            return await asyncio.wait_for(
                self._run(task, context, callbacks or AgentCallbacks()), timeout=self.config.timeout
            )
        except asyncio.TimeoutError:
            LOGGER.warning(f"Sub-agent {self.config.name} timed out after {self.config.timeout}s")
            raise SubAgentTimeoutError(self.config.name, self.config.timeout) from None

    async def _run(self, task: str, context: Optional[str], callbacks: AgentCallbacks) -> str:
        message = task
        if context:
            message += f"\n\n[Context]\n{context}"

        conversation = Conversation(self.config.prompt)
        conversation.add_user_message(message)

        definitions = self.registry.tool_definitions(self.allowed_tools)
        LOGGER.info(f"Sub-agent {self.config.name} started (max_turns={self.config.max_turns})")
        return await self.run_loop(
            conversation, ReadTracker(), callbacks, lambda: definitions, max_turns=self.config.max_turns,
        )
