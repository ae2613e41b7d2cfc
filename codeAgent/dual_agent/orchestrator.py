"""Planning role of the dual-agent setup.

The orchestrator runs the usual tool loop over the registry plus one
synthetic tool, ``send-to-coder``. A call to it builds a task message
(task, orchestrator context, memo index), starts a fresh :class:`Coder`
with the grant of the current collaboration mode, streams it through the
orchestrator's own callbacks and returns the coder's final text as the
tool result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from codeAgent.core.callbacks import AgentCallbacks, OrchestratorCallbacks
from codeAgent.core.conversation import Conversation
from codeAgent.core.loop import DEFAULT_MAX_TOOL_OUTPUT, ToolLoop
from codeAgent.core.memo_store import MemoStore
from codeAgent.core.read_tracker import ReadTracker
from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry
from codeAgent.utils.logging_utils import log_agent_response, log_user_message

from .coder import Coder
from .modes import MODES, ModeDefinition, get_mode

LOGGER = logging.getLogger(__name__)

SEND_TO_CODER = "send-to-coder"

SEND_TO_CODER_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": SEND_TO_CODER,
        "description": (
            "Send one atomic coding task to the coding agent. Send a single concrete step "
            "(1-3 files) per call; split multi-step work into several calls."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "task": {
                    "type": "string",
                    "description": "What to do, the target file paths and the concrete requirements",
                },
                "context": {
                    "type": "string",
                    "description": "Context needed to code it: dependencies, naming conventions, functions to reference, memo keys",
                },
            },
            "required": ["task"],
        },
    },
}

CODER_REMINDER = "[Important: start coding immediately; do not explore and do not print analysis]"
CODER_INTERRUPTED_MESSAGE = "Coder was interrupted before finishing"

ORCHESTRATOR_PROMPT = """{base}

# You are the orchestrator agent

Collaboration mode: {mode} - {description}

You scout and command; you do not write code yourself. Gather context, plan the
steps, then delegate them one by one to the coding agent with send-to-coder.

{guidance}

## Delegation
- Record cross-file decisions before delegating: `memo write plan:<topic> ...`
- Task format: [Goal] one sentence / [Files] target paths / [Requirements] names, formats, interfaces / [References] memo keys
- Foundations first (shared modules, utilities), dependants after
- After each step check the memo for what the coder created; send a fix if something is off
- Use bash yourself for builds and tests; it does not need delegating
- Memo entries named file:<path> hold full file contents and can be read at any time
- When all steps are done, tell the user the result briefly"""


class Orchestrator(ToolLoop):
    role = "orchestrator"

    def __init__(
        self,
        client: LLMClient,
        coder_client: LLMClient,
        registry: ToolRegistry,
        gate: Optional[ConfirmationGate],
        system_prompt: str,
        *,
        mode: str = "delegated",
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        memo_store: Optional[MemoStore] = None,
    ) -> None:
        super().__init__(client, registry, gate, max_tool_output=max_tool_output, memo_store=memo_store)
        self.coder_client = coder_client
        self.base_system_prompt = system_prompt
        self._mode = get_mode(mode).name
        self._active_coder: Optional[Coder] = None
        self.conversation = Conversation(self._build_system_prompt())
        self.read_tracker = ReadTracker()

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def mode_definition(self) -> ModeDefinition:
        return get_mode(self._mode)

    def _build_system_prompt(self) -> str:
        definition = self.mode_definition
        return ORCHESTRATOR_PROMPT.format(
            base=self.base_system_prompt,
            mode=definition.name,
            description=definition.description,
            guidance=definition.orchestrator_guidance,
        )

    def set_mode(self, mode: str) -> None:
        """Switch collaboration mode for future delegations.

        Only the system prompt changes; history and a running coder are untouched.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown collaboration mode: {mode}")
        self._mode = mode
        self.conversation.set_system_prompt(self._build_system_prompt())
        LOGGER.info(f"Collaboration mode set to {mode}")

    def _tool_definitions(self) -> List[Dict[str, Any]]:
        return [*self.registry.tool_definitions(), SEND_TO_CODER_TOOL]

    async def run(self, user_message: str, callbacks: Optional[OrchestratorCallbacks] = None) -> str:
        callbacks = callbacks or OrchestratorCallbacks()
        self._interrupted = False
        if callbacks.on_mode_info:
            callbacks.on_mode_info(self._mode)
        self.conversation.clear_reasoning_content()
        log_user_message(LOGGER, user_message)
        self.conversation.add_user_message(user_message)

        content = await self.run_loop(self.conversation, self.read_tracker, callbacks, self._tool_definitions)
        log_agent_response(LOGGER, content)
        return content

    async def _intercept(self, name: str, params: Dict[str, Any], callbacks: AgentCallbacks) -> Optional[str]:
        if name != SEND_TO_CODER:
            return None
        task = params.get("task")
        if not task:
            return "Error: send-to-coder requires a task"
        return await self.invoke_coder(str(task), params.get("context"), callbacks)

    def build_task_message(self, task: str, context: Optional[str] = None) -> str:
        """Task text plus orchestrator context and the memo index (keys and summaries only)."""
        message = task
        if context:
            message += f"\n\n[Orchestrator context]\n{context}"
        if self.memo_store is not None:
            index = self.memo_store.build_index()
            if index:
                message += f"\n\n[Shared memo]\n{index}"
        return message + f"\n\n{CODER_REMINDER}"

    async def invoke_coder(self, task: str, context: Optional[str], callbacks: AgentCallbacks) -> str:
        on_coder_start = getattr(callbacks, "on_coder_start", None)
        on_coder_end = getattr(callbacks, "on_coder_end", None)
        if on_coder_start:
            on_coder_start()

        definition = self.mode_definition
        coder = Coder(
            self.coder_client,
            self.registry,
            self.gate,
            definition.coder_system_prompt,
            definition.coder_tool_names if definition.coder_has_tools else (),
            max_tool_output=self.max_tool_output,
            memo_store=self.memo_store,
        )

        self._active_coder = coder
        try:
            response = await coder.execute(self.build_task_message(task, context), callbacks.agent_view())
        finally:
            self._active_coder = None

        if coder.interrupted and not response:
            response = CODER_INTERRUPTED_MESSAGE
        if on_coder_end:
            on_coder_end(response)
        return response

    def interrupt(self) -> None:
        super().interrupt()
        self.coder_client.abort_active_stream()
        if self._active_coder is not None:
            self._active_coder.interrupt()

    def get_conversation(self) -> Conversation:
        return self.conversation

    def reset(self) -> None:
        self.conversation.clear()
        self.read_tracker = ReadTracker()
