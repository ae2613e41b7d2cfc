"""The sequential tool-calling loop shared by every executor.

Turn shape::

    snapshot tools -> model call -> split valid/invalid calls
      -> persist cleaned assistant message -> report invalid calls
      -> for each valid call, in order:
           read-tracker checks -> permission (deny / confirm / auto)
           -> execute -> update read tracker + auto memo
      -> repeat until the model answers without tool calls

Every valid tool call of a persisted assistant message receives exactly one
tool message before the next model call, including when the loop is
interrupted halfway through a batch.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage
from langchain_core.messages.tool import InvalidToolCall, ToolCall, invalid_tool_call

from codeAgent.hitl.gate import ConfirmationGate, DenyAllGate
from codeAgent.llm.client import LLMClient
from codeAgent.tools.registry import ToolRegistry
from codeAgent.utils.error_handler import StreamAbortedError
from codeAgent.utils.logging_utils import (
    log_denied,
    log_error,
    log_tool_call,
    log_tool_result,
    log_visible_tools,
)

from .auto_memo import auto_memo_for_tool
from .callbacks import AgentCallbacks
from .conversation import Conversation
from .memo_store import MemoStore
from .read_tracker import ReadTracker
from .sub_agent_tracker import SubAgentTracker

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_OUTPUT = 30000

INVALID_ARGUMENTS_MESSAGE = "Error: tool arguments are not valid JSON\n{args}"
POLICY_DENIED_MESSAGE = 'Tool "{name}" is blocked by permission policy'
USER_DENIED_MESSAGE = "The user rejected this operation"
USER_DENIED_FEEDBACK_MESSAGE = "The user rejected this operation. User feedback: {feedback}"
NOT_ALLOWED_MESSAGE = 'Tool "{name}" is not available to this agent'
INTERRUPTED_MESSAGE = "Interrupted before this tool call ran"
TOOL_EXCEPTION_MESSAGE = "Error: tool execution exception: {error}"

ToolsProvider = Callable[[], List[Dict[str, Any]]]


def message_text(message: AIMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    return "".join(block.get("text", "") if isinstance(block, dict) else str(block) for block in content)


def split_tool_calls(message: AIMessage) -> Tuple[AIMessage, List[ToolCall], List[InvalidToolCall]]:
    """Return the message to persist plus its valid and invalid calls.

    The persisted copy keeps only calls whose arguments parsed to a JSON
    object, so the next request never carries unparsable history.
    """
    valid: List[ToolCall] = []
    invalid: List[InvalidToolCall] = list(message.invalid_tool_calls or [])
    for call in message.tool_calls or []:
        if isinstance(call.get("args"), dict):
            valid.append(call)
        else:
            invalid.append(
                invalid_tool_call(
                    name=call.get("name"), args=str(call.get("args")), id=call.get("id"),
                    error="arguments are not a JSON object",
                )
            )

    cleaned = message.model_copy(update={"tool_calls": valid, "invalid_tool_calls": []})
    return cleaned, valid, invalid


class ToolLoop:
    """Base for Agent, Coder, SubAgent, SubAgentRunner and Orchestrator.

    Subclasses pick the tool catalog and may hook two points:
    ``_intercept`` (handle a call before the normal pipeline) and
    ``_is_allowed`` (restrict which registry tools may run).
    """

    role = "agent"

    def __init__(
        self,
        client: LLMClient,
        registry: ToolRegistry,
        gate: Optional[ConfirmationGate] = None,
        *,
        max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
        memo_store: Optional[MemoStore] = None,
        tracker: Optional[SubAgentTracker] = None,
        streaming: bool = True,
    ) -> None:
        self.client = client
        self.registry = registry
        self.gate = gate or DenyAllGate()
        self.max_tool_output = max_tool_output
        self.memo_store = memo_store
        self.tracker = tracker
        self.streaming = streaming
        self._interrupted = False

    @property
    def interrupted(self) -> bool:
        return self._interrupted

    def interrupt(self) -> None:
        """Stop before the next model call and cancel the in-flight one.

        A tool execution that has already started runs to completion.
        """
        self._interrupted = True
        self.client.abort_active_stream()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _intercept(self, name: str, params: Dict[str, Any], callbacks: AgentCallbacks) -> Optional[str]:
        return None

    def _is_allowed(self, name: str) -> bool:
        return True

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def _call_model(self, conversation: Conversation, tools: Sequence[Dict[str, Any]], callbacks: AgentCallbacks) -> AIMessage:
        messages = conversation.get_messages()
        if self.streaming:
            return await self.client.chat_stream(messages, tools or None, callbacks)
        return await self.client.chat(messages, tools or None)

    async def run_loop(
        self,
        conversation: Conversation,
        read_tracker: ReadTracker,
        callbacks: AgentCallbacks,
        tools_provider: ToolsProvider,
        max_turns: Optional[int] = None,
    ) -> str:
        """Drive the conversation until a turn ends without tool calls; return the final text."""
        last_content = ""
        turn = 0

        while not self._interrupted:
            if max_turns is not None and turn >= max_turns:
                LOGGER.info(f"[{self.role}] turn limit reached ({max_turns})")
                break
            turn += 1

            # Re-read every turn so feature toggles apply to the next request
            tools = tools_provider()
            log_visible_tools(LOGGER, self.role, [t["function"]["name"] for t in tools])

            try:
                response = await self._call_model(conversation, tools, callbacks)
            except StreamAbortedError:
                if self._interrupted:
                    LOGGER.info(f"[{self.role}] interrupted during model call")
                    break
                raise

            if self.tracker is not None and response.usage_metadata:
                self.tracker.add_tokens(response.usage_metadata.get("total_tokens", 0))

            message, valid, invalid = split_tool_calls(response)
            conversation.add_assistant_message(message)

            for call in invalid:
                LOGGER.warning(f"[{self.role}] dropped tool call with invalid arguments: {call.get('name')}")
                if callbacks.on_tool_result:
                    callbacks.on_tool_result(
                        call.get("name") or "",
                        INVALID_ARGUMENTS_MESSAGE.format(args=call.get("args") or ""),
                        False,
                    )

            text = message_text(message)
            if not valid:
                last_content = text
                break

            await self._run_tool_calls(valid, conversation, read_tracker, callbacks)

            if text:
                last_content = text

        return last_content

    async def _run_tool_calls(
        self,
        calls: List[ToolCall],
        conversation: Conversation,
        read_tracker: ReadTracker,
        callbacks: AgentCallbacks,
    ) -> None:
        for position, call in enumerate(calls):
            if self._interrupted:
                for pending in calls[position:]:
                    conversation.add_tool_result(pending["id"], INTERRUPTED_MESSAGE, name=pending["name"])
                return
            content = await self._dispatch(call, read_tracker, callbacks)
            conversation.add_tool_result(call["id"], content, name=call["name"])

    async def _dispatch(self, call: ToolCall, read_tracker: ReadTracker, callbacks: AgentCallbacks) -> str:
        name = call["name"]
        params: Dict[str, Any] = call["args"]
        log_tool_call(LOGGER, name, params)

        try:
            intercepted = await self._intercept(name, params, callbacks)
            if intercepted is not None:
                return intercepted

            if not self._is_allowed(name):
                return NOT_ALLOWED_MESSAGE.format(name=name)

            if name == "edit-file":
                refusal = read_tracker.check_edit(str(params.get("path", "")))
                if refusal:
                    return refusal

            if name == "write-file":
                warning = read_tracker.check_write_overwrite(
                    str(params.get("path", "")), bool(params.get("overwrite", False))
                )
                if warning:
                    return warning

            level = self.registry.get_permission_level(name)
            if level == "deny":
                log_denied(LOGGER, name)
                if callbacks.on_denied:
                    callbacks.on_denied(name, None)
                return POLICY_DENIED_MESSAGE.format(name=name)

            if level == "confirm":
                decision = await self.gate.confirm(name, params)
                if not decision.approved:
                    log_denied(LOGGER, name, decision.feedback)
                    if callbacks.on_denied:
                        callbacks.on_denied(name, decision.feedback)
                    if decision.feedback:
                        return USER_DENIED_FEEDBACK_MESSAGE.format(feedback=decision.feedback)
                    return USER_DENIED_MESSAGE
                if decision.always:
                    self.registry.add_auto_approve(name)
            elif callbacks.on_tool_executing:
                callbacks.on_tool_executing(name, params)

            result = await self.registry.execute(name, params, self.max_tool_output)
            failed = result.content.startswith("Error")
            log_tool_result(LOGGER, name, result.content, success=not failed)
            if callbacks.on_tool_result:
                callbacks.on_tool_result(name, result.content, result.truncated)

            auto_memo_for_tool(self.memo_store, name, params, result.content)

            if not failed:
                if name == "read-file":
                    read_tracker.mark_read(str(params.get("path", "")))
                elif name == "write-file":
                    read_tracker.mark_written(str(params.get("path", "")))

            return result.content
        except Exception as e:
            log_error(LOGGER, e, context=f"{self.role} tool {name}")
            return TOOL_EXCEPTION_MESSAGE.format(error=e)
