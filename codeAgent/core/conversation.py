"""Ordered message log for one executor."""

from __future__ import annotations

from typing import List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage


class Conversation:
    """System prompt plus an append-only list of LangChain messages.

    No ordering validation happens here: keeping every tool call paired with
    exactly one tool message is the caller's job (see ``core.loop``).
    """

    def __init__(self, system_prompt: Optional[str] = None) -> None:
        self._system_prompt = system_prompt
        self._messages: List[BaseMessage] = []

    @property
    def system_prompt(self) -> Optional[str]:
        return self._system_prompt

    def set_system_prompt(self, prompt: str) -> None:
        self._system_prompt = prompt

    def add_user_message(self, content: str) -> HumanMessage:
        message = HumanMessage(content=content)
        self._messages.append(message)
        return message

    def add_assistant_message(self, message: AIMessage) -> AIMessage:
        self._messages.append(message)
        return message

    def add_tool_result(self, tool_call_id: str, content: str, name: Optional[str] = None) -> ToolMessage:
        message = ToolMessage(content=content, tool_call_id=tool_call_id, name=name)
        self._messages.append(message)
        return message

    def add_message(self, message: BaseMessage) -> None:
        self._messages.append(message)

    def get_messages(self) -> List[BaseMessage]:
        """Messages to send to the model; the system prompt is prepended to a fresh list."""
        messages: List[BaseMessage] = []
        if self._system_prompt:
            messages.append(SystemMessage(content=self._system_prompt))
        messages.extend(self._messages)
        return messages

    def clear_reasoning_content(self) -> int:
        """Strip ``reasoning_content`` from earlier assistant messages; returns how many changed.

        Reasoning must survive within one tool-call loop but is dead weight once
        a new user turn starts.
        """
        cleared = 0
        for position, message in enumerate(self._messages):
            if isinstance(message, AIMessage) and "reasoning_content" in message.additional_kwargs:
                kwargs = {k: v for k, v in message.additional_kwargs.items() if k != "reasoning_content"}
                self._messages[position] = message.model_copy(update={"additional_kwargs": kwargs})
                cleared += 1
        return cleared

    def get_history(self) -> List[BaseMessage]:
        return list(self._messages)

    def clear(self) -> None:
        """Drop history, keep the system prompt."""
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)
