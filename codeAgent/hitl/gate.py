"""Human confirmation for ``confirm``-level tool calls.

Executors receive a :class:`ConfirmationGate` explicitly. Whichever
interactive surface is active registers itself on a :class:`SwitchableGate`
(line-based prompt or structured callback); without one, every request is
denied.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, TextIO

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfirmResult:
    approved: bool
    feedback: Optional[str] = None
    always: bool = False


class ConfirmationGate(ABC):
    @abstractmethod
    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        """Wait for a decision on one tool call."""


class DenyAllGate(ConfirmationGate):
    """Safe default when no interactive surface is attached."""

    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        LOGGER.info(f"No confirmation handler attached, denying {tool_name}")
        return ConfirmResult(approved=False)


StructuredHandler = Callable[[str, Dict[str, Any]], Awaitable[ConfirmResult]]


class CallbackGate(ConfirmationGate):
    """Structured surface: hands tool name and raw params to a UI callback."""

    def __init__(self, handler: StructuredHandler) -> None:
        self._handler = handler

    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        return await self._handler(tool_name, params)


def _preview(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def format_tool_detail(tool_name: str, params: Dict[str, Any]) -> str:
    """Render a tool call for a line-based confirmation prompt."""
    lines: List[str] = []

    if tool_name == "bash":
        lines.append(f"  command: {params.get('command', '')}")
    elif tool_name == "write-file":
        lines.append(f"  file:    {params.get('path', '')}")
        if params.get("content"):
            preview = _preview(str(params["content"]), 200)
            lines.append("  content: " + preview.replace("\n", "\n           "))
    elif tool_name == "edit-file":
        lines.append(f"  file:    {params.get('path', '')}")
        if params.get("old_string"):
            lines.append(f"  replace: {_preview(str(params['old_string']), 100)}")
        if params.get("new_string"):
            lines.append(f"  with:    {_preview(str(params['new_string']), 100)}")
    elif tool_name == "git":
        lines.append(f"  command: git {params.get('command', '')}")
    else:
        for key, value in params.items():
            text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
            lines.append(f"  {key}: {text[:120]}")

    return "\n".join(lines)


def parse_answer(answer: str) -> ConfirmResult:
    """Map a typed answer to a decision.

    ``y``/``yes`` approve once, ``a``/``always`` approve and promote the tool,
    empty/``n``/``no`` deny, anything else denies with the text as feedback.
    """
    text = answer.strip()
    lowered = text.lower()
    if lowered in ("y", "yes"):
        return ConfirmResult(approved=True)
    if lowered in ("a", "always"):
        return ConfirmResult(approved=True, always=True)
    if lowered in ("", "n", "no"):
        return ConfirmResult(approved=False)
    return ConfirmResult(approved=False, feedback=text)


async def _read_line(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


class PromptGate(ConfirmationGate):
    """Line-based surface: prints the call and waits for a typed answer."""

    def __init__(
        self,
        ask: Optional[Callable[[str], Awaitable[str]]] = None,
        output: Optional[TextIO] = None,
    ) -> None:
        self._ask = ask or _read_line
        self._output = output or sys.stderr

    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        detail = format_tool_detail(tool_name, params)
        self._output.write(f"\n⚠ Confirmation required [{tool_name}]\n{detail}\n")
        self._output.flush()
        try:
            answer = await self._ask("? Execute? (y)es / (N)o / (a)lways / or type feedback: ")
        except EOFError:
            answer = ""
        return parse_answer(answer)


class SwitchableGate(ConfirmationGate):
    """Indirection point the active surface registers itself with."""

    def __init__(self, handler: Optional[ConfirmationGate] = None) -> None:
        self._handler: ConfirmationGate = handler or DenyAllGate()

    def set_handler(self, handler: Optional[ConfirmationGate]) -> None:
        self._handler = handler or DenyAllGate()

    @property
    def handler(self) -> ConfirmationGate:
        return self._handler

    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        return await self._handler.confirm(tool_name, params)
