"""Pytest configuration and fixtures for all tests.

Model calls go to :class:`ScriptedChatModel`, a LangChain chat model that
replays pre-built ``AIMessage`` objects (streamed as real chunks with
tool-call fragments). Confirmations go to :class:`RecordingGate`.
"""

import asyncio
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage
from langchain_core.messages.tool import tool_call, tool_call_chunk
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult
from pydantic import Field

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from codeAgent.config.project_root import WORKSPACE_ENV  # noqa: E402
from codeAgent.hitl.gate import ConfirmationGate, ConfirmResult  # noqa: E402
from codeAgent.llm.client import LLMClient  # noqa: E402
from codeAgent.tools.builtin import register_core_tools  # noqa: E402
from codeAgent.tools.registry import ToolRegistry  # noqa: E402


# ========== scripted model ==========


@dataclass
class Slow:
    """A scripted response delivered after ``seconds``."""

    seconds: float
    message: AIMessage


Scripted = Union[AIMessage, Slow]


def ai(
    content: str = "", *calls: Dict[str, Any], usage: Optional[int] = None, reasoning: Optional[str] = None,
) -> AIMessage:
    """AIMessage with ``{"name", "args", "id"}`` tool calls, optional total token usage and reasoning."""
    usage_metadata = None
    if usage is not None:
        usage_metadata = {"input_tokens": usage, "output_tokens": 0, "total_tokens": usage}
    return AIMessage(
        content=content,
        tool_calls=[tool_call(name=c["name"], args=c["args"], id=c["id"]) for c in calls],
        additional_kwargs={"reasoning_content": reasoning} if reasoning else {},
        usage_metadata=usage_metadata,
    )


def call(name: str, call_id: str, **args: Any) -> Dict[str, Any]:
    return {"name": name, "args": args, "id": call_id}


class ScriptedChatModel(BaseChatModel):
    """Replays scripted responses; a ``responder`` picks one per request instead."""

    responses: List[Any] = Field(default_factory=list)
    responder: Optional[Callable[[List[BaseMessage]], Any]] = None
    requests: List[List[BaseMessage]] = Field(default_factory=list)
    bound_tools: List[List[Dict[str, Any]]] = Field(default_factory=list)
    stream_started: Any = None

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.append(list(tools))
        return self

    def _next(self, messages: List[BaseMessage]) -> Scripted:
        self.requests.append(list(messages))
        if self.responder is not None:
            return self.responder(messages)
        if not self.responses:
            return AIMessage(content="done")
        return self.responses.pop(0)

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        scripted = self._next(messages)
        message = scripted.message if isinstance(scripted, Slow) else scripted
        return ChatResult(generations=[ChatGeneration(message=message)])

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        scripted = self._next(messages)
        if isinstance(scripted, Slow):
            await asyncio.sleep(scripted.seconds)
            scripted = scripted.message
        return ChatResult(generations=[ChatGeneration(message=scripted)])

    async def _astream(self, messages, stop=None, run_manager=None, **kwargs):
        scripted = self._next(messages)
        if self.stream_started is not None:
            self.stream_started.set()
        if isinstance(scripted, Slow):
            await asyncio.sleep(scripted.seconds)
            scripted = scripted.message

        reasoning = scripted.additional_kwargs.get("reasoning_content")
        if reasoning:
            yield ChatGenerationChunk(
                message=AIMessageChunk(content="", additional_kwargs={"reasoning_content": reasoning})
            )

        text = str(scripted.content)
        if text:
            middle = len(text) // 2
            for piece in (text[:middle], text[middle:]):
                if piece:
                    yield ChatGenerationChunk(message=AIMessageChunk(content=piece))

        fragments = [
            (c["id"], c["name"], json.dumps(c["args"])) for c in scripted.tool_calls
        ] + [
            (c["id"], c["name"], c["args"] or "") for c in scripted.invalid_tool_calls
        ]
        for index, (call_id, name, args) in enumerate(fragments):
            # id and name on the first fragment, the argument text split in two
            half = len(args) // 2
            yield ChatGenerationChunk(
                message=AIMessageChunk(
                    content="", tool_call_chunks=[tool_call_chunk(name=name, args=args[:half], id=call_id, index=index)]
                )
            )
            yield ChatGenerationChunk(
                message=AIMessageChunk(
                    content="", tool_call_chunks=[tool_call_chunk(name=None, args=args[half:], id=None, index=index)]
                )
            )

        if scripted.usage_metadata:
            yield ChatGenerationChunk(message=AIMessageChunk(content="", usage_metadata=scripted.usage_metadata))
        elif not (reasoning or text or fragments):
            # a real provider always sends at least one (terminal) chunk
            yield ChatGenerationChunk(message=AIMessageChunk(content=""))


def first_user_text(messages: List[BaseMessage]) -> str:
    return next(str(m.content) for m in messages if isinstance(m, HumanMessage))


# ========== gate ==========


class RecordingGate(ConfirmationGate):
    """Answers every confirmation with ``result`` and records the request."""

    def __init__(self, result: Optional[ConfirmResult] = None) -> None:
        self.result = result or ConfirmResult(approved=True)
        self.requests: List[tuple] = []

    async def confirm(self, tool_name: str, params: Dict[str, Any]) -> ConfirmResult:
        self.requests.append((tool_name, dict(params)))
        return self.result


@dataclass
class Recorder:
    """Collects callback invocations by name."""

    events: List[tuple] = field(default_factory=list)

    def __getattr__(self, name: str):
        if not name.startswith("on_"):
            raise AttributeError(name)

        def record(*args):
            self.events.append((name, *args))

        return record

    def of(self, name: str) -> List[tuple]:
        return [event[1:] for event in self.events if event[0] == name]


# ========== fixtures ==========


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temporary workspace that relative tool paths resolve against."""
    root = tmp_path / "workspace"
    root.mkdir()
    monkeypatch.setenv(WORKSPACE_ENV, str(root))
    return root


@pytest.fixture
def registry(workspace):
    registry = ToolRegistry()
    register_core_tools(registry)
    return registry


@pytest.fixture
def model():
    return ScriptedChatModel()


@pytest.fixture
def client(model):
    return LLMClient(model, name="test")


@pytest.fixture
def gate():
    return RecordingGate()
