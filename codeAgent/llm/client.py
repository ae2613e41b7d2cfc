"""Model call wrapper with streaming tool-call accumulation and abort support."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.messages.tool import invalid_tool_call, tool_call

from codeAgent.core.callbacks import AgentCallbacks
from codeAgent.utils.error_handler import ModelInvocationError, StreamAbortedError, handle_model_error

LOGGER = logging.getLogger(__name__)

# Chain-of-thought deltas of reasoning models (deepseek-reasoner)
REASONING_KEY = "reasoning_content"
THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"


class ToolCallAccumulator:
    """Index-keyed partial tool calls, flushed into a message once the stream ends.

    Fragments for different indices may interleave; the id and name arrive
    with the first fragment of an index, argument text is concatenated.
    """

    def __init__(self) -> None:
        self._calls: Dict[int, Dict[str, str]] = {}

    def add(self, chunk: Dict[str, Any]) -> Tuple[int, str, str]:
        index = chunk.get("index")
        if index is None:
            index = max(self._calls) if self._calls else 0

        entry = self._calls.get(index)
        if entry is None:
            entry = {"id": chunk.get("id") or "", "name": chunk.get("name") or "", "args": ""}
            self._calls[index] = entry
        else:
            if chunk.get("id") and not entry["id"]:
                entry["id"] = chunk["id"]
            if chunk.get("name") and not entry["name"]:
                entry["name"] = chunk["name"]
        entry["args"] += chunk.get("args") or ""
        return index, entry["name"], entry["args"]

    def build(self) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """Return ``(valid, invalid)`` calls in index order.

        Valid means the argument text parses as a JSON object; an empty
        argument string counts as ``{}``.
        """
        valid: List[Dict[str, Any]] = []
        invalid: List[Dict[str, Any]] = []
        for index in sorted(self._calls):
            entry = self._calls[index]
            raw = entry["args"]
            try:
                parsed = json.loads(raw) if raw.strip() else {}
            except json.JSONDecodeError as e:
                invalid.append(invalid_tool_call(name=entry["name"], args=raw, id=entry["id"], error=str(e)))
                continue
            if not isinstance(parsed, dict):
                invalid.append(
                    invalid_tool_call(name=entry["name"], args=raw, id=entry["id"], error="arguments are not a JSON object")
                )
                continue
            valid.append(tool_call(name=entry["name"], args=parsed, id=entry["id"]))
        return valid, invalid

    def __len__(self) -> int:
        return len(self._calls)


def _chunk_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return ""


def _add_usage(total: Optional[Dict[str, int]], usage: Optional[Dict[str, Any]]) -> Optional[Dict[str, int]]:
    if not usage:
        return total
    merged = dict(total or {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0})
    for key in ("input_tokens", "output_tokens", "total_tokens"):
        merged[key] += int(usage.get(key) or 0)
    return merged


class LLMClient:
    """Thin async facade over a LangChain chat model.

    ``chat`` is a plain request/response call; ``chat_stream`` streams content
    and tool-call fragments to callbacks and returns the assembled message.
    Reasoning deltas are streamed wrapped in ``<think>`` markers and kept on
    the message under ``additional_kwargs["reasoning_content"]``.
    No retries happen here: failures surface as :class:`ModelInvocationError`.
    """

    def __init__(self, model: BaseChatModel, name: str = "default") -> None:
        self._model = model
        self.name = name
        self._active: Set[asyncio.Task] = set()
        self._aborted: Set[asyncio.Task] = set()

    @property
    def model(self) -> BaseChatModel:
        return self._model

    def _bound(self, tools: Optional[Sequence[Dict[str, Any]]]):
        if tools:
            return self._model.bind_tools(list(tools))
        return self._model

    async def chat(
        self,
        messages: List[BaseMessage],
        tools: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> AIMessage:
        try:
            response = await self._bound(tools).ainvoke(messages)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            LOGGER.error(f"[{self.name}] model call failed: {e}")
            raise ModelInvocationError(str(e), user_message=handle_model_error(e)) from e
        return response

    async def chat_stream(
        self,
        messages: List[BaseMessage],
        tools: Optional[Sequence[Dict[str, Any]]] = None,
        callbacks: Optional[AgentCallbacks] = None,
    ) -> AIMessage:
        callbacks = callbacks or AgentCallbacks()
        task = asyncio.ensure_future(self._consume(messages, tools, callbacks))
        self._active.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._aborted:
                LOGGER.info(f"[{self.name}] stream aborted")
                raise StreamAbortedError("Model stream aborted") from None
            raise
        except ModelInvocationError:
            raise
        except Exception as e:
            LOGGER.error(f"[{self.name}] streaming call failed: {e}")
            if callbacks.on_error:
                callbacks.on_error(e)
            raise ModelInvocationError(str(e), user_message=handle_model_error(e)) from e
        finally:
            self._active.discard(task)
            self._aborted.discard(task)

    async def _consume(
        self,
        messages: List[BaseMessage],
        tools: Optional[Sequence[Dict[str, Any]]],
        callbacks: AgentCallbacks,
    ) -> AIMessage:
        accumulator = ToolCallAccumulator()
        content_parts: List[str] = []
        reasoning_parts: List[str] = []
        thinking = False
        usage: Optional[Dict[str, int]] = None

        async for chunk in self._bound(tools).astream(messages):
            reasoning = (getattr(chunk, "additional_kwargs", None) or {}).get(REASONING_KEY)
            if reasoning:
                reasoning_parts.append(reasoning)
                if callbacks.on_content:
                    if not thinking:
                        callbacks.on_content(THINK_OPEN)
                    callbacks.on_content(reasoning)
                thinking = True

            text = _chunk_text(chunk.content)
            if text:
                if thinking:
                    thinking = False
                    if callbacks.on_content:
                        callbacks.on_content(THINK_CLOSE)
                content_parts.append(text)
                if callbacks.on_content:
                    callbacks.on_content(text)

            for fragment in getattr(chunk, "tool_call_chunks", None) or []:
                index, name, args = accumulator.add(fragment)
                if callbacks.on_tool_call_streaming:
                    callbacks.on_tool_call_streaming(index, name, args)

            usage = _add_usage(usage, getattr(chunk, "usage_metadata", None))

        # Reasoning followed only by tool calls
        if thinking and callbacks.on_content:
            callbacks.on_content(THINK_CLOSE)

        valid, invalid = accumulator.build()
        additional_kwargs = {REASONING_KEY: "".join(reasoning_parts)} if reasoning_parts else {}
        return AIMessage(
            content="".join(content_parts),
            additional_kwargs=additional_kwargs,
            tool_calls=valid,
            invalid_tool_calls=invalid,
            usage_metadata=usage,
        )

    def abort_active_stream(self) -> bool:
        """Cancel every in-flight streaming call of this client."""
        pending = [task for task in self._active if not task.done()]
        for task in pending:
            self._aborted.add(task)
            task.cancel()
        return bool(pending)
