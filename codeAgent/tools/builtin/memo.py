"""memo tool over the shared MemoStore."""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from langchain_core.tools import BaseTool, tool

from codeAgent.core.memo_store import MAX_CONTENT_LENGTH, MemoStore

__all__ = ["make_memo_tool"]

MemoAction = Literal["write", "read", "list", "delete", "clear"]


def make_memo_tool(store: MemoStore) -> BaseTool:
    @tool("memo")
    def memo(
        action: Annotated[MemoAction, "Operation to perform"],
        key: Annotated[Optional[str], "Memo key (required for write/read/delete)"] = None,
        content: Annotated[Optional[str], f"Content to store (write only, max {MAX_CONTENT_LENGTH} chars)"] = None,
        summary: Annotated[Optional[str], "One-line summary (write only; defaults to the start of content)"] = None,
    ) -> str:
        """Shared memo between agents.

        write: record findings, decisions or file summaries for other agents.
        read: fetch one entry by key. list: show every key with its summary.
        """
        if action == "write":
            if not key or not content:
                return "Error: write requires key and content"
            entry = store.write(key, content, "agent", summary)
            return f"memo [{entry.key}]: {entry.summary}"

        if action == "read":
            if not key:
                return "Error: read requires key"
            entry = store.read(key)
            if entry is None:
                return f"memo [{key}] does not exist"
            return f"[{entry.key}] by {entry.author}:\n{entry.content}"

        if action == "list":
            items = store.list()
            if not items:
                return "Memo is empty"
            lines = [f"[{item.key}] ({item.author}) {item.summary}" for item in items]
            return f"{len(items)} memo entries:\n" + "\n".join(lines)

        if action == "delete":
            if not key:
                return "Error: delete requires key"
            return f"Deleted memo [{key}]" if store.delete(key) else f"memo [{key}] does not exist"

        if action == "clear":
            store.clear()
            return "Memo cleared"

        return f'Error: unknown action "{action}". Supported: write, read, list, delete, clear'

    return memo
