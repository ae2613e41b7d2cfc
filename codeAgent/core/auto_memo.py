"""Automatic memo entries after file tools succeed.

Stores raw file knowledge under ``file:<path>`` so later coders can
``memo read`` it instead of re-reading the file:

- write-file: the full written content
- edit-file: the old/new fragments
- read-file: the numbered read output

Summaries only state the operation and a line count; agents are expected to
``memo write`` a meaningful summary themselves.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .memo_store import MemoStore

AUTO_MEMO_TOOLS = ("write-file", "edit-file", "read-file")


def auto_memo_for_tool(
    memo_store: Optional[MemoStore],
    tool_name: str,
    params: Dict[str, Any],
    result: str,
) -> None:
    if memo_store is None or tool_name not in AUTO_MEMO_TOOLS:
        return
    # Failed operations report through their result text only
    if result.startswith("Error"):
        return

    path = str(params.get("path", ""))
    if not path:
        return
    key = f"file:{path}"

    if tool_name == "write-file":
        content = str(params.get("content") or "")
        memo_store.write(key, content, "auto", f"written {len(content.splitlines()) or 1} lines")
    elif tool_name == "edit-file":
        old = str(params.get("old_string") or "")
        new = str(params.get("new_string") or "")
        memo_store.write(
            key,
            f"--- old ---\n{old}\n--- new ---\n{new}",
            "auto",
            f"edited {len(new.splitlines()) or 1} lines",
        )
    else:
        memo_store.write(key, result, "auto", f"read {len(result.splitlines()) or 1} lines")
