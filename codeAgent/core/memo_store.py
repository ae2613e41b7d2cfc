"""Shared memo blackboard.

Every executor in a run (orchestrator, coders, sub-agents) shares one
MemoStore through the memo tool. Agents pull only the entries they need, so
one agent's notes never occupy another agent's context until asked for.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional

MAX_ENTRIES = 30
MAX_CONTENT_LENGTH = 3000
SUMMARY_LENGTH = 80


@dataclass(frozen=True, slots=True)
class MemoEntry:
    key: str
    summary: str
    content: str
    author: str
    updated_at: float


@dataclass(frozen=True, slots=True)
class MemoListing:
    key: str
    author: str
    summary: str


class MemoStore:
    def __init__(self, max_entries: int = MAX_ENTRIES, max_content_length: int = MAX_CONTENT_LENGTH) -> None:
        self._entries: Dict[str, MemoEntry] = {}
        self._max_entries = max_entries
        self._max_content_length = max_content_length

    def write(self, key: str, content: str, author: str = "agent", summary: Optional[str] = None) -> MemoEntry:
        """Insert or replace ``key``; a new key at capacity evicts the oldest write."""
        entry = MemoEntry(
            key=key,
            summary=summary or content[:SUMMARY_LENGTH].replace("\n", " "),
            content=content[: self._max_content_length],
            author=author,
            updated_at=time.time(),
        )

        if key not in self._entries and len(self._entries) >= self._max_entries:
            oldest = min(self._entries.values(), key=lambda e: e.updated_at)
            del self._entries[oldest.key]

        # Re-insert so dict order follows write order (tie-break for equal timestamps)
        self._entries.pop(key, None)
        self._entries[key] = entry
        return entry

    def read(self, key: str) -> Optional[MemoEntry]:
        return self._entries.get(key)

    def list(self) -> List[MemoListing]:
        return [MemoListing(key=e.key, author=e.author, summary=e.summary) for e in self._entries.values()]

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def build_index(self) -> Optional[str]:
        """One ``[key] summary`` line per entry, or None when empty.

        Injected into delegated tasks; full content stays behind ``memo read``.
        """
        if not self._entries:
            return None
        return "\n".join(f"[{e.key}] {e.summary}" for e in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
