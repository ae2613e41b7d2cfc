"""Per-executor record of observed files.

Enforces the "read before edit" rule:

- a successful read-file marks the path as read
- a successful write-file marks the path as written (the agent knows the content)
- edit-file on a path that was neither read nor written is refused

It also guards write-file against silently replacing an existing file: without
``overwrite=True`` the call is refused with a hint towards read-file + edit-file.
"""

from __future__ import annotations

import re
from typing import Optional, Set

from codeAgent.config.project_root import resolve_workspace_path

EDIT_BEFORE_READ_MESSAGE = (
    "⚠ Refusing to edit a file that has not been read. "
    'Call read-file "{path}" first to see its current content, then edit-file.'
)

OVERWRITE_MESSAGE = (
    "⚠ File already exists: {path}\n"
    "To change an existing file use read-file + edit-file (more precise and safer).\n"
    "If a full rewrite is really intended, call write-file again with overwrite: true."
)


class ReadTracker:
    def __init__(self) -> None:
        self._files: Set[str] = set()

    @staticmethod
    def normalize(path: str) -> str:
        return re.sub(r"^\./", "", path.replace("\\", "/"))

    def mark_read(self, path: str) -> None:
        self._files.add(self.normalize(path))

    def mark_written(self, path: str) -> None:
        self._files.add(self.normalize(path))

    def has_read(self, path: str) -> bool:
        return self.normalize(path) in self._files

    def check_edit(self, path: str) -> Optional[str]:
        """Return the refusal text for an edit of an unseen file, or None."""
        if self.has_read(path):
            return None
        return EDIT_BEFORE_READ_MESSAGE.format(path=path)

    def check_write_overwrite(self, path: str, overwrite: bool = False) -> Optional[str]:
        """Return a warning if write-file would replace an existing file, or None."""
        if not overwrite and resolve_workspace_path(path).exists():
            return OVERWRITE_MESSAGE.format(path=path)
        return None

    def __len__(self) -> int:
        return len(self._files)
