"""Workspace root resolution shared by the file tools and the read tracker."""

from __future__ import annotations

import os
from pathlib import Path

WORKSPACE_ENV = "CODEAGENT_WORKSPACE"


def get_workspace_root() -> Path:
    """Directory relative tool paths resolve against.

    ``CODEAGENT_WORKSPACE`` when set, otherwise the current working directory.
    Read on every call so tests and callers can switch it at runtime.
    """
    configured = os.environ.get(WORKSPACE_ENV)
    if configured:
        return Path(configured).expanduser().resolve()
    return Path.cwd()


def resolve_workspace_path(path: str | Path) -> Path:
    """Resolve a tool-supplied path; absolute paths are kept as they are."""
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate.resolve()
    return (get_workspace_root() / candidate).resolve()


__all__ = ["WORKSPACE_ENV", "get_workspace_root", "resolve_workspace_path"]
