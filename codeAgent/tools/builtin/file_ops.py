"""read-file / write-file tools."""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from langchain_core.tools import tool

from codeAgent.config.project_root import resolve_workspace_path

LOGGER = logging.getLogger(__name__)

__all__ = ["read_file", "write_file", "format_numbered_lines"]

EMPTY_FILE_MESSAGE = "(empty file)"


def format_numbered_lines(content: str, offset: int = 1, limit: Optional[int] = None) -> str:
    """Number lines from ``offset`` (1-based), right-aligned to five columns."""
    lines = content.split("\n")
    start = max(0, offset - 1)
    end = start + limit if limit else len(lines)
    return "\n".join(f"{start + i + 1:>5}\t{line}" for i, line in enumerate(lines[start:end]))


@tool("read-file")
def read_file(
    path: Annotated[str, "File path, relative to the workspace root or absolute"],
    offset: Annotated[Optional[int], "First line to read, 1-based (default: 1)"] = None,
    limit: Annotated[Optional[int], "Number of lines to read (default: all)"] = None,
) -> str:
    """Read a file and return its content with line numbers.

    A file must be read before it can be modified. Use offset/limit to read a
    section of a large file.
    """
    try:
        target = resolve_workspace_path(path)
        if not target.exists():
            return f"Error: File not found: {path}"
        if not target.is_file():
            return f"Error: Not a file: {path}"

        content = target.read_text(encoding="utf-8")
        LOGGER.info(f"Read file: {path} ({len(content)} chars)")
        if not content:
            return EMPTY_FILE_MESSAGE
        return format_numbered_lines(content, offset or 1, limit) or f"(no lines after line {offset})"

    except UnicodeDecodeError:
        return f"Error: File is not a text file (binary content detected): {path}"
    except Exception as e:
        LOGGER.error(f"Failed to read file {path}: {e}")
        return f"Error: {str(e)}"


@tool("write-file")
def write_file(
    path: Annotated[str, "File path"],
    content: Annotated[str, "Full file content to write"],
    overwrite: Annotated[bool, "Confirm replacing an existing file (default: false)"] = False,
) -> str:
    """Create a new file or rewrite a whole file. Parent directories are created.

    Prefer edit-file for changes to an existing file. Writing over an
    existing file is refused unless overwrite is true.
    """
    try:
        target = resolve_workspace_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

        LOGGER.info(f"Wrote file: {path} ({len(content)} chars)")
        return f"File written: {path} ({len(content)} chars)"

    except Exception as e:
        LOGGER.error(f"Failed to write file {path}: {e}")
        return f"Error: {str(e)}"
