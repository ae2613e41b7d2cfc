"""Edit file tool for precise string replacements."""

from __future__ import annotations

import logging
from typing import Annotated

from langchain_core.tools import tool

from codeAgent.config.project_root import resolve_workspace_path

LOGGER = logging.getLogger(__name__)

__all__ = ["edit_file"]


@tool("edit-file")
def edit_file(
    path: Annotated[str, "File path"],
    old_string: Annotated[str, "The exact text to replace (must match uniquely)"],
    new_string: Annotated[str, "The text to replace it with"],
    replace_all: Annotated[bool, "Replace all occurrences (default: false)"] = False,
) -> str:
    """Edit a file by exact string replacement. The preferred way to change files.

    MUST read-file first. old_string must match EXACTLY (whitespace, indentation)
    and only once; add surrounding lines to make it unique, or use replace_all.

    NEVER include the line numbers from read-file output in old_string/new_string.
    """
    try:
        if old_string == new_string:
            return "Error: old_string and new_string must be different"

        target = resolve_workspace_path(path)
        if not target.exists():
            return f"Error: File not found: {path}"
        if not target.is_file():
            return f"Error: Not a file: {path}"

        content = target.read_text(encoding="utf-8")
        count = content.count(old_string) if old_string else 0

        if count == 0:
            return f"Error: old_string not found in {path}: {old_string[:100]}"

        if replace_all:
            target.write_text(content.replace(old_string, new_string), encoding="utf-8")
            LOGGER.info(f"Edited file: {path} ({count} replacements)")
            return f"File edited: {path} ({count} replacements)"

        if count > 1:
            return (
                f"Error: old_string is not unique in {path} ({count} matches). "
                "Add more context to make it unique, or use replace_all."
            )

        target.write_text(content.replace(old_string, new_string, 1), encoding="utf-8")
        LOGGER.info(f"Edited file: {path}")
        return f"File edited: {path}"

    except UnicodeDecodeError:
        return f"Error: File is not a text file (binary content detected): {path}"
    except Exception as e:
        LOGGER.error(f"Failed to edit file {path}: {e}")
        return f"Error: {str(e)}"
