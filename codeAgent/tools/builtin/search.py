"""glob / grep tools over the workspace."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Annotated, List, Optional

from langchain_core.tools import tool

from codeAgent.config.project_root import get_workspace_root, resolve_workspace_path

LOGGER = logging.getLogger(__name__)

__all__ = ["glob_files", "grep_files", "search_content"]

IGNORED_DIRS = {"node_modules", ".git", "dist", ".next", "__pycache__", ".venv", "venv", ".mypy_cache", ".pytest_cache"}
TEXT_EXTENSIONS = {
    ".py", ".pyi", ".ts", ".tsx", ".js", ".jsx", ".json", ".md", ".txt", ".yaml", ".yml",
    ".toml", ".cfg", ".ini", ".css", ".scss", ".html", ".vue", ".svelte", ".go", ".rs",
    ".java", ".c", ".cpp", ".h", ".hpp", ".rb", ".php", ".sh", ".bash", ".zsh", ".sql",
    ".xml", ".svg", ".env", ".gitignore", ".editorconfig",
}
MAX_GREP_RESULTS = 200


def _display_path(path: Path) -> str:
    root = get_workspace_root()
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


@tool("glob")
def glob_files(
    pattern: Annotated[str, "Glob pattern, e.g. '**/*.py', 'src/**/config.*'"],
    cwd: Annotated[Optional[str], "Directory to search from (default: workspace root)"] = None,
) -> str:
    """Find file paths by glob pattern. node_modules and .git are ignored."""
    try:
        base = resolve_workspace_path(cwd) if cwd else get_workspace_root()
        if not base.is_dir():
            return f"Error: Directory not found: {cwd}"

        matches = []
        for match in base.glob(pattern):
            if not match.is_file():
                continue
            relative_parts = match.relative_to(base).parts
            if any(part in IGNORED_DIRS or part.startswith(".") for part in relative_parts[:-1]):
                continue
            if relative_parts[-1].startswith("."):
                continue
            matches.append(match.relative_to(base).as_posix())

        if not matches:
            return f"No files found matching pattern: {pattern}"

        matches.sort()
        LOGGER.info(f"Found {len(matches)} files matching '{pattern}'")
        return "\n".join(matches)

    except Exception as e:
        LOGGER.error(f"Failed to glob '{pattern}': {e}")
        return f"Error: {str(e)}"


def search_content(regex: re.Pattern, root: Path, max_results: int = MAX_GREP_RESULTS) -> List[str]:
    """``path:line: text`` hits for ``regex`` under ``root`` (a file or a directory)."""
    results: List[str] = []

    def search_file(file_path: Path) -> None:
        try:
            with open(file_path, "r", encoding="utf-8") as handle:
                for number, line in enumerate(handle, start=1):
                    if len(results) >= max_results:
                        return
                    line = line.rstrip("\n")
                    if regex.search(line):
                        results.append(f"{_display_path(file_path)}:{number}: {line}")
        except (OSError, UnicodeDecodeError):
            return

    if root.is_file():
        search_file(root)
        return results

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for filename in sorted(filenames):
            if len(results) >= max_results:
                return results
            suffix = Path(filename).suffix.lower()
            if suffix and suffix not in TEXT_EXTENSIONS:
                continue
            search_file(Path(dirpath) / filename)

    return results


@tool("grep")
def grep_files(
    pattern: Annotated[str, "Regular expression to search for"],
    path: Annotated[Optional[str], "File or directory to search (default: workspace root)"] = None,
    ignore_case: Annotated[bool, "Case-insensitive search"] = False,
) -> str:
    """Search file contents with a regular expression.

    Use it to find definitions, references and code patterns. Returns
    ``path:line: content`` lines, at most 200.
    """
    try:
        regex = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as e:
        return f"Error: invalid regular expression: {e}"

    try:
        root = resolve_workspace_path(path) if path else get_workspace_root()
        if not root.exists():
            return f"Error: Path not found: {path}"

        results = search_content(regex, root)
        if not results:
            return f"No matches found for: {pattern}"

        LOGGER.info(f"grep '{pattern}': {len(results)} matches")
        return "\n".join(results)

    except Exception as e:
        LOGGER.error(f"Failed to grep '{pattern}': {e}")
        return f"Error: {str(e)}"
