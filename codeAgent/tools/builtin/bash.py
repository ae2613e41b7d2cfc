"""Shell and git command tools."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import sys
from pathlib import Path
from typing import Annotated, List, Optional

from langchain_core.tools import tool

from codeAgent.config.project_root import get_workspace_root

LOGGER = logging.getLogger(__name__)

__all__ = ["bash", "git", "run_command"]

DEFAULT_BASH_TIMEOUT = 120
GIT_TIMEOUT = 30
NO_OUTPUT = "(no output)"
KILL_GRACE_PERIOD = 2


def _command_env() -> dict:
    env = dict(os.environ)
    # Current interpreter first so python/pip resolve to the active venv
    python_dir = Path(sys.executable).parent
    env["PATH"] = f"{python_dir}{os.pathsep}{env.get('PATH', '')}"
    return env


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass  # already gone


async def run_command(
    command: str | List[str],
    timeout: float,
    cwd: Optional[Path] = None,
) -> str:
    """Run a shell string or an argv list; stdout plus a ``[stderr]`` section.

    The command runs in its own process group; on timeout or cancellation
    the whole group is killed, background children included.
    """
    cwd = cwd or get_workspace_root()
    options = dict(
        cwd=cwd,
        env=_command_env(),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    if isinstance(command, str):
        process = await asyncio.create_subprocess_shell(command, **options)
    else:
        process = await asyncio.create_subprocess_exec(*command, **options)

    timed_out = False
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        timed_out = True
        _kill_process_group(process)
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=KILL_GRACE_PERIOD)
        except asyncio.TimeoutError:
            # A child that left the group still holds the pipes
            LOGGER.warning(f"Output pipes still open after killing command: {command}")
            stdout, stderr = b"", b""
    except asyncio.CancelledError:
        _kill_process_group(process)
        raise

    output = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")
    if err:
        output += ("\n" if output else "") + f"[stderr]\n{err}"

    if timed_out:
        output += f"\n[command timed out after {timeout}s and was terminated]"
    elif process.returncode != 0:
        return f"Command failed (exit code {process.returncode}):\n{output}"

    return output or NO_OUTPUT


@tool("bash")
async def bash(
    command: Annotated[str, "Shell command to execute"],
    timeout: Annotated[Optional[int], "Timeout in seconds (default: 120)"] = None,
) -> str:
    """Execute a shell command in the workspace directory.

    Use it for builds, tests and other system commands. Do not use it to
    read or write files (read-file / edit-file / write-file) or to search
    (glob / grep).
    """
    try:
        LOGGER.info(f"Executing bash command: {command}")
        return await run_command(command, timeout or DEFAULT_BASH_TIMEOUT)
    except Exception as e:
        LOGGER.error(f"Failed to execute command: {e}")
        return f"Error: {str(e)}"


@tool("git")
async def git(
    command: Annotated[str, "git subcommand and arguments, e.g. 'status', 'diff', 'log --oneline -10'"],
) -> str:
    """Run a git command in the workspace directory."""
    try:
        argv = ["git", *shlex.split(command)]
        LOGGER.info(f"Executing git command: {command}")
        return await run_command(argv, GIT_TIMEOUT)
    except Exception as e:
        LOGGER.error(f"Failed to execute git {command}: {e}")
        return f"Error: {str(e)}"
