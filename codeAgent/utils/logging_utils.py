"""Logging utilities for codeAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "codeAgent"


def setup_logging(level: int = logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Setup logging configuration for codeAgent.

    Args:
        level: Console logging level (default: INFO, floored at WARNING for the console)
        log_dir: Directory for the session log file (default: ./logs)

    Returns:
        Configured logger instance
    """
    logs_dir = Path(log_dir) if log_dir else Path("logs")
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"codeagent_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    # Every module logger lives under the package name
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    logger.handlers = []

    # File handler (detailed logs)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(level, logging.WARNING))
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("codeAgent session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"Tool call: {tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, indent=2, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        result: Tool execution result
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")

    result_str = str(result)
    if len(result_str) > 500:
        result_str = result_str[:500] + "... (truncated)"
    logger.debug(f"  Result: {result_str}")


def log_denied(logger: logging.Logger, tool_name: str, feedback: Optional[str] = None) -> None:
    """Log a refused tool call (policy deny or user rejection)."""
    logger.info(f"Tool denied: {tool_name}")
    if feedback:
        logger.info(f"  Feedback: {feedback}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


def log_user_message(logger: logging.Logger, content: str) -> None:
    """Log user input."""
    logger.info(f"User input: {content[:100]}{'...' if len(content) > 100 else ''}")


def log_agent_response(logger: logging.Logger, content: str) -> None:
    """Log agent response."""
    logger.info(f"Agent response: {content[:100]}{'...' if len(content) > 100 else ''}")


def log_visible_tools(logger: logging.Logger, phase: str, tools: list) -> None:
    """Log visible tools for current turn.

    Args:
        logger: Logger instance
        phase: Executor name (agent/coder/orchestrator/sub-agent)
        tools: List of tool names or tool objects
    """
    tool_names = [t.name if hasattr(t, "name") else str(t) for t in tools]
    logger.debug(f"Visible tools for {phase}: [{', '.join(tool_names)}]")
    logger.debug(f"  Total: {len(tool_names)} tools")

