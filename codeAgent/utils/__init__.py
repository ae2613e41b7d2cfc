"""Shared helpers: logging and error types."""

from .error_handler import (
    CodeAgentError,
    ModelInvocationError,
    StreamAbortedError,
    SubAgentTimeoutError,
    ToolExecutionError,
    handle_model_error,
)
from .logging_utils import setup_logging

__all__ = [
    "CodeAgentError",
    "ModelInvocationError",
    "StreamAbortedError",
    "SubAgentTimeoutError",
    "ToolExecutionError",
    "handle_model_error",
    "setup_logging",
]
