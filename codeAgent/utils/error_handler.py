"""Unified error types for codeAgent executors and tools."""

from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)


class CodeAgentError(Exception):
    """Base exception for codeAgent errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ToolExecutionError(CodeAgentError):
    """Error during tool execution."""
    pass


class ModelInvocationError(CodeAgentError):
    """Error during model invocation."""
    pass


class StreamAbortedError(CodeAgentError):
    """The in-flight model call was cancelled by an interrupt."""
    pass


class SubAgentTimeoutError(CodeAgentError):
    """A sub-agent did not finish before its deadline."""

    def __init__(self, name: str, timeout: float):
        super().__init__(
            f"Sub-agent {name} timed out after {timeout:g}s",
            user_message=f"子 Agent {name} 超时（{timeout:g}s）",
        )
        self.name = name
        self.timeout = timeout


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "请求过于频繁，请稍后再试"

    if "timeout" in error_str or "timed out" in error_str:
        return "AI 响应超时，请重试"

    if "context_length" in error_str or "maximum context" in error_str:
        return "对话历史过长，请开启新会话"

    if "invalid_api_key" in error_str or "authentication" in error_str or "401" in error_str:
        return "API 密钥无效，请检查配置"

    if "quota" in error_str or "insufficient" in error_str:
        return "AI 服务配额不足，请联系管理员"

    return f"AI 服务暂时不可用：{str(error)}"
