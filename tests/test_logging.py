"""Test logging setup and the log helpers."""

import logging

import pytest

from codeAgent.utils.error_handler import handle_model_error
from codeAgent.utils.logging_utils import (
    ROOT_LOGGER_NAME,
    log_denied,
    log_tool_call,
    log_tool_result,
    setup_logging,
)


@pytest.fixture
def package_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers, logger.level, logger.propagate = saved


def test_setup_logging_writes_session_file(tmp_path, package_logger):
    logger = setup_logging(log_dir=tmp_path / "logs")

    assert logger is package_logger
    assert logger.propagate is False
    assert len(logger.handlers) == 2

    module_logger = logging.getLogger("codeAgent.core.loop")
    log_tool_call(module_logger, "read-file", {"path": "a.py"})
    log_tool_result(module_logger, "read-file", "x" * 600, success=True)
    log_denied(module_logger, "bash", "not now")
    for handler in logger.handlers:
        handler.flush()

    log_file, = (tmp_path / "logs").glob("codeagent_*.log")
    text = log_file.read_text(encoding="utf-8")
    assert "Tool call: read-file" in text
    assert "... (truncated)" in text
    assert "Tool denied: bash" in text
    assert "Feedback: not now" in text


def test_setup_logging_replaces_handlers(tmp_path, package_logger):
    setup_logging(log_dir=tmp_path)
    setup_logging(log_dir=tmp_path)
    assert len(package_logger.handlers) == 2


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Error code: 429 rate_limit_exceeded", "请求过于频繁，请稍后再试"),
        ("Request timed out", "AI 响应超时，请重试"),
        ("maximum context length is 8192 tokens", "对话历史过长，请开启新会话"),
        ("401 invalid_api_key", "API 密钥无效，请检查配置"),
    ],
)
def test_handle_model_error(message, expected):
    assert handle_model_error(RuntimeError(message)) == expected


def test_handle_model_error_generic():
    assert handle_model_error(RuntimeError("boom")).endswith("boom")
