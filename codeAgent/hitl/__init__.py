"""Human-in-the-loop confirmation."""

from .gate import (
    CallbackGate,
    ConfirmationGate,
    ConfirmResult,
    DenyAllGate,
    PromptGate,
    SwitchableGate,
    format_tool_detail,
    parse_answer,
)

__all__ = [
    "CallbackGate",
    "ConfirmationGate",
    "ConfirmResult",
    "DenyAllGate",
    "PromptGate",
    "SwitchableGate",
    "format_tool_detail",
    "parse_answer",
]
