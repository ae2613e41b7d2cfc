"""Presentation callbacks consumed by the UI layer.

Every field is optional; executors call only what is set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional


@dataclass
class AgentCallbacks:
    on_content: Optional[Callable[[str], None]] = None
    on_tool_call_streaming: Optional[Callable[[int, str, str], None]] = None
    on_tool_executing: Optional[Callable[[str, Dict[str, Any]], None]] = None
    on_tool_result: Optional[Callable[[str, str, bool], None]] = None
    on_denied: Optional[Callable[[str, Optional[str]], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None

    def agent_view(self) -> "AgentCallbacks":
        """Copy restricted to the base agent fields (used when handing off to a coder)."""
        return AgentCallbacks(**{f.name: getattr(self, f.name) for f in fields(AgentCallbacks)})


@dataclass
class OrchestratorCallbacks(AgentCallbacks):
    on_coder_start: Optional[Callable[[], None]] = None
    on_coder_end: Optional[Callable[[str], None]] = None
    on_mode_info: Optional[Callable[[str], None]] = None
