"""Named sub-agent configuration."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_RUNNER_MAX_TURNS = 15
DEFAULT_RUNNER_TIMEOUT = 120.0


class SubAgentModelConfig(BaseModel):
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None


class SubAgentConfig(BaseModel):
    """A sub-agent the main agent can ``dispatch`` to by name.

    Attributes:
        name: Identifier used by the dispatch tool
        description: One line shown in the dispatch tool description
        prompt: System prompt of the sub-agent
        tools: Tool names the sub-agent may call
        max_turns: Model turns before the runner stops
        timeout: Seconds before the run is abandoned
        model: Optional model override
    """

    name: str
    description: str = ""
    prompt: str
    tools: List[str] = Field(default_factory=list)
    max_turns: int = Field(default=DEFAULT_RUNNER_MAX_TURNS, ge=1)
    timeout: float = Field(default=DEFAULT_RUNNER_TIMEOUT, gt=0)
    model: Optional[SubAgentModelConfig] = None
