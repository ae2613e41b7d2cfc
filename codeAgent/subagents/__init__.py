"""Configurable named sub-agents (presets + YAML) and their runner."""

from .loader import load_all_agent_configs
from .presets import PRESET_AGENTS
from .registry import SubAgentConfigRegistry
from .runner import SubAgentRunner
from .types import SubAgentConfig, SubAgentModelConfig

__all__ = [
    "PRESET_AGENTS",
    "SubAgentConfig",
    "SubAgentConfigRegistry",
    "SubAgentModelConfig",
    "SubAgentRunner",
    "load_all_agent_configs",
]
