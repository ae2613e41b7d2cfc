"""Registry of named sub-agent configurations."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .types import SubAgentConfig


class SubAgentConfigRegistry:
    def __init__(self, configs: Iterable[SubAgentConfig] = ()) -> None:
        self._configs: Dict[str, SubAgentConfig] = {}
        for config in configs:
            self.register(config)

    def register(self, config: SubAgentConfig) -> None:
        self._configs[config.name] = config

    def get(self, name: str) -> Optional[SubAgentConfig]:
        return self._configs.get(name)

    def has(self, name: str) -> bool:
        return name in self._configs

    def list(self) -> List[SubAgentConfig]:
        return list(self._configs.values())

    def list_names(self) -> List[str]:
        return list(self._configs.keys())

    def build_agent_list_description(self) -> str:
        """``- name: description`` lines for the dispatch tool description."""
        if not self._configs:
            return "No sub-agents available"
        return "\n".join(f"- {c.name}: {c.description}" for c in self._configs.values())
