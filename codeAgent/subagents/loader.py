"""Load sub-agent configurations from presets and YAML directories.

Priority, low to high:

1. built-in presets
2. ``~/.codeagent/agents/*.yaml`` (global)
3. ``.codeagent/agents/*.yaml`` (project)

A later definition with the same name replaces the earlier one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pydantic import ValidationError

from .presets import PRESET_AGENTS
from .types import SubAgentConfig

LOGGER = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def default_agent_dirs() -> List[Path]:
    return [
        Path.home() / ".codeagent" / "agents",
        Path.cwd() / ".codeagent" / "agents",
    ]


def load_agent_yaml(path: Path) -> Optional[SubAgentConfig]:
    """Parse one file; unreadable or incomplete definitions are skipped with a warning."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        LOGGER.warning(f"Failed to read sub-agent file {path}: {e}")
        return None

    if not isinstance(data, dict):
        LOGGER.warning(f"Ignoring sub-agent file {path}: top level is not a mapping")
        return None

    try:
        return SubAgentConfig.model_validate(data)
    except ValidationError as e:
        LOGGER.warning(f"Ignoring invalid sub-agent file {path}: {e.error_count()} errors")
        return None


def load_agents_from_dir(directory: Path) -> List[SubAgentConfig]:
    if not directory.is_dir():
        return []

    agents = []
    for path in sorted(directory.iterdir()):
        if path.suffix not in YAML_SUFFIXES:
            continue
        config = load_agent_yaml(path)
        if config is not None:
            agents.append(config)
    return agents


def load_all_agent_configs(directories: Optional[Iterable[Path]] = None) -> List[SubAgentConfig]:
    configs: Dict[str, SubAgentConfig] = {agent.name: agent for agent in PRESET_AGENTS}

    for directory in directories if directories is not None else default_agent_dirs():
        for agent in load_agents_from_dir(Path(directory)):
            if agent.name in configs:
                LOGGER.debug(f"Sub-agent {agent.name} overridden by {directory}")
            configs[agent.name] = agent

    LOGGER.info(f"Loaded {len(configs)} sub-agent configs: {', '.join(configs)}")
    return list(configs.values())
