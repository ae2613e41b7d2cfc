"""YAML configuration loading.

Files are merged low to high priority:

1. ``~/.codeagent/config.yaml`` (global)
2. ``.codeagent/config.yaml`` (project directory)
3. ``.codeagent.yaml`` (project file)

The merged mapping is handed to :class:`Settings` as init values, so
``CODEAGENT_*`` environment variables still win.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .settings import Settings

LOGGER = logging.getLogger(__name__)


def default_config_paths() -> List[Path]:
    return [
        Path.home() / ".codeagent" / "config.yaml",
        Path.cwd() / ".codeagent" / "config.yaml",
        Path.cwd() / ".codeagent.yaml",
    ]


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``target`` with ``source`` merged in; dicts merge, everything else replaces."""
    result = dict(target)
    for key, value in source.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load one YAML mapping; a missing file yields an empty dict."""
    if not path.exists():
        return {}

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        LOGGER.warning(f"Ignoring config file {path}: top level is not a mapping")
        return {}

    LOGGER.debug(f"Loaded config file: {path}")
    return data


def load_settings(paths: Optional[Iterable[Path]] = None, **overrides: Any) -> Settings:
    """Build :class:`Settings` from YAML files plus explicit overrides.

    Args:
        paths: Config files in ascending priority (defaults to :func:`default_config_paths`)
        **overrides: Highest-priority init values (e.g. from CLI flags)
    """
    merged: Dict[str, Any] = {}
    for path in paths if paths is not None else default_config_paths():
        merged = deep_merge(merged, load_yaml_file(Path(path)))
    merged = deep_merge(merged, overrides)
    return Settings(**merged)
