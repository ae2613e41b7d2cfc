"""Configuration helpers."""

from .loader import load_settings
from .settings import (
    CollaborationMode,
    FeatureSettings,
    McpServerSettings,
    ModelOverride,
    PermissionLevel,
    PermissionSettings,
    Settings,
    get_settings,
)

__all__ = [
    "CollaborationMode",
    "FeatureSettings",
    "McpServerSettings",
    "ModelOverride",
    "PermissionLevel",
    "PermissionSettings",
    "Settings",
    "get_settings",
    "load_settings",
]
