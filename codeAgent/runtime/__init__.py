"""Application assembly."""

from .app import Application, build_application
from .model_resolver import ModelConfig, build_chat_model, resolve_model_config

__all__ = ["Application", "ModelConfig", "build_application", "build_chat_model", "resolve_model_config"]
