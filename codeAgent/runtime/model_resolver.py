"""Model wiring from settings.

Converts :class:`Settings` into per-role model configs and ChatOpenAI
instances. The factory is injectable so tests can hand in fake models.

Key Functions:
    - resolve_model_config(): effective config for one role
    - build_chat_model(): ChatOpenAI for a resolved config
"""

from __future__ import annotations

from typing import Callable, Dict, Literal, Optional, TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from codeAgent.config.settings import ModelOverride, Settings

ModelRole = Literal["default", "orchestrator", "coder"]


class ModelConfig(TypedDict):
    model: str
    api_key: Optional[str]
    base_url: Optional[str]
    temperature: float
    max_tokens: int


ModelFactory = Callable[[ModelConfig], BaseChatModel]


def _apply_override(base: ModelConfig, override: Optional[ModelOverride]) -> ModelConfig:
    if override is None:
        return base
    merged = dict(base)
    for key, value in override.model_dump(exclude_none=True).items():
        merged[key] = value
    return ModelConfig(**merged)


def resolve_model_config(settings: Settings, role: ModelRole = "default") -> ModelConfig:
    """Effective model settings for ``role``.

    ``orchestrator`` and ``coder`` read ``dual_agent.<role>``; every field left
    unset there falls back to the top-level value.
    """
    base = ModelConfig(
        model=settings.model,
        api_key=settings.api_key,
        base_url=settings.base_url,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    if role == "orchestrator":
        return _apply_override(base, settings.dual_agent.orchestrator)
    if role == "coder":
        return _apply_override(base, settings.dual_agent.coder)
    return base


def override_model_config(config: ModelConfig, **values: Optional[str]) -> ModelConfig:
    """Copy of ``config`` with the non-empty ``values`` replaced."""
    merged = dict(config)
    merged.update({key: value for key, value in values.items() if value})
    return ModelConfig(**merged)


def _chat_kwargs(config: ModelConfig) -> Dict[str, object]:
    if not config["api_key"]:
        raise RuntimeError(f"缺少模型 {config['model']} 的 API Key，请配置 CODEAGENT_API_KEY。")
    kwargs: Dict[str, object] = {
        "model": config["model"],
        "api_key": config["api_key"],
        "temperature": config["temperature"],
        "max_tokens": config["max_tokens"],
        # Usage arrives on the final streamed chunk
        "stream_usage": True,
    }
    if config["base_url"]:
        kwargs["base_url"] = config["base_url"]
    return kwargs


def build_chat_model(config: ModelConfig) -> BaseChatModel:
    """Construct a ChatOpenAI-compatible client.

    Raises:
        RuntimeError: If the config has no API key
    """
    return ChatOpenAI(**_chat_kwargs(config))
