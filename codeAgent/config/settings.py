"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from
.env files, ``CODEAGENT_*`` environment variables and (through
``codeAgent.config.loader``) YAML config files.

Nested sections use ``__`` as the environment delimiter::

    CODEAGENT_API_KEY=sk-...
    CODEAGENT_COLLABORATION=autonomous
    CODEAGENT_FEATURES__TODO=off
    CODEAGENT_DUAL_AGENT__CODER__MODEL=deepseek-coder

Example:
    from codeAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    settings.permissions.auto_approve
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

PermissionLevel = Literal["auto", "confirm", "deny"]
CollaborationMode = Literal["delegated", "autonomous", "controlled"]
AgentMode = Literal["single", "dual"]
Switch = Literal["on", "off"]

DEFAULT_AUTO_APPROVE = ["read-file", "glob", "grep", "spawn-agents", "todo", "memo"]
DEFAULT_REQUIRE_APPROVAL = ["write-file", "edit-file", "bash", "git"]


class ModelOverride(BaseModel):
    """Partial model settings for one role; unset fields fall back to the top level."""

    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class DualAgentSettings(BaseModel):
    orchestrator: ModelOverride = Field(default_factory=ModelOverride)
    coder: ModelOverride = Field(default_factory=ModelOverride)


class FeatureSettings(BaseModel):
    """Runtime feature switches.

    - git: "auto" registers the git tool only inside a git work tree
    - mcp: bridge configured tool servers
    - parallel_agents: register the spawn-agents fan-out tool
    - todo: register the todo tool
    """

    git: Literal["auto", "on", "off"] = "auto"
    mcp: Switch = "off"
    parallel_agents: Switch = "on"
    todo: Switch = "on"

    @field_validator("git", "mcp", "parallel_agents", "todo", mode="before")
    @classmethod
    def _yaml_booleans(cls, value):
        # YAML 1.1 reads bare on/off as booleans
        if isinstance(value, bool):
            return "on" if value else "off"
        return value


class PermissionSettings(BaseModel):
    """Tool permission overrides (take precedence over tool defaults)."""

    auto_approve: List[str] = Field(default_factory=lambda: list(DEFAULT_AUTO_APPROVE))
    require_approval: List[str] = Field(default_factory=lambda: list(DEFAULT_REQUIRE_APPROVAL))


class McpServerSettings(BaseModel):
    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)


class Settings(BaseSettings):
    """Top-level settings container.

    Source priority (high to low): environment, .env file, init kwargs
    (which is where merged YAML lands).
    """

    model: str = "deepseek-chat"
    api_key: Optional[str] = None
    base_url: str = "https://api.deepseek.com/v1"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8192, ge=1)

    agent_mode: AgentMode = "dual"
    collaboration: CollaborationMode = "delegated"

    dual_agent: DualAgentSettings = Field(default_factory=DualAgentSettings)
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    permissions: PermissionSettings = Field(default_factory=PermissionSettings)
    mcp_servers: List[McpServerSettings] = Field(default_factory=list)

    max_tool_output: int = Field(default=30000, ge=100)

    model_config = SettingsConfigDict(
        env_prefix="CODEAGENT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings merged from YAML files and the environment."""
    from .loader import load_settings

    return load_settings()
