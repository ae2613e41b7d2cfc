"""Runtime assembly: registry, shared stores, executors.

``build_application`` wires every component from :class:`Settings`;
the returned :class:`Application` is what a CLI or another surface drives.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Union

from codeAgent.config import Settings, get_settings
from codeAgent.config.project_root import get_workspace_root
from codeAgent.core.agent import Agent
from codeAgent.core.callbacks import AgentCallbacks, OrchestratorCallbacks
from codeAgent.core.memo_store import MemoStore
from codeAgent.core.sub_agent_tracker import SubAgentTracker
from codeAgent.core.todo_store import TodoStore
from codeAgent.dual_agent import MODES, Orchestrator
from codeAgent.hitl.gate import ConfirmationGate, SwitchableGate
from codeAgent.llm.client import LLMClient
from codeAgent.subagents import SubAgentConfigRegistry, SubAgentModelConfig, load_all_agent_configs
from codeAgent.tools.builtin import (
    git,
    make_dispatch_tool,
    make_memo_tool,
    make_spawn_agents_tool,
    make_todo_tool,
    register_core_tools,
    register_tool,
)
from codeAgent.tools.mcp import MCPServerManager, connect_mcp_servers
from codeAgent.tools.registry import ToolRegistry

from .model_resolver import (
    ModelFactory,
    build_chat_model,
    override_model_config,
    resolve_model_config,
)

LOGGER = logging.getLogger(__name__)

Feature = Literal["git", "todo", "parallel_agents", "mcp"]

BASE_SYSTEM_PROMPT = """You are codeAgent, a coding assistant working in the project at {workspace}.

- Read a file with read-file before editing it; edit-file refuses files you have not read
- Prefer edit-file for changes; write-file is for new files or full rewrites (overwrite=true)
- Use glob/grep to locate code instead of bash
- Keep the shared memo up to date with decisions other agents need
- Answer briefly once the work is done"""


def in_git_work_tree(root: Path) -> bool:
    return any((directory / ".git").exists() for directory in (root, *root.parents))


class Application:
    """Holds the registry, the shared stores and both executors.

    ``run`` routes by ``settings.agent_mode``: ``single`` uses :attr:`agent`,
    ``dual`` uses :attr:`orchestrator`.
    """

    def __init__(
        self,
        settings: Settings,
        gate: ConfirmationGate,
        client: LLMClient,
        orchestrator_client: LLMClient,
        coder_client: LLMClient,
        *,
        model_factory: ModelFactory = build_chat_model,
        agent_dirs: Optional[Iterable[Path]] = None,
    ) -> None:
        self.settings = settings
        self.gate = gate
        self.client = client
        self.orchestrator_client = orchestrator_client
        self.coder_client = coder_client
        self._model_factory = model_factory

        self.registry = ToolRegistry(settings.permissions)
        self.memo_store = MemoStore()
        self.todo_store = TodoStore()
        self.tracker = SubAgentTracker()
        self.agent_configs = SubAgentConfigRegistry(load_all_agent_configs(agent_dirs))
        self.mcp_manager = MCPServerManager(settings.mcp_servers)
        self._active_callbacks: Optional[AgentCallbacks] = None

        self._register_tools()

        system_prompt = BASE_SYSTEM_PROMPT.format(workspace=get_workspace_root())
        self.agent = Agent(
            client, self.registry, gate, system_prompt,
            max_tool_output=settings.max_tool_output, memo_store=self.memo_store,
        )
        self.orchestrator = Orchestrator(
            orchestrator_client, coder_client, self.registry, gate, system_prompt,
            mode=settings.collaboration, max_tool_output=settings.max_tool_output, memo_store=self.memo_store,
        )

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def _register_tools(self) -> None:
        register_core_tools(self.registry)
        register_tool(self.registry, make_memo_tool(self.memo_store))
        register_tool(
            self.registry,
            make_dispatch_tool(
                self.client,
                self.registry,
                self.agent_configs,
                gate=self.gate,
                client_factory=self._client_for_sub_agent,
                callbacks_provider=self._sub_agent_callbacks,
                tracker=self.tracker,
                max_tool_output=self.settings.max_tool_output,
            ),
        )

        features = self.settings.features
        if features.todo == "on":
            self._enable("todo")
        if features.parallel_agents == "on":
            self._enable("parallel_agents")
        if features.git == "on" or (features.git == "auto" and in_git_work_tree(get_workspace_root())):
            self._enable("git")

        LOGGER.info(f"Registered tools: {', '.join(self.registry.list_tools())}")

    def _enable(self, feature: Feature) -> None:
        if feature == "todo":
            register_tool(self.registry, make_todo_tool(self.todo_store))
        elif feature == "parallel_agents":
            register_tool(
                self.registry,
                make_spawn_agents_tool(
                    self.client,
                    self.registry,
                    gate=self.gate,
                    tracker=self.tracker,
                    max_tool_output=self.settings.max_tool_output,
                ),
            )
        elif feature == "git":
            register_tool(self.registry, git)

    def _client_for_sub_agent(self, override: SubAgentModelConfig) -> LLMClient:
        config = override_model_config(
            resolve_model_config(self.settings),
            model=override.model,
            api_key=override.api_key,
            base_url=override.base_url,
        )
        return LLMClient(self._model_factory(config), name=f"sub-agent:{config['model']}")

    def _sub_agent_callbacks(self) -> Optional[AgentCallbacks]:
        return self._active_callbacks.agent_view() if self._active_callbacks else None

    # ------------------------------------------------------------------
    # Runtime switches
    # ------------------------------------------------------------------

    def set_feature(self, feature: Feature, enabled: bool) -> None:
        """Toggle a tool-backed feature; the change is visible from the next model turn.

        Turning ``mcp`` off removes every bridged tool; turning it on only records
        the switch, call :meth:`connect_mcp_servers` to bridge.
        """
        tool_names = {"todo": "todo", "parallel_agents": "spawn-agents", "git": "git", "mcp": None}
        if feature not in tool_names:
            raise ValueError(f"Unknown feature: {feature}")

        setattr(self.settings.features, feature, "on" if enabled else "off")
        tool_name = tool_names[feature]
        if tool_name is not None:
            if enabled and not self.registry.has(tool_name):
                self._enable(feature)
            elif not enabled:
                self.registry.unregister(tool_name)
        elif not enabled:
            for name in self.registry.list_tools(tag="mcp"):
                self.registry.unregister(name)
        LOGGER.info(f"Feature {feature} {'enabled' if enabled else 'disabled'}")

    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"Unknown collaboration mode: {mode}")
        self.settings.collaboration = mode
        self.orchestrator.set_mode(mode)

    def set_agent_mode(self, agent_mode: Literal["single", "dual"]) -> None:
        self.settings.agent_mode = agent_mode

    async def connect_mcp_servers(self) -> List[str]:
        """Bridge every configured tool server; returns the registered tool names."""
        if not self.settings.mcp_servers:
            return []
        return await connect_mcp_servers(self.mcp_manager, self.registry)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(self, text: str, callbacks: Optional[Union[AgentCallbacks, OrchestratorCallbacks]] = None) -> str:
        self._active_callbacks = callbacks
        try:
            if self.settings.agent_mode == "dual":
                orchestrator_callbacks = callbacks
                if callbacks is not None and not isinstance(callbacks, OrchestratorCallbacks):
                    orchestrator_callbacks = OrchestratorCallbacks(**vars(callbacks))
                return await self.orchestrator.run(text, orchestrator_callbacks)
            return await self.agent.run(text, callbacks)
        finally:
            self._active_callbacks = None

    def interrupt(self) -> None:
        if self.settings.agent_mode == "dual":
            self.orchestrator.interrupt()
        else:
            self.agent.interrupt()

    def reset(self) -> None:
        self.agent.reset()
        self.orchestrator.reset()
        self.memo_store.clear()
        self.todo_store.clear()

    async def shutdown(self) -> None:
        await self.mcp_manager.shutdown()


def build_application(
    settings: Optional[Settings] = None,
    gate: Optional[ConfirmationGate] = None,
    model_factory: Optional[ModelFactory] = None,
    *,
    agent_dirs: Optional[Iterable[Path]] = None,
) -> Application:
    """Assemble an :class:`Application`.

    Args:
        settings: Defaults to :func:`get_settings`
        gate: Confirmation strategy; defaults to an empty :class:`SwitchableGate`
            (denies until a surface registers a handler)
        model_factory: Builds a chat model from a resolved config; defaults to ChatOpenAI
        agent_dirs: Sub-agent YAML directories (defaults to global + project)
    """
    settings = settings or get_settings()
    gate = gate or SwitchableGate()
    model_factory = model_factory or build_chat_model

    default_config = resolve_model_config(settings)
    orchestrator_config = resolve_model_config(settings, "orchestrator")
    coder_config = resolve_model_config(settings, "coder")

    client = LLMClient(model_factory(default_config), name="default")
    orchestrator_client = (
        client if orchestrator_config == default_config
        else LLMClient(model_factory(orchestrator_config), name="orchestrator")
    )
    coder_client = LLMClient(model_factory(coder_config), name="coder")

    LOGGER.info(
        f"Models: default={default_config['model']}, orchestrator={orchestrator_config['model']}, "
        f"coder={coder_config['model']}, agent_mode={settings.agent_mode}, collaboration={settings.collaboration}"
    )

    return Application(
        settings, gate, client, orchestrator_client, coder_client,
        model_factory=model_factory, agent_dirs=agent_dirs,
    )
