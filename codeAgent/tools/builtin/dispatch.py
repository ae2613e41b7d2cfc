"""dispatch: hand a task to a named sub-agent."""

from __future__ import annotations

import logging
from typing import Annotated, Callable, Optional

from langchain_core.tools import BaseTool, tool

from codeAgent.core.callbacks import AgentCallbacks
from codeAgent.core.loop import DEFAULT_MAX_TOOL_OUTPUT
from codeAgent.core.sub_agent_tracker import SubAgentTracker
from codeAgent.hitl.gate import ConfirmationGate
from codeAgent.llm.client import LLMClient
from codeAgent.subagents.registry import SubAgentConfigRegistry
from codeAgent.subagents.runner import SubAgentRunner
from codeAgent.subagents.types import SubAgentModelConfig
from codeAgent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)

__all__ = ["make_dispatch_tool"]

NO_OUTPUT_MESSAGE = "(sub-agent finished without output)"

DISPATCH_DESCRIPTION = (
    "Dispatch a specialised sub-agent. It gets its own conversation and system prompt; "
    "use it when a task needs a dedicated role.\n\nAvailable sub-agents:\n{agents}"
)


def make_dispatch_tool(
    client: LLMClient,
    registry: ToolRegistry,
    agents: SubAgentConfigRegistry,
    *,
    gate: Optional[ConfirmationGate] = None,
    client_factory: Optional[Callable[[SubAgentModelConfig], LLMClient]] = None,
    callbacks_provider: Optional[Callable[[], Optional[AgentCallbacks]]] = None,
    tracker: Optional[SubAgentTracker] = None,
    max_tool_output: int = DEFAULT_MAX_TOOL_OUTPUT,
) -> BaseTool:
    """Build the dispatch tool.

    Args:
        client: Client used unless a sub-agent config overrides the model
        client_factory: Builds a client for a config's ``model`` override
        callbacks_provider: Returns the callbacks of the run in progress, so
            the sub-agent streams into the same surface
        tracker: Receives the sub-agent's token usage while a batch is running
    """

    @tool("dispatch")
    async def dispatch(
        agent: Annotated[str, "Sub-agent name"],
        task: Annotated[str, "The concrete task to perform"],
        context: Annotated[Optional[str], "Optional extra context (reference paths, dependencies)"] = None,
    ) -> str:
        """Dispatch a named sub-agent."""
        config = agents.get(agent)
        if config is None:
            return f'Error: sub-agent "{agent}" not found. Available: {", ".join(agents.list_names())}'

        agent_client = client
        if config.model is not None and client_factory is not None:
            agent_client = client_factory(config.model)

        runner = SubAgentRunner(
            agent_client, registry, config, gate, max_tool_output=max_tool_output, tracker=tracker,
        )
        callbacks = callbacks_provider() if callbacks_provider else None

        LOGGER.info(f"Dispatching sub-agent {agent}: {task[:80]}")
        try:
            result = await runner.execute(task, context, callbacks)
        except Exception as e:
            LOGGER.warning(f"Sub-agent {agent} failed: {e}")
            return f"Error: sub-agent {agent} failed: {e}"
        return result or NO_OUTPUT_MESSAGE

    dispatch.description = DISPATCH_DESCRIPTION.format(agents=agents.build_agent_list_description())
    return dispatch
