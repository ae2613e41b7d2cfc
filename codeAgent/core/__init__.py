"""Shared state and executor loops.

Only the leaf modules are re-exported here; executors live in
``codeAgent.core.agent``, ``codeAgent.core.sub_agent`` and ``codeAgent.core.loop``.
"""

from .callbacks import AgentCallbacks, OrchestratorCallbacks
from .conversation import Conversation
from .memo_store import MemoEntry, MemoStore
from .read_tracker import ReadTracker
from .sub_agent_tracker import SubAgentProgress, SubAgentTracker
from .todo_store import TodoItem, TodoPlan, TodoStore

__all__ = [
    "AgentCallbacks",
    "OrchestratorCallbacks",
    "Conversation",
    "MemoEntry",
    "MemoStore",
    "ReadTracker",
    "SubAgentProgress",
    "SubAgentTracker",
    "TodoItem",
    "TodoPlan",
    "TodoStore",
]
