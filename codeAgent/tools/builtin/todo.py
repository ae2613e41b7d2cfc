"""todo tool over the TodoStore."""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional

from langchain_core.tools import BaseTool, tool

from codeAgent.core.todo_store import TodoItem, TodoStore

__all__ = ["make_todo_tool", "format_todo_item"]

TodoAction = Literal["create", "update", "list", "clear"]

STATUS_ICONS = {"pending": "○", "in-progress": "◐", "completed": "●"}


def format_todo_item(item: TodoItem) -> str:
    return f"{STATUS_ICONS.get(item.status, '○')} [{item.id}] {item.title}"


def make_todo_tool(store: TodoStore) -> BaseTool:
    @tool("todo")
    def todo(
        action: Annotated[TodoAction, "Operation to perform"],
        items: Annotated[Optional[List[Dict[str, str]]], "Plan items as {id, title} objects (create only)"] = None,
        id: Annotated[Optional[str], "Item id (update only)"] = None,
        status: Annotated[
            Optional[Literal["pending", "in-progress", "completed"]], "New status (update only)"
        ] = None,
    ) -> str:
        """Manage the task plan.

        For work with several steps, create a plan first and update each item
        as it progresses.
        """
        if action == "create":
            if not items:
                return "Error: create requires items"
            if any("id" not in item or "title" not in item for item in items):
                return "Error: every item needs id and title"
            plan = store.create(items)
            lines = [format_todo_item(item) for item in plan.items]
            return f"Plan created ({len(plan.items)} items):\n" + "\n".join(lines)

        if action == "update":
            if not id or not status:
                return "Error: update requires id and status"
            item = store.update(id, status)
            if item is None:
                return f'Error: item "{id}" not found'
            return f"Updated: {format_todo_item(item)} -> {item.status}"

        if action == "list":
            plan = store.list()
            if plan is None:
                return "No active plan"
            completed = sum(1 for item in plan.items if item.status == "completed")
            lines = [format_todo_item(item) for item in plan.items]
            return f"Plan progress {completed}/{len(plan.items)}:\n" + "\n".join(lines)

        if action == "clear":
            store.clear()
            return "Plan cleared"

        return f'Error: unknown action "{action}". Supported: create, update, list, clear'

    return todo
