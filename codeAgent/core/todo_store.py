"""Observable todo plan.

The model edits the plan through the todo tool; the presentation layer
subscribes and re-renders on every change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, List, Literal, Mapping, Optional

TodoStatus = Literal["pending", "in-progress", "completed"]
TODO_STATUSES = ("pending", "in-progress", "completed")


@dataclass(slots=True)
class TodoItem:
    id: str
    title: str
    status: TodoStatus = "pending"


@dataclass(slots=True)
class TodoPlan:
    items: List[TodoItem] = field(default_factory=list)

    def snapshot(self) -> "TodoPlan":
        return TodoPlan(items=[replace(item) for item in self.items])


TodoListener = Callable[[Optional[TodoPlan]], None]


class TodoStore:
    def __init__(self) -> None:
        self._plan: Optional[TodoPlan] = None
        self._listeners: List[TodoListener] = []

    def create(self, items: Iterable[Mapping[str, str]]) -> TodoPlan:
        """Replace the active plan; every item starts as pending."""
        self._plan = TodoPlan(items=[TodoItem(id=str(item["id"]), title=str(item["title"])) for item in items])
        self._notify()
        return self._plan.snapshot()

    def update(self, item_id: str, status: TodoStatus) -> Optional[TodoItem]:
        if status not in TODO_STATUSES:
            raise ValueError(f"Invalid todo status: {status}")
        if self._plan is None:
            return None
        for item in self._plan.items:
            if item.id == item_id:
                item.status = status
                self._notify()
                return replace(item)
        return None

    def list(self) -> Optional[TodoPlan]:
        return self._plan.snapshot() if self._plan else None

    def clear(self) -> None:
        self._plan = None
        self._notify()

    def subscribe(self, listener: TodoListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self._plan.snapshot() if self._plan else None
        for listener in list(self._listeners):
            listener(snapshot)
