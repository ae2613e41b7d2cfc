"""Progress of the fan-out batch currently running.

spawn-agents updates it while its sub-agents run; the presentation layer
subscribes. The transition back to ``None`` tells observers the batch is over.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional


@dataclass(frozen=True, slots=True)
class SubAgentProgress:
    total: int
    completed: int = 0
    failed: int = 0
    descriptions: List[str] = field(default_factory=list)
    tokens: int = 0


ProgressListener = Callable[[Optional[SubAgentProgress]], None]


class SubAgentTracker:
    def __init__(self) -> None:
        self._progress: Optional[SubAgentProgress] = None
        self._listeners: List[ProgressListener] = []

    def start(self, descriptions: List[str]) -> None:
        self._progress = SubAgentProgress(total=len(descriptions), descriptions=list(descriptions))
        self._notify()

    def mark_completed(self) -> None:
        if self._progress is None:
            return
        self._progress = replace(self._progress, completed=self._progress.completed + 1)
        self._notify()

    def mark_failed(self) -> None:
        if self._progress is None:
            return
        self._progress = replace(self._progress, failed=self._progress.failed + 1)
        self._notify()

    def add_tokens(self, count: int) -> None:
        if self._progress is None or count <= 0:
            return
        self._progress = replace(self._progress, tokens=self._progress.tokens + count)
        self._notify()

    def finish(self) -> None:
        self._progress = None
        self._notify()

    @property
    def current(self) -> Optional[SubAgentProgress]:
        return self._progress

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = replace(self._progress, descriptions=list(self._progress.descriptions)) if self._progress else None
        for listener in list(self._listeners):
            listener(snapshot)
