from __future__ import annotations

import uuid
from collections import deque
from typing import Any, Iterable

from .state import TaskStatus, TaskType


MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5


def _new_task_id() -> str:
    return uuid.uuid4().hex[:8]


def clamp_complexity(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return MIN_COMPLEXITY
    return max(MIN_COMPLEXITY, min(MAX_COMPLEXITY, n))


class SubTask:
    """Unit of work in a ReCAP plan.

    Tasks are either executed directly through a tool (ATOMIC) or expanded
    into a fresh plan one level deeper (COMPOSITE, or anything estimated as
    too complex for a single step).
    """

    def __init__(
        self,
        description: str,
        type: TaskType = TaskType.ATOMIC,
        *,
        priority: int = 0,
        complexity: int = MIN_COMPLEXITY,
        required_tool: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.id = _new_task_id()
        self.description = description
        self.type = type
        self.status = TaskStatus.PENDING
        self.priority = int(priority)
        self._complexity = clamp_complexity(complexity)
        self.required_tool = required_tool
        self.context: dict[str, Any] = dict(context or {})

    @property
    def complexity(self) -> int:
        return self._complexity

    @complexity.setter
    def complexity(self, value: int) -> None:
        self._complexity = clamp_complexity(value)

    def needs_decomposition(self) -> bool:
        return self.type == TaskType.COMPOSITE or self._complexity > 3

    def copy(self) -> "SubTask":
        clone = SubTask(
            self.description,
            self.type,
            priority=self.priority,
            complexity=self._complexity,
            required_tool=self.required_tool,
            context=self.context,
        )
        # Same logical task: keep the id so results stay traceable across copies.
        clone.id = self.id
        clone.status = self.status
        return clone

    def format_for_prompt(self) -> str:
        return f"- {self.description} [{self.type.value}]"

    def __repr__(self) -> str:
        return f"[{self.id}] {self.description} ({self.type.value}, {self.status.value})"


class SubTaskList:
    """Pending FIFO queue of tasks plus the ordered history of completed ones."""

    def __init__(self, tasks: Iterable[SubTask] | None = None) -> None:
        self._tasks: deque[SubTask] = deque(tasks or [])
        self._completed: list[SubTask] = []

    def add(self, task: SubTask) -> None:
        self._tasks.append(task)

    def add_first(self, task: SubTask) -> None:
        self._tasks.appendleft(task)

    def add_all(self, tasks: Iterable[SubTask]) -> None:
        self._tasks.extend(tasks)

    def pop_head(self) -> SubTask | None:
        if not self._tasks:
            return None
        head = self._tasks.popleft()
        head.status = TaskStatus.RUNNING
        return head

    def peek_head(self) -> SubTask | None:
        return self._tasks[0] if self._tasks else None

    def mark_completed(self, task: SubTask) -> None:
        task.status = TaskStatus.COMPLETED
        self._completed.append(task)

    def is_empty(self) -> bool:
        return not self._tasks

    def size(self) -> int:
        return len(self._tasks)

    @property
    def remaining_tasks(self) -> list[SubTask]:
        return list(self._tasks)

    @property
    def completed_tasks(self) -> list[SubTask]:
        return list(self._completed)

    def descriptions(self) -> list[str]:
        return [t.description for t in self._tasks]

    def copy(self) -> "SubTaskList":
        """Deep copy: the result shares no task objects with this list."""
        clone = SubTaskList(t.copy() for t in self._tasks)
        clone._completed = [t.copy() for t in self._completed]
        return clone

    def replace_remaining(self, new_tasks: Iterable[SubTask]) -> None:
        """Swap the pending queue; completed history is kept as is."""
        self._tasks = deque(new_tasks)

    def clear(self) -> None:
        self._tasks.clear()
        self._completed.clear()

    def format(self) -> str:
        if not self._tasks:
            return "[plan is empty]"
        return "\n".join(f"{i}. {t.format_for_prompt()}" for i, t in enumerate(self._tasks, start=1))

    def format_full(self) -> str:
        lines: list[str] = []
        if self._completed:
            lines.append("Completed tasks:")
            for t in self._completed:
                lines.append(f"  ✓ {t.description}")
        if self._tasks:
            lines.append("Remaining tasks:")
            for i, t in enumerate(self._tasks, start=1):
                lines.append(f"  {i}. {t.format_for_prompt()}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"SubTaskList[remaining={len(self._tasks)}, completed={len(self._completed)}]"
