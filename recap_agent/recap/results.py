from __future__ import annotations

import time
from dataclasses import dataclass, field

from recap_agent.utils.text import truncate

from .tasks import SubTaskList


def _now_ts() -> float:
    return time.time()


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of exactly one atomic task.

    Build it with `ExecutionResult.success(...)` or `ExecutionResult.failure(...)`;
    a result carries an output or an error, never both.
    """

    task_id: str
    ok: bool
    output: str | None = None
    error: str | None = None
    insights: list[str] = field(default_factory=list)
    tool_used: str | None = None
    duration_ms: float = 0.0
    timestamp: float = field(default_factory=_now_ts)

    def __post_init__(self) -> None:
        if self.ok and (self.output is None or self.error is not None):
            raise ValueError("A successful result needs an output and no error.")
        if not self.ok and (self.error is None or self.output is not None):
            raise ValueError("A failed result needs an error and no output.")

    @classmethod
    def success(
        cls,
        task_id: str,
        output: str,
        *,
        tool_used: str | None = None,
        duration_ms: float = 0.0,
    ) -> "ExecutionResult":
        return cls(
            task_id=task_id,
            ok=True,
            output="" if output is None else str(output),
            tool_used=tool_used,
            duration_ms=float(duration_ms),
        )

    @classmethod
    def failure(
        cls,
        task_id: str,
        error: str,
        *,
        tool_used: str | None = None,
        duration_ms: float = 0.0,
    ) -> "ExecutionResult":
        return cls(
            task_id=task_id,
            ok=False,
            error=str(error or "unknown error"),
            tool_used=tool_used,
            duration_ms=float(duration_ms),
        )

    def add_insight(self, insight: str | None) -> None:
        if insight is not None and insight.strip():
            self.insights.append(insight)

    def summary(self) -> str:
        if self.ok:
            text = f"succeeded: {truncate(self.output, 100)}"
            if self.insights:
                text += " | insights: " + "; ".join(self.insights)
            return text
        return f"failed: {self.error}"

    def __repr__(self) -> str:
        return f"Result[{self.task_id}]: {'SUCCESS' if self.ok else 'FAILED'}"


class ParentContext:
    """Snapshot pushed on the parent stack when the engine descends into a sub-goal.

    The plan is deep-copied on the way in and again on every read, so nothing
    holding a restored plan can reach the archived one.
    """

    __slots__ = ("_remaining_plan", "_latest_thought", "_depth", "_sub_goal_description", "_timestamp")

    def __init__(
        self,
        remaining_plan: SubTaskList,
        latest_thought: str,
        depth: int,
        sub_goal_description: str,
    ) -> None:
        self._remaining_plan = remaining_plan.copy()
        self._latest_thought = latest_thought or ""
        self._depth = int(depth)
        self._sub_goal_description = sub_goal_description
        self._timestamp = _now_ts()

    @property
    def remaining_plan(self) -> SubTaskList:
        return self._remaining_plan.copy()

    @property
    def remaining_size(self) -> int:
        return self._remaining_plan.size()

    @property
    def latest_thought(self) -> str:
        return self._latest_thought

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def sub_goal_description(self) -> str:
        return self._sub_goal_description

    @property
    def timestamp(self) -> float:
        return self._timestamp

    def format_for_injection(self) -> str:
        return "\n".join(
            [
                f"=== Parent context restored (depth: {self._depth}) ===",
                f"Sub-goal: {self._sub_goal_description}",
                f"Previous thought: {self._latest_thought}",
                "Remaining plan:",
                self._remaining_plan.format(),
            ]
        )

    def __repr__(self) -> str:
        return (
            f"ParentContext[depth={self._depth}, remaining={self._remaining_plan.size()}, "
            f"sub_goal={truncate(self._sub_goal_description, 30)}]"
        )
