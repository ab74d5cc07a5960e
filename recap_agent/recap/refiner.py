"""Plan refinement after an atomic step or after a sub-goal returns.

Both entry points are pure: they work on a deep copy of the given plan and
install the new pending queue with `replace_remaining`, so completed history
carries over and the caller's plan is never touched.
"""

from __future__ import annotations

from dataclasses import dataclass

from recap_agent.utils.text import contains_any, truncate

from .results import ExecutionResult
from .state import RefineAction, TaskStatus, TaskType
from .tasks import SubTask, SubTaskList, clamp_complexity


SKIP_MARKERS: tuple[str, ...] = ("no longer needed", "not needed", "already done", "已完成", "无需")
OPTIONAL_MARKERS: tuple[str, ...] = ("optional", "if needed", "可选", "如果需要")

# Explicit textual signals, checked in order after the skip markers.
SIGNAL_MARKERS: tuple[tuple[RefineAction, tuple[str, ...]], ...] = (
    (RefineAction.SPLIT, ("needs splitting", "too large", "需要拆分")),
    (RefineAction.MERGE, ("can be merged", "可以合并")),
    (RefineAction.ADD, ("follow-up:", "后续任务:")),
    (RefineAction.REORDER, ("reorder", "重新排序")),
)

DONE_MARKERS: tuple[str, ...] = ("已完成", "already done", "already completed")
PROBLEM_MARKERS: tuple[str, ...] = ("问题", "错误", "problem", "error", "issue")

SKIP_KEYWORD_CHARS = 10
REASON_MAX_CHARS = 30

# Description a task had before any refinement note was appended.
BASE_DESCRIPTION_KEY = "base_description"


@dataclass(frozen=True)
class RefineDecision:
    action: RefineAction
    reason: str
    new_task_description: str = ""


def _extract_follow_up(output: str, markers: tuple[str, ...]) -> str:
    lowered = output.lower()
    for marker in markers:
        idx = lowered.find(marker.lower())
        if idx == -1:
            continue
        rest = output[idx + len(marker) :]
        for stop in ("\n", ";", "；"):
            cut = rest.find(stop)
            if cut != -1:
                rest = rest[:cut]
        return truncate(rest.strip(), 80)
    return ""


def _annotate(task: SubTask, note: str) -> None:
    task.context.setdefault(BASE_DESCRIPTION_KEY, task.description)
    task.description = f"{task.description} {note}"


def base_description(task: SubTask) -> str:
    return task.context.get(BASE_DESCRIPTION_KEY) or task.description


def _can_skip(task: SubTask) -> bool:
    return task.complexity <= 1 or contains_any(task.description, OPTIONAL_MARKERS)


class PlanRefiner:
    def refine(self, plan: SubTaskList, result: ExecutionResult, intent: str) -> SubTaskList:
        if plan.is_empty():
            return plan.copy()
        return self.apply(plan, self.decide(plan, result, intent))

    def decide(self, plan: SubTaskList, result: ExecutionResult, intent: str) -> RefineDecision:
        """Pick exactly one action: failure > insight > skip marker > signal > keep."""
        if not result.ok:
            return RefineDecision(RefineAction.MODIFY, f"previous step failed: {result.error}")

        if result.insights:
            return RefineDecision(RefineAction.MODIFY, f"new insight: {result.insights[0]}")

        output = result.output or ""
        if contains_any(output, SKIP_MARKERS):
            return RefineDecision(RefineAction.SKIP, "previous output says later work is not needed")

        for action, markers in SIGNAL_MARKERS:
            if not contains_any(output, markers):
                continue
            if action == RefineAction.ADD:
                description = _extract_follow_up(output, markers)
                if not description:
                    continue
                return RefineDecision(action, "previous output asked for a follow-up", description)
            return RefineDecision(action, f"previous output signalled {action.value}")

        return RefineDecision(RefineAction.KEEP, "step went as planned")

    def apply(self, plan: SubTaskList, decision: RefineDecision) -> SubTaskList:
        refined = plan.copy()
        tasks = refined.remaining_tasks
        if not tasks:
            return refined

        action = decision.action
        if action == RefineAction.MODIFY:
            new_tasks = self._modify(tasks, decision)
        elif action == RefineAction.SKIP:
            new_tasks = self._skip(tasks)
        elif action == RefineAction.SPLIT:
            new_tasks = self._split(tasks)
        elif action == RefineAction.MERGE:
            new_tasks = self._merge(tasks)
        elif action == RefineAction.ADD:
            new_tasks = self._add(tasks, decision)
        elif action == RefineAction.REORDER:
            new_tasks = sorted(tasks, key=lambda t: t.priority)
        else:
            new_tasks = tasks

        refined.replace_remaining(new_tasks)
        return refined

    def refine_after_sub_goal(self, parent_plan: SubTaskList, child_summary: str, intent: str) -> SubTaskList:
        """Fold a finished sub-goal's summary back into the restored parent plan."""
        refined = parent_plan.copy()
        if refined.is_empty():
            return refined

        summary = child_summary or ""
        lowered = summary.lower()
        done = contains_any(summary, DONE_MARKERS)
        problem = contains_any(summary, PROBLEM_MARKERS)

        kept: list[SubTask] = []
        for task in refined.remaining_tasks:
            keyword = task.description.lower()[:SKIP_KEYWORD_CHARS]
            if done and keyword and keyword in lowered:
                task.status = TaskStatus.SKIPPED
                continue
            if problem:
                _annotate(task, "(mind the issues found by the sub-goal)")
                task.complexity = task.complexity + 1
                task.status = TaskStatus.REFINED
            kept.append(task)

        refined.replace_remaining(kept)
        return refined

    def _modify(self, tasks: list[SubTask], decision: RefineDecision) -> list[SubTask]:
        head = tasks[0]
        _annotate(head, f"(based on: {truncate(decision.reason, REASON_MAX_CHARS)})")
        head.status = TaskStatus.REFINED
        return tasks

    def _skip(self, tasks: list[SubTask]) -> list[SubTask]:
        head = tasks[0]
        if not _can_skip(head):
            return tasks
        head.status = TaskStatus.SKIPPED
        return tasks[1:]

    def _split(self, tasks: list[SubTask]) -> list[SubTask]:
        out: list[SubTask] = []
        for task in tasks:
            if task.type == TaskType.COMPOSITE and task.complexity > 3:
                for phase in (1, 2):
                    out.append(
                        SubTask(
                            f"{task.description} - phase {phase}",
                            TaskType.ATOMIC,
                            priority=task.priority,
                            complexity=clamp_complexity(task.complexity - 2),
                            context={
                                **{k: v for k, v in task.context.items() if k != BASE_DESCRIPTION_KEY},
                                "split_from": task.id,
                            },
                        )
                    )
            else:
                out.append(task)
        return out

    def _merge(self, tasks: list[SubTask]) -> list[SubTask]:
        out: list[SubTask] = []
        i = 0
        while i < len(tasks):
            cur = tasks[i]
            nxt = tasks[i + 1] if i + 1 < len(tasks) else None
            if nxt is not None and cur.complexity <= 2 and nxt.complexity <= 2:
                out.append(
                    SubTask(
                        f"{cur.description} and {nxt.description}",
                        TaskType.ATOMIC,
                        priority=min(cur.priority, nxt.priority),
                        complexity=max(cur.complexity, nxt.complexity),
                        context={"merged_from": [cur.id, nxt.id]},
                    )
                )
                i += 2
                continue
            out.append(cur)
            i += 1
        return out

    def _add(self, tasks: list[SubTask], decision: RefineDecision) -> list[SubTask]:
        new_task = SubTask(
            decision.new_task_description,
            TaskType.ATOMIC,
            priority=tasks[0].priority,
            context={"added_by": "refiner"},
        )
        return [new_task, *tasks]
