from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from recap_agent.utils.text import contains_any, truncate

from .actions import build_tool_args, select_tool
from .decomposer import Decomposer, PlanDecomposer
from .prompt import ActivePromptBuilder
from .refiner import PlanRefiner, base_description
from .results import ExecutionResult, ParentContext
from .state import RecapState, RunStatus, TaskStatus
from .tasks import SubTask, SubTaskList


class RecapError(RuntimeError):
    pass


def _now_ts() -> float:
    return time.time()


INSIGHT_MARKERS: tuple[str, ...] = ("key", "important", "found", "discovered", "关键", "重要", "发现")

INSIGHT_MAX_CHARS = 50
THOUGHT_TASK_CHARS = 30
CHILD_SUMMARY_WINDOW = 3
CHILD_SUMMARY_ITEM_CHARS = 40
MERGED_SUMMARY_CHARS = 50

NO_CHILD_RESULTS = "sub-goal produced no results"


@dataclass(frozen=True)
class RecapOutcome:
    status: RunStatus
    answer: str
    results: list[ExecutionResult]
    key_insights: list[str]
    steps: int
    max_depth_reached: int
    pushes: int
    pops: int
    forced_atomic: int


@dataclass
class RunState:
    """Everything one run owns; the agent keeps it around for inspection."""

    intent: str = ""
    plan: SubTaskList = field(default_factory=SubTaskList)
    latest_thought: str = ""
    parent_stack: list[ParentContext] = field(default_factory=list)
    depth: int = 0
    key_insights: list[str] = field(default_factory=list)
    results: list[ExecutionResult] = field(default_factory=list)

    steps: int = 0
    max_depth_reached: int = 0
    pushes: int = 0
    pops: int = 0
    forced_atomic: int = 0
    phase: RecapState = RecapState.DOWN

    # Set on ascent so the next prompt is the re-injection variant.
    restored: ParentContext | None = None
    child_summary: str = ""

    def reset(self, intent: str) -> None:
        self.intent = intent
        self.plan = SubTaskList()
        self.latest_thought = ""
        self.parent_stack = []
        self.depth = 0
        self.key_insights = []
        self.results = []
        self.steps = 0
        self.max_depth_reached = 0
        self.pushes = 0
        self.pops = 0
        self.forced_atomic = 0
        self.phase = RecapState.DOWN
        self.restored = None
        self.child_summary = ""


def _coerce_tool_output(raw: Any) -> tuple[str, list[str]]:
    if isinstance(raw, dict) and "output" in raw:
        insights = raw.get("insights") or []
        if isinstance(insights, str):
            insights = [insights]
        return str(raw["output"]), [str(i) for i in insights]
    return "" if raw is None else str(raw), []


def generate_thought(task: SubTask, result: ExecutionResult) -> str:
    desc = truncate(task.description, THOUGHT_TASK_CHARS)
    if result.ok:
        thought = f"Task '{desc}' done."
        if result.insights:
            thought += f" Key insight: {result.insights[0]}"
        return thought
    return f"Task '{desc}' failed: {result.error}. Strategy needs adjusting."


def summarize_child(results: list[ExecutionResult]) -> str:
    if not results:
        return NO_CHILD_RESULTS
    parts: list[str] = []
    for r in results[-CHILD_SUMMARY_WINDOW:]:
        mark = "✓" if r.ok else "✗"
        text = r.output if r.ok else r.error
        parts.append(f"{mark} {truncate(text, CHILD_SUMMARY_ITEM_CHARS)}; ")
    return "".join(parts)


def merge_thoughts(parent_thought: str, child_summary: str) -> str:
    return f"{parent_thought} | sub-goal result: {truncate(child_summary, MERGED_SUMMARY_CHARS)}"


class RecapEngine:
    """Recursive plan-ahead execution loop.

    Each pass either ascends (plan exhausted, parent snapshot restored),
    descends (head task needs decomposition and the depth cap allows it), or
    executes the head task atomically and refines what is left. The bounded
    active prompt is rendered every pass from the current state.
    """

    def __init__(
        self,
        *,
        decomposer: Decomposer | None = None,
        refiner: PlanRefiner | None = None,
        prompt_builder: ActivePromptBuilder | None = None,
    ) -> None:
        self.decomposer = decomposer or PlanDecomposer()
        self.refiner = refiner or PlanRefiner()
        self.prompt_builder = prompt_builder or ActivePromptBuilder()

    def render_prompt(self, rt: RunState) -> str:
        if rt.restored is not None:
            return self.prompt_builder.build_with_injection(
                rt.intent, rt.restored, rt.child_summary, rt.key_insights
            )
        return self.prompt_builder.build(rt.intent, rt.plan, rt.latest_thought, rt.key_insights, rt.depth)

    def run(self, ctx: Any, *, goal: str, state: RunState | None = None) -> RecapOutcome:
        if getattr(ctx, "config", None) is None:
            raise RecapError("Recap config missing from AgentContext.")
        if ctx.tools is None:
            raise RecapError("Tool collaborator not configured.")

        cfg = ctx.config
        max_steps = int(cfg.max_steps)
        max_depth = int(cfg.max_depth)

        rt = state if state is not None else RunState()
        rt.reset((goal or "").strip())

        if not rt.intent:
            answer = "No goal given; nothing to do."
            ctx.trace("final", {"ts": _now_ts(), "status": RunStatus.NO_RESULT.value, "steps": 0})
            return self._outcome(rt, RunStatus.NO_RESULT, answer)

        ctx.add_step("init", f"Start processing: {rt.intent}")
        rt.plan = self.decomposer.decompose(rt.intent)
        ctx.add_step("plan", f"Full plan:\n{rt.plan.format()}", tasks=rt.plan.descriptions())

        while rt.steps < max_steps:
            if ctx.cancel.cancelled:
                return self._stop(ctx, rt, RunStatus.CANCELLED)
            rt.steps += 1

            if rt.plan.is_empty():
                if not rt.parent_stack:
                    return self._finish(ctx, rt)
                self._restore(ctx, rt)
                self._trace_prompt(ctx, rt)
                continue

            rt.restored = None
            rt.child_summary = ""

            task = rt.plan.pop_head()
            ctx.add_step(
                "execute",
                f"[depth:{rt.depth}] executing task: {task.description}",
                task_id=task.id,
                depth=rt.depth,
            )

            if task.needs_decomposition() and rt.depth < max_depth:
                self._descend(ctx, rt, task)
            else:
                if task.needs_decomposition():
                    task.context["forced_atomic"] = True
                    rt.forced_atomic += 1
                    ctx.trace(
                        "forced_atomic",
                        {
                            "ts": _now_ts(),
                            "task_id": task.id,
                            "description": task.description,
                            "depth": rt.depth,
                            "max_depth": max_depth,
                        },
                    )
                self._execute(ctx, rt, task)

            self._trace_prompt(ctx, rt)

        return self._stop(ctx, rt, RunStatus.PARTIAL)

    def _descend(self, ctx: Any, rt: RunState, task: SubTask) -> None:
        rt.phase = RecapState.DOWN
        rt.parent_stack.append(ParentContext(rt.plan, rt.latest_thought, rt.depth, task.description))
        rt.pushes += 1
        ctx.add_step(
            "push",
            f"Saved parent context [depth:{rt.depth}]",
            depth=rt.depth,
            stack_size=len(rt.parent_stack),
        )

        rt.plan = self.decomposer.decompose(task.description)
        rt.depth += 1
        rt.max_depth_reached = max(rt.max_depth_reached, rt.depth)
        ctx.add_step(
            "recurse",
            f"Recursive decomposition [depth:{rt.depth}]:\n{rt.plan.format()}",
            depth=rt.depth,
            sub_goal=task.description,
            tasks=rt.plan.descriptions(),
        )

    def _execute(self, ctx: Any, rt: RunState, task: SubTask) -> None:
        rt.phase = RecapState.ACTION_TAKEN
        # Refinement notes must not steer tool choice.
        tool_name = task.required_tool or select_tool(base_description(task))

        started = time.perf_counter()
        try:
            args = build_tool_args(task.description, rt.latest_thought)
            ctx.trace(
                "tool_call",
                {"ts": _now_ts(), "task_id": task.id, "tool": tool_name, "args": args},
            )
            raw = ctx.tools.invoke(tool_name, args)
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000.0
            result = ExecutionResult.failure(
                task.id, f"{type(e).__name__}: {e}", tool_used=tool_name, duration_ms=duration_ms
            )
        else:
            duration_ms = (time.perf_counter() - started) * 1000.0
            output, insights = _coerce_tool_output(raw)
            result = ExecutionResult.success(task.id, output, tool_used=tool_name, duration_ms=duration_ms)
            if contains_any(output, INSIGHT_MARKERS):
                result.add_insight(truncate(output, INSIGHT_MAX_CHARS))
            for insight in insights:
                result.add_insight(insight)

        rt.results.append(result)
        rt.plan.mark_completed(task)
        if not result.ok:
            task.status = TaskStatus.FAILED
        ctx.add_step(
            "observation",
            result.summary(),
            task_id=task.id,
            ok=result.ok,
            tool=tool_name,
            duration_ms=round(result.duration_ms, 3),
        )

        rt.latest_thought = generate_thought(task, result)
        rt.key_insights.extend(result.insights)

        decision = self.refiner.decide(rt.plan, result, rt.intent)
        before = rt.plan.descriptions()
        rt.plan = self.refiner.apply(rt.plan, decision)
        ctx.trace(
            "refine",
            {
                "ts": _now_ts(),
                "action": decision.action.value,
                "reason": decision.reason,
                "before": before,
                "after": rt.plan.descriptions(),
            },
        )

    def _restore(self, ctx: Any, rt: RunState) -> None:
        rt.phase = RecapState.UP
        parent = rt.parent_stack.pop()
        rt.pops += 1
        rt.depth = parent.depth

        child_summary = summarize_child(rt.results)
        ctx.add_step(
            "restore",
            f"Restored parent context [depth:{rt.depth}]\nSub-goal summary: {child_summary}",
            depth=rt.depth,
            sub_goal=parent.sub_goal_description,
        )

        rt.plan = parent.remaining_plan
        rt.latest_thought = merge_thoughts(parent.latest_thought, child_summary)
        before = rt.plan.descriptions()
        rt.plan = self.refiner.refine_after_sub_goal(rt.plan, child_summary, rt.intent)
        ctx.trace(
            "refine",
            {
                "ts": _now_ts(),
                "action": "after_sub_goal",
                "reason": child_summary,
                "before": before,
                "after": rt.plan.descriptions(),
            },
        )

        rt.restored = parent
        rt.child_summary = child_summary

    def _trace_prompt(self, ctx: Any, rt: RunState) -> None:
        prompt = self.render_prompt(rt)
        ctx.trace(
            "active_prompt",
            {
                "ts": _now_ts(),
                "phase": rt.phase.value,
                "depth": rt.depth,
                "chars": len(prompt),
                "estimated_tokens": self.prompt_builder.estimate_tokens(prompt),
            },
        )

    def _finish(self, ctx: Any, rt: RunState) -> RecapOutcome:
        answer = self._synthesize_final_answer(rt)
        status = RunStatus.COMPLETED if rt.results else RunStatus.NO_RESULT
        ctx.trace(
            "final",
            {
                "ts": _now_ts(),
                "status": status.value,
                "steps": rt.steps,
                "results": len(rt.results),
                "max_depth_reached": rt.max_depth_reached,
            },
        )
        return self._outcome(rt, status, answer)

    def _stop(self, ctx: Any, rt: RunState, status: RunStatus) -> RecapOutcome:
        if status == RunStatus.CANCELLED:
            reason = ctx.cancel.reason or "cancellation requested"
            header = f"Run cancelled ({reason}); the task is partially complete."
        else:
            header = "Step limit reached; the task is partially complete."
        lines = [header, "Current progress:", rt.plan.format_full()]

        while rt.parent_stack:
            parent = rt.parent_stack.pop()
            rt.pops += 1
            ctx.trace(
                "unwind",
                {
                    "ts": _now_ts(),
                    "depth": parent.depth,
                    "sub_goal": parent.sub_goal_description,
                    "remaining": parent.remaining_size,
                },
            )
            lines.append(f"Parent plan (depth {parent.depth}, sub-goal: {parent.sub_goal_description}):")
            lines.append(parent.remaining_plan.format())
        rt.depth = 0

        answer = "\n".join(lines)
        ctx.trace(
            "final",
            {
                "ts": _now_ts(),
                "status": status.value,
                "steps": rt.steps,
                "results": len(rt.results),
                "max_depth_reached": rt.max_depth_reached,
            },
        )
        return self._outcome(rt, status, answer)

    def _synthesize_final_answer(self, rt: RunState) -> str:
        successful = sum(1 for r in rt.results if r.ok)
        lines = [
            "=== ReCAP run complete ===",
            "",
            "[Goal]",
            rt.intent,
            "",
            "[Statistics]",
            f"- Max recursion depth: {rt.max_depth_reached}",
            f"- Executed tasks: {len(rt.results)}",
            f"- Successful tasks: {successful}",
            "",
        ]
        if rt.key_insights:
            lines.append("[Key insights]")
            lines.extend(f"- {i}" for i in rt.key_insights)
            lines.append("")
        lines.append("[Conclusion]")
        lines.append(self._conclusion(rt))
        return "\n".join(lines)

    def _conclusion(self, rt: RunState) -> str:
        if not rt.results:
            return "The run produced no results."
        outputs = [r.output for r in rt.results if r.ok and r.output]
        if not outputs:
            return "The run finished but produced no valid output."
        return " ".join(outputs).strip()

    def _outcome(self, rt: RunState, status: RunStatus, answer: str) -> RecapOutcome:
        return RecapOutcome(
            status=status,
            answer=answer,
            results=list(rt.results),
            key_insights=list(rt.key_insights),
            steps=rt.steps,
            max_depth_reached=rt.max_depth_reached,
            pushes=rt.pushes,
            pops=rt.pops,
            forced_atomic=rt.forced_atomic,
        )
