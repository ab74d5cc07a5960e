"""ReCAP-style recursive planning/execution engine.

This package implements the core loop from the paper:
  ReCAP: Recursive Context-Aware Reasoning and Planning for LLM Agents

Plans are produced in full up front, executed head first, and refined after
every step. Descending into a sub-goal pushes a snapshot of the parent plan;
ascending restores it and folds the sub-goal's outcome back in. The prompt
rendered from this state stays bounded regardless of depth.
"""

from .decomposer import GoalCategory, PlanDecomposer
from .engine import RecapEngine, RecapError, RecapOutcome, RunState
from .prompt import ActivePromptBuilder
from .refiner import PlanRefiner, RefineDecision
from .results import ExecutionResult, ParentContext
from .state import RecapState, RefineAction, RunStatus, TaskStatus, TaskType
from .tasks import SubTask, SubTaskList

__all__ = [
    "ActivePromptBuilder",
    "ExecutionResult",
    "GoalCategory",
    "ParentContext",
    "PlanDecomposer",
    "PlanRefiner",
    "RecapEngine",
    "RecapError",
    "RecapOutcome",
    "RecapState",
    "RefineAction",
    "RefineDecision",
    "RunState",
    "RunStatus",
    "SubTask",
    "SubTaskList",
    "TaskStatus",
    "TaskType",
]
