"""Plan-ahead decomposition: goal text -> complete ordered task list.

Classification and task typing are driven by ordered keyword tables so that
"first match wins" is data, not control flow. Keywords are bilingual
(English + Chinese); see `recap_agent.utils.text.contains_keyword` for the
matching rules.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from recap_agent.utils.text import contains_any, truncate

from .state import TaskType
from .tasks import SubTask, SubTaskList, clamp_complexity


class GoalCategory(Enum):
    ANALYSIS = "analysis"
    DESIGN = "design"
    IMPLEMENTATION = "implementation"
    OPTIMIZATION = "optimization"
    TESTING = "testing"
    CALCULATION = "calculation"
    GENERAL = "general"


CATEGORY_KEYWORDS: tuple[tuple[GoalCategory, tuple[str, ...]], ...] = (
    (GoalCategory.ANALYSIS, ("analy", "research", "investigat", "study", "分析", "研究", "调研")),
    (GoalCategory.DESIGN, ("design", "architect", "plan", "设计", "架构", "规划")),
    (
        GoalCategory.IMPLEMENTATION,
        ("implement", "develop", "build", "write", "create", "实现", "开发", "编写", "创建"),
    ),
    (GoalCategory.OPTIMIZATION, ("optimi", "improve", "tune", "speed up", "优化", "改进", "提升")),
    (GoalCategory.TESTING, ("test", "verify", "validat", "check", "测试", "验证", "检查")),
    (GoalCategory.CALCULATION, ("calculat", "comput", "solve", "计算", "求解", "算")),
)

# The first step of every template embeds an excerpt of the goal.
TASK_TEMPLATES: dict[GoalCategory, tuple[str, ...]] = {
    GoalCategory.ANALYSIS: (
        "Gather information on: {topic}",
        "Analyze key factors",
        "Identify patterns and trends",
        "Form the analysis conclusion",
    ),
    GoalCategory.DESIGN: (
        "Requirements analysis: {topic}",
        "Architecture design",
        "Detailed design",
        "Design review",
    ),
    GoalCategory.IMPLEMENTATION: (
        "Understand the requirements: {topic}",
        "Technical solution design",
        "Core feature implementation",
        "Test and verify",
    ),
    GoalCategory.OPTIMIZATION: (
        "Current performance analysis: {topic}",
        "Identify bottlenecks",
        "Draft the optimization plan",
        "Apply the optimization",
        "Verify the effect",
    ),
    GoalCategory.TESTING: (
        "Test scope analysis: {topic}",
        "Test case design",
        "Run the tests",
        "Analyze the results",
    ),
    GoalCategory.CALCULATION: (
        "Understand the calculation request: {topic}",
        "Perform the calculation",
        "Verify the result",
    ),
    GoalCategory.GENERAL: (
        "Understand the problem: {topic}",
        "Gather information",
        "Process and analyze",
        "Produce the result",
    ),
}

COMPOSITE_KEYWORDS: tuple[str, ...] = (
    "design", "develop", "implement", "build", "create", "analy", "research",
    "optimi", "refactor", "test", "deploy", "integrat", "migrat",
    "设计", "开发", "实现", "构建", "创建", "分析", "研究",
    "优化", "重构", "测试", "部署", "集成", "迁移",
)

# (keywords, complexity delta); every matching row applies.
COMPLEXITY_ADJUSTMENTS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("design", "architect", "optimi", "设计", "架构", "优化"), +1),
    (("complex", "difficult", "challeng", "复杂", "困难", "挑战"), +1),
    (("simple", "basic", "quick", "简单", "基础", "快速"), -1),
)

BASE_COMPLEXITY = 2
TOPIC_MAX_CHARS = 30


class Decomposer(Protocol):
    def decompose(self, goal: str) -> SubTaskList: ...


def classify_goal(goal: str) -> GoalCategory:
    for category, keywords in CATEGORY_KEYWORDS:
        if contains_any(goal, keywords):
            return category
    return GoalCategory.GENERAL


def determine_task_type(description: str) -> TaskType:
    if contains_any(description, COMPOSITE_KEYWORDS):
        return TaskType.COMPOSITE
    return TaskType.ATOMIC


def estimate_complexity(description: str) -> int:
    complexity = BASE_COMPLEXITY
    if len(description) > 50:
        complexity += 1
    if len(description) > 100:
        complexity += 1
    for keywords, delta in COMPLEXITY_ADJUSTMENTS:
        if contains_any(description, keywords):
            complexity += delta
    return clamp_complexity(complexity)


def extract_topic(goal: str) -> str:
    return truncate(goal, TOPIC_MAX_CHARS)


class PlanDecomposer:
    """Single-shot, deterministic template decomposer."""

    def classify(self, goal: str) -> GoalCategory:
        return classify_goal(goal)

    def decompose(self, goal: str) -> SubTaskList:
        goal = (goal or "").strip()
        category = classify_goal(goal)
        topic = extract_topic(goal)

        plan = SubTaskList()
        for index, template in enumerate(TASK_TEMPLATES[category]):
            description = template.format(topic=topic)
            plan.add(
                SubTask(
                    description,
                    determine_task_type(description),
                    priority=index,
                    complexity=estimate_complexity(description),
                    context={"category": category.value},
                )
            )
        return plan
