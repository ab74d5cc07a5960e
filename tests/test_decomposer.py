from __future__ import annotations

import pytest

from recap_agent.recap.decomposer import (
    GoalCategory,
    PlanDecomposer,
    TASK_TEMPLATES,
    estimate_complexity,
    extract_topic,
)
from recap_agent.recap.state import TaskType


@pytest.mark.parametrize(
    ("goal", "category"),
    [
        ("calculate 25*4+10", GoalCategory.CALCULATION),
        ("Analyze market trends", GoalCategory.ANALYSIS),
        ("design a cache layer", GoalCategory.DESIGN),
        ("implement the login page", GoalCategory.IMPLEMENTATION),
        ("optimize query latency", GoalCategory.OPTIMIZATION),
        ("verify the backup job", GoalCategory.TESTING),
        ("分析用户行为", GoalCategory.ANALYSIS),
        ("计算季度收入", GoalCategory.CALCULATION),
        ("explain the weather", GoalCategory.GENERAL),
    ],
)
def test_classify(goal: str, category: GoalCategory) -> None:
    assert PlanDecomposer().classify(goal) == category


def test_first_matching_row_wins() -> None:
    # Both analysis and design words; analysis comes first in the table.
    assert PlanDecomposer().classify("research and design a new API") == GoalCategory.ANALYSIS


def test_calculation_goal_yields_three_atomic_tasks() -> None:
    plan = PlanDecomposer().decompose("calculate 25*4+10")
    tasks = plan.remaining_tasks

    assert [t.description for t in tasks] == [
        "Understand the calculation request: calculate 25*4+10",
        "Perform the calculation",
        "Verify the result",
    ]
    assert all(t.type == TaskType.ATOMIC for t in tasks)
    assert [t.priority for t in tasks] == [0, 1, 2]
    assert [t.complexity for t in tasks] == [3, 2, 2]
    assert not any(t.needs_decomposition() for t in tasks)
    assert all(t.context["category"] == "calculation" for t in tasks)


def test_output_follows_template_order() -> None:
    for category, template in TASK_TEMPLATES.items():
        assert 3 <= len(template) <= 5, category
    plan = PlanDecomposer().decompose("optimize query latency")
    assert plan.size() == len(TASK_TEMPLATES[GoalCategory.OPTIMIZATION])
    assert plan.descriptions()[1:] == list(TASK_TEMPLATES[GoalCategory.OPTIMIZATION][1:])


def test_composite_verbs_mark_tasks_composite() -> None:
    plan = PlanDecomposer().decompose("design a cache layer")
    types = [t.type for t in plan.remaining_tasks]
    assert types[0] == TaskType.COMPOSITE
    assert types == [TaskType.COMPOSITE] * 4


def test_topic_excerpt_is_truncated() -> None:
    goal = "calculate the total cost of ownership for three candidate databases"
    assert extract_topic(goal) == goal[:30] + "..."
    first = PlanDecomposer().decompose(goal).peek_head()
    assert first.description.endswith(goal[:30] + "...")


def test_estimate_complexity_rules() -> None:
    assert estimate_complexity("Run it") == 2
    assert estimate_complexity("a quick and simple task") == 1
    assert estimate_complexity("Architecture design") == 3
    assert estimate_complexity("complex architecture " + "x" * 90) == 5
    assert estimate_complexity("x" * 60) == 3


def test_keywords_match_at_word_start_only() -> None:
    # "plan" inside "explain" and "test" inside "latest" must not fire.
    plan = PlanDecomposer().decompose("explain the latest numbers")
    assert plan.peek_head().context["category"] == "general"


def test_decompose_is_deterministic() -> None:
    d = PlanDecomposer()
    a = d.decompose("Analyze market trends")
    b = d.decompose("Analyze market trends")
    assert a.descriptions() == b.descriptions()
    assert [t.type for t in a.remaining_tasks] == [t.type for t in b.remaining_tasks]
