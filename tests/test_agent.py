from __future__ import annotations

from typing import Any

import pytest

from recap_agent import ReCapAgent, RecapError
from recap_agent.config.load_config import RecapConfig, load_app_config
from recap_agent.recap.state import RunStatus, TaskStatus
from recap_agent.storage.event_log import EventLog


class _FailingTools:
    def invoke(self, tool_name: str, args: dict[str, Any]) -> Any:
        raise RuntimeError("tool backend down")


def test_process_calculation_goal() -> None:
    agent = ReCapAgent(seed=0)
    answer = agent.process("calculate 25*4+10")

    assert answer.startswith("=== ReCAP run complete ===")
    assert "- Max recursion depth: 0" in answer
    assert "- Executed tasks: 3" in answer
    assert agent.high_level_intent == "calculate 25*4+10"
    assert agent.current_depth == 0
    assert [r.tool_used for r in agent.results] == ["calculate", "calculate", "validate"]
    assert agent.current_plan.is_empty()


def test_second_process_resets_state() -> None:
    agent = ReCapAgent(seed=1)
    agent.process("Analyze market trends for electric bikes")
    first_run = agent.run_id

    agent.process("calculate 25*4+10")
    assert agent.run_id != first_run
    assert agent.high_level_intent == "calculate 25*4+10"
    assert len(agent.results) == 3
    assert all(ev.run_id == agent.run_id for ev in agent.steps)


def test_reset_clears_views() -> None:
    agent = ReCapAgent(seed=2)
    agent.process("calculate 25*4+10")
    agent.reset()

    assert agent.high_level_intent == ""
    assert agent.results == []
    assert agent.key_insights == []
    assert agent.steps == []
    assert agent.current_depth == 0


def test_views_are_copies() -> None:
    agent = ReCapAgent(seed=3, config=RecapConfig(max_steps=2, max_depth=5))
    outcome = agent.run("calculate 25*4+10")
    assert outcome.status == RunStatus.PARTIAL

    plan = agent.current_plan
    plan.pop_head()
    assert agent.current_plan.size() == 1

    agent.results.clear()
    assert len(agent.results) == 2


def test_steps_summary_reads_like_a_log() -> None:
    agent = ReCapAgent(seed=4)
    agent.process("calculate 25*4+10")
    summary = agent.steps_summary()

    lines = summary.splitlines()
    assert lines[0] == "[init] Start processing: calculate 25*4+10"
    assert lines[1] == "[plan] Full plan:"
    assert "[execute] [depth:0] executing task: Perform the calculation" in summary
    assert "[observation] succeeded: Calculation done" in summary


def test_active_prompt_reflects_current_state() -> None:
    agent = ReCapAgent(seed=5, config=RecapConfig(max_steps=2, max_depth=5))
    agent.run("calculate 25*4+10")
    prompt = agent.active_prompt()

    assert "## High-level goal\ncalculate 25*4+10" in prompt
    assert "1. - Verify the result [atomic]" in prompt
    assert "## Latest thought\nTask 'Perform the calculation' done." in prompt


def test_failing_tools_mark_history_failed() -> None:
    agent = ReCapAgent(tools=_FailingTools())
    outcome = agent.run("calculate 25*4+10")

    assert outcome.status == RunStatus.COMPLETED
    assert [t.status for t in agent.current_plan.completed_tasks] == [TaskStatus.FAILED] * 3


def test_request_cancel_from_inside_a_tool() -> None:
    class _CancellingTools:
        def __init__(self) -> None:
            self.agent: ReCapAgent | None = None

        def invoke(self, tool_name: str, args: dict[str, Any]) -> Any:
            assert self.agent is not None
            self.agent.request_cancel("operator pressed stop")
            return "partial output"

    tools = _CancellingTools()
    agent = ReCapAgent(tools=tools)
    tools.agent = agent
    outcome = agent.run("calculate 25*4+10")

    assert outcome.status == RunStatus.CANCELLED
    assert len(outcome.results) == 1
    assert "operator pressed stop" in outcome.answer


def test_from_config_uses_file_values() -> None:
    cfg = load_app_config()
    agent = ReCapAgent.from_config(cfg, seed=6)
    assert agent.config == cfg.recap
    outcome = agent.run("calculate 25*4+10")
    assert outcome.status == RunStatus.COMPLETED


def test_unexpected_errors_are_wrapped() -> None:
    class _BrokenDecomposer:
        def decompose(self, goal: str):
            raise KeyError("no template")

    agent = ReCapAgent(decomposer=_BrokenDecomposer())
    with pytest.raises(RecapError):
        agent.run("anything")


def test_own_event_log_keeps_only_the_latest_run() -> None:
    agent = ReCapAgent(seed=7)
    for _ in range(5):
        agent.process("calculate 25*4+10")
        assert agent.events.run_ids() == [agent.run_id]

    agent.reset()
    assert agent.events.run_ids() == []


def test_shared_event_log_is_left_alone() -> None:
    log = EventLog()
    agent = ReCapAgent(seed=8, events=log)
    agent.process("calculate 25*4+10")
    first = agent.run_id
    agent.process("calculate 25*4+10")

    assert log.run_ids() == [first, agent.run_id]
