from __future__ import annotations

from recap_agent.agents.types import AgentContext
from recap_agent.config.load_config import RecapConfig
from recap_agent.storage.event_log import EventLog
from recap_agent.utils.cancel import CancellationToken


def test_events_are_kept_per_run_in_order() -> None:
    log = EventLog()
    log.append_event("r1", "init", {"n": 1})
    log.append_event("r2", "init", {"n": 2})
    eid = log.append_event("r1", "plan", {"n": 3})

    assert [ev.payload["n"] for ev in log.iter_events("r1")] == [1, 3]
    assert [ev.event_type for ev in log.iter_events("r1", event_types=["plan"])] == ["plan"]
    latest = log.get_latest_event(run_id="r1", event_type="plan")
    assert latest is not None and latest.event_id == eid
    assert log.get_latest_event(run_id="r2", event_type="plan") is None
    assert log.count_event_types("r1") == {"init": 1, "plan": 1}
    assert log.run_ids() == ["r1", "r2"]

    log.clear("r1")
    assert list(log.iter_events("r1")) == []
    assert log.run_ids() == ["r2"]


def test_context_add_step_writes_content_and_ts() -> None:
    ctx = AgentContext(
        config=RecapConfig(max_steps=1, max_depth=0),
        tools=None,
        events=EventLog(),
        cancel=CancellationToken(),
        run_id="run_x",
    )
    ctx.add_step("push", "Saved parent context [depth:0]", depth=0)

    ev = ctx.events.get_latest_event(run_id="run_x", event_type="push")
    assert ev is not None
    assert ev.payload["content"] == "Saved parent context [depth:0]"
    assert ev.payload["depth"] == 0
    assert isinstance(ev.payload["ts"], float)
