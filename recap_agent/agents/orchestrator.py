from __future__ import annotations

import uuid

from recap_agent.config.load_config import AppConfig, RecapConfig
from recap_agent.recap.decomposer import Decomposer
from recap_agent.recap.engine import RecapEngine, RecapError, RecapOutcome, RunState
from recap_agent.recap.prompt import ActivePromptBuilder
from recap_agent.recap.refiner import PlanRefiner
from recap_agent.recap.results import ExecutionResult
from recap_agent.recap.tasks import SubTaskList
from recap_agent.storage.event_log import EventLog, TraceEvent
from recap_agent.tools.builtin import default_registry
from recap_agent.utils.cancel import CancellationToken

from .types import AgentContext, ToolInvoker


DEFAULT_MAX_STEPS = 20
DEFAULT_MAX_DEPTH = 5


def _new_run_id() -> str:
    return f"run_{uuid.uuid4().hex}"


class ReCapAgent:
    """Owns one run's state and drives `RecapEngine` over it.

    `process()` / `run()` reset everything first, so an agent can be reused
    for any number of goals. Tools default to the simulated toolbox.
    """

    name = "recap"

    def __init__(
        self,
        *,
        config: RecapConfig | None = None,
        tools: ToolInvoker | None = None,
        decomposer: Decomposer | None = None,
        refiner: PlanRefiner | None = None,
        prompt_builder: ActivePromptBuilder | None = None,
        events: EventLog | None = None,
        seed: int | None = None,
    ) -> None:
        self.config = config or RecapConfig(max_steps=DEFAULT_MAX_STEPS, max_depth=DEFAULT_MAX_DEPTH)
        self.tools = tools if tools is not None else default_registry(seed=seed)
        self.events = events or EventLog()
        # A caller-supplied log is theirs to prune; our own keeps only the latest run.
        self._owns_events = events is None
        self._engine = RecapEngine(decomposer=decomposer, refiner=refiner, prompt_builder=prompt_builder)
        self._state = RunState()
        self._cancel = CancellationToken()
        self._run_id: str | None = None

    @classmethod
    def from_config(cls, cfg: AppConfig, *, tools: ToolInvoker | None = None, **kwargs) -> "ReCapAgent":
        return cls(
            config=cfg.recap,
            tools=tools,
            prompt_builder=ActivePromptBuilder.from_config(cfg.prompt),
            **kwargs,
        )

    def process(self, goal: str) -> str:
        return self.run(goal).answer

    def run(self, goal: str) -> RecapOutcome:
        self._drop_own_events()
        self._run_id = _new_run_id()
        self._cancel = CancellationToken()
        ctx = AgentContext(
            config=self.config,
            tools=self.tools,
            events=self.events,
            cancel=self._cancel,
            run_id=self._run_id,
        )
        try:
            return self._engine.run(ctx, goal=goal, state=self._state)
        except RecapError:
            raise
        except Exception as e:
            raise RecapError(str(e)) from e

    def request_cancel(self, reason: str = "") -> None:
        """Stop the current run at its next loop pass."""
        self._cancel.request_cancel(reason)

    def reset(self) -> None:
        self._state.reset("")
        self._drop_own_events()
        self._run_id = None

    def _drop_own_events(self) -> None:
        if self._owns_events and self._run_id is not None:
            self.events.clear(self._run_id)

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def high_level_intent(self) -> str:
        return self._state.intent

    @property
    def current_depth(self) -> int:
        return self._state.depth

    @property
    def current_plan(self) -> SubTaskList:
        return self._state.plan.copy()

    @property
    def key_insights(self) -> list[str]:
        return list(self._state.key_insights)

    @property
    def results(self) -> list[ExecutionResult]:
        return list(self._state.results)

    @property
    def steps(self) -> list[TraceEvent]:
        if self._run_id is None:
            return []
        return list(self.events.iter_events(self._run_id))

    def steps_summary(self) -> str:
        lines = []
        for ev in self.steps:
            content = ev.payload.get("content")
            if content is None:
                continue
            lines.append(f"[{ev.event_type}] {content}")
        return "\n".join(lines)

    def active_prompt(self) -> str:
        """The bounded prompt for the current state, as handed to a generation model."""
        return self._engine.render_prompt(self._state)
