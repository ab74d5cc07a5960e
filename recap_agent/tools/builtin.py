"""Simulated tools so the engine can run end to end without a backend.

Outputs are drawn from fixed pools; pass a seed for reproducible runs.
"""

from __future__ import annotations

import random

from recap_agent.recap.actions import ToolRequest
from recap_agent.utils.text import truncate

from .registry import ToolRegistry


TOOL_DESCRIPTIONS: dict[str, str] = {
    "research": "Research tool - gathers information",
    "analyze": "Analysis tool - in-depth analysis",
    "calculate": "Calculation tool - arithmetic and numbers",
    "validate": "Validation tool - checks results",
    "synthesize": "Synthesis tool - merges information",
}

_RESEARCH_POOL = (
    "Research finding: several key factors need to be considered",
    "Information gathered: the main technical options were identified",
    "Survey result: three workable directions were found",
)

_ANALYZE_POOL = (
    "Analysis done: the main bottleneck was located",
    "Deep analysis: the core issue lies in the architecture",
    "Assessment: the current approach looks feasible",
)


class SimulatedTools:
    def __init__(self, *, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def research(self, request: ToolRequest) -> str:
        return f"{self._rng.choice(_RESEARCH_POOL)} (on: {truncate(request.query, 30)})"

    def analyze(self, request: ToolRequest) -> str:
        return f"{self._rng.choice(_ANALYZE_POOL)} (analyzed: {truncate(request.query, 30)})"

    def calculate(self, request: ToolRequest) -> str:
        return f"Calculation done: result cross-checked (computed: {truncate(request.query, 30)})"

    def validate(self, request: ToolRequest) -> str:
        score = self._rng.randint(7, 10)
        return f"Validation passed: quality score {score}/10 (validated: {truncate(request.query, 30)})"

    def synthesize(self, request: ToolRequest) -> str:
        return (
            "Synthesis done: all information merged into one proposal "
            f"(synthesized: {truncate(request.query, 30)})"
        )

    def register(self, registry: ToolRegistry) -> ToolRegistry:
        for name, description in TOOL_DESCRIPTIONS.items():
            registry.add_tool(name, getattr(self, name), description)
        return registry


def default_registry(*, seed: int | None = None) -> ToolRegistry:
    return SimulatedTools(seed=seed).register(ToolRegistry())
