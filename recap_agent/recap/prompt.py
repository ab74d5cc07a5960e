"""Bounded active prompt: what the agent currently knows, at a flat size.

The few-shot block is only rendered at depth 0 and insights are compressed to
a fixed window, so per-call overhead does not grow with recursion depth or
history length. When the rendered text is still over budget, the head third
(high-level framing) and the tail two thirds (current actionable state) are
kept and the middle is replaced by a marker.
"""

from __future__ import annotations

from typing import Sequence

from .results import ParentContext
from .tasks import SubTaskList


DEFAULT_MAX_TOKENS = 4000
DEFAULT_TOKENS_PER_CHAR = 0.5
DEFAULT_INSIGHT_WINDOW = 5

DEFAULT_FEW_SHOT = (
    "Example decomposition:\n"
    'Goal: "Analyze and optimize system performance"\n'
    "Plan:\n"
    "1. Collect performance metrics [atomic]\n"
    "2. Analyze bottleneck causes [composite]\n"
    "3. Draft the optimization plan [atomic]\n"
    "4. Verify the optimization effect [atomic]\n\n"
    "Execute head task -> observe result -> refine remaining plan -> continue"
)

DEFAULT_INJECTION_INSTRUCTION = (
    "Based on the sub-goal result, decide whether the remaining plan needs refinement, then continue."
)

TRUNCATION_MARKER = "\n...[middle content truncated to keep the prompt bounded]...\n"

INTENT_HEADER = "## High-level goal\n"


class ActivePromptBuilder:
    def __init__(
        self,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        tokens_per_char: float = DEFAULT_TOKENS_PER_CHAR,
        insight_window: int = DEFAULT_INSIGHT_WINDOW,
        few_shot: str = DEFAULT_FEW_SHOT,
        injection_instruction: str = DEFAULT_INJECTION_INSTRUCTION,
    ) -> None:
        if max_tokens < 1:
            raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")
        if tokens_per_char <= 0:
            raise ValueError(f"tokens_per_char must be > 0, got {tokens_per_char}")
        self.max_tokens = int(max_tokens)
        self.tokens_per_char = float(tokens_per_char)
        self.insight_window = max(1, int(insight_window))
        self.few_shot = few_shot
        self.injection_instruction = injection_instruction

    @classmethod
    def from_config(cls, cfg) -> "ActivePromptBuilder":
        return cls(
            max_tokens=cfg.max_tokens,
            tokens_per_char=cfg.tokens_per_char,
            insight_window=cfg.insight_window,
            few_shot=cfg.few_shot,
            injection_instruction=cfg.injection_instruction,
        )

    def build(
        self,
        intent: str,
        plan: SubTaskList,
        latest_thought: str,
        key_insights: Sequence[str] | None,
        depth: int,
    ) -> str:
        parts: list[str] = []
        if depth == 0:
            parts.append(f"## Decomposition pattern\n{self.few_shot}\n---\n\n")

        parts.append(f"{INTENT_HEADER}{intent}\n\n")
        intent_end = sum(len(p) for p in parts)

        if depth > 0:
            parts.append(f"## Current level\nRecursion depth: {depth}\n\n")
        if key_insights:
            parts.append(f"## Key insights\n{self.compress_insights(key_insights)}\n\n")
        parts.append(f"## Current plan\n{plan.format()}\n\n")
        if latest_thought:
            parts.append(f"## Latest thought\n{latest_thought}\n\n")

        return self._fit(intent, "".join(parts), intent_end)

    def build_with_injection(
        self,
        intent: str,
        parent_context: ParentContext,
        child_summary: str,
        key_insights: Sequence[str] | None,
    ) -> str:
        parts: list[str] = [f"{INTENT_HEADER}{intent}\n\n"]
        intent_end = len(parts[0])

        parts.append(f"## Context restored\n{parent_context.format_for_injection()}\n\n")
        parts.append(
            "## Sub-goal result\n"
            f"Sub-goal: {parent_context.sub_goal_description}\n"
            f"Summary: {child_summary}\n\n"
        )
        if key_insights:
            parts.append(f"## Key insights\n{self.compress_insights(key_insights)}\n\n")
        parts.append(f"## Remaining plan\n{parent_context.remaining_plan.format()}\n\n")
        parts.append(f"{self.injection_instruction}\n")

        return self._fit(intent, "".join(parts), intent_end)

    def compress_insights(self, insights: Sequence[str]) -> str:
        """Keep only the most recent `insight_window` insights, oldest dropped first."""
        recent = list(insights)[-self.insight_window :]
        return "\n".join(f"- {i}" for i in recent)

    def estimate_tokens(self, text: str) -> int:
        return int(len(text) * self.tokens_per_char)

    @property
    def max_chars(self) -> int:
        """Longest text whose estimate still fits in `max_tokens`."""
        chars = int(self.max_tokens / self.tokens_per_char)
        while chars > 0 and int(chars * self.tokens_per_char) > self.max_tokens:
            chars -= 1
        return chars

    def _fit(self, intent: str, text: str, intent_end: int) -> str:
        if self.estimate_tokens(text) <= self.max_tokens:
            return text

        budget = self.max_chars
        available = budget - len(TRUNCATION_MARKER)
        if intent_end > available:
            # Nothing but the goal fits; keep as much of it as the budget allows.
            return f"{INTENT_HEADER}{intent}"[:budget]

        head_len = max(available // 3, intent_end)
        tail_len = available - head_len
        tail = text[len(text) - tail_len :] if tail_len > 0 else ""
        return text[:head_len] + TRUNCATION_MARKER + tail
