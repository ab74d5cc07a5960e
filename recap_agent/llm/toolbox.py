from __future__ import annotations

from typing import Any, Protocol

from pydantic import ValidationError

from recap_agent.config.load_config import LLMConfig
from recap_agent.recap.actions import ToolRequest
from recap_agent.tools.builtin import TOOL_DESCRIPTIONS
from recap_agent.tools.registry import ToolError
from recap_agent.utils.text import render_template


class CompletionClient(Protocol):
    def complete(self, prompt: str, *, system: str | None = None, temperature: float | None = None) -> str: ...


class GenerationToolbox:
    """Tool collaborator that answers every tool call by prompting a model.

    The tool name only selects a description for the prompt; the model does
    the actual work. Template variables: tool, tool_description, query, context.
    """

    def __init__(
        self,
        llm: CompletionClient,
        *,
        template: str,
        system_prompt: str = "",
        temperature: float | None = None,
        tools: dict[str, str] | None = None,
    ) -> None:
        self.llm = llm
        self.template = template
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.tools = dict(TOOL_DESCRIPTIONS if tools is None else tools)

    @classmethod
    def from_config(cls, cfg: LLMConfig, llm: CompletionClient) -> "GenerationToolbox":
        return cls(
            llm,
            template=cfg.tool_prompt_template,
            system_prompt=cfg.system_prompt,
            temperature=cfg.temperature,
        )

    def render(self, tool_name: str, request: ToolRequest) -> str:
        return render_template(
            self.template,
            {
                "tool": tool_name,
                "tool_description": self.tools[tool_name],
                "query": request.query,
                "context": request.context or "(none)",
            },
            strict=True,
        )

    def invoke(self, tool_name: str, args: dict[str, Any]) -> str:
        if tool_name not in self.tools:
            raise ToolError(f"Unknown tool: {tool_name!r}. Valid: {sorted(self.tools)}")
        try:
            request = ToolRequest.model_validate(args)
        except ValidationError as e:
            raise ToolError(f"Invalid arguments for tool {tool_name!r}: {e.errors()}") from e

        text = self.llm.complete(
            self.render(tool_name, request),
            system=self.system_prompt or None,
            temperature=self.temperature,
        )
        text = (text or "").strip()
        if not text:
            raise ToolError(f"Empty completion for tool {tool_name!r}.")
        return text
