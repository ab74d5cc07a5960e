from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from recap_agent.recap.actions import ToolRequest


class ToolError(RuntimeError):
    pass


ToolFn = Callable[[ToolRequest], Any]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    fn: ToolFn
    description: str


class ToolRegistry:
    """Name -> tool function map; implements the engine's tool collaborator."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def add_tool(self, name: str, fn: ToolFn, description: str = "") -> None:
        key = (name or "").strip()
        if not key:
            raise ToolError("Tool name must be non-empty.")
        self._tools[key] = ToolSpec(name=key, fn=fn, description=description)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self, name: str) -> str:
        spec = self._tools.get(name)
        if spec is None:
            raise ToolError(f"Unknown tool: {name!r}. Valid: {sorted(self._tools)}")
        return spec.description

    def invoke(self, tool_name: str, args: dict[str, Any]) -> Any:
        spec = self._tools.get(tool_name)
        if spec is None:
            raise ToolError(f"Unknown tool: {tool_name!r}. Valid: {sorted(self._tools)}")
        try:
            request = ToolRequest.model_validate(args)
        except ValidationError as e:
            raise ToolError(f"Invalid arguments for tool {tool_name!r}: {e.errors()}") from e
        return spec.fn(request)
