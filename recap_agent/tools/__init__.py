from .builtin import TOOL_DESCRIPTIONS, SimulatedTools, default_registry
from .registry import ToolError, ToolRegistry, ToolSpec

__all__ = ["TOOL_DESCRIPTIONS", "SimulatedTools", "ToolError", "ToolRegistry", "ToolSpec", "default_registry"]
