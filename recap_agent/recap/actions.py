from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from recap_agent.utils.text import contains_any


DEFAULT_TOOL = "analyze"

# Ordered (tool, keywords); first match wins.
TOOL_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "research",
        ("gather", "collect", "research", "investigat", "information", "收集", "研究", "调研", "信息"),
    ),
    ("analyze", ("analy", "identify", "evaluat", "assess", "分析", "识别", "评估")),
    ("calculate", ("calculat", "comput", "solve", "计算", "求解", "算")),
    ("validate", ("verify", "validat", "check", "test", "review", "验证", "检查", "测试")),
    (
        "synthesize",
        ("synthesi", "integrat", "summar", "produce", "generat", "conclu", "综合", "整合", "总结", "生成"),
    ),
)


def select_tool(description: str) -> str:
    """Map a task description to a tool name via the ordered keyword table."""
    for tool, keywords in TOOL_KEYWORDS:
        if contains_any(description, keywords):
            return tool
    return DEFAULT_TOOL


class ToolRequest(BaseModel):
    """Arguments handed to the tool collaborator for one atomic task."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    query: str = Field(min_length=1)
    context: str = ""


def build_tool_args(description: str, latest_thought: str) -> dict[str, Any]:
    return ToolRequest(query=description, context=latest_thought or "").model_dump()
