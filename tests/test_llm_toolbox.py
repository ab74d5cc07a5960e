from __future__ import annotations

import pytest

from recap_agent import ReCapAgent
from recap_agent.config.load_config import load_app_config
from recap_agent.llm.openai_compat import LLMConfigError, OpenAICompatibleChatClient
from recap_agent.llm.toolbox import GenerationToolbox
from recap_agent.recap.state import RunStatus
from recap_agent.tools.registry import ToolError
from recap_agent.utils.text import TemplateError


class _FakeLLM:
    def __init__(self, reply: str = "110") -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def complete(self, prompt: str, *, system: str | None = None, temperature: float | None = None) -> str:
        self.calls.append({"prompt": prompt, "system": system, "temperature": temperature})
        return self.reply


def test_invoke_renders_template_and_calls_model() -> None:
    llm = _FakeLLM()
    box = GenerationToolbox(
        llm,
        template="{{tool}} ({{tool_description}}) | {{query}} | {{context}}",
        system_prompt="be brief",
        temperature=0.1,
    )
    out = box.invoke("calculate", {"query": "25*4+10", "context": ""})

    assert out == "110"
    call = llm.calls[0]
    assert call["prompt"] == "calculate (Calculation tool - arithmetic and numbers) | 25*4+10 | (none)"
    assert call["system"] == "be brief"
    assert call["temperature"] == pytest.approx(0.1)


def test_invoke_rejects_unknown_tool_and_bad_args() -> None:
    box = GenerationToolbox(_FakeLLM(), template="{{query}}")
    with pytest.raises(ToolError, match="Unknown tool"):
        box.invoke("teleport", {"query": "x"})
    with pytest.raises(ToolError, match="Invalid arguments"):
        box.invoke("analyze", {"query": ""})


def test_empty_completion_is_a_tool_error() -> None:
    box = GenerationToolbox(_FakeLLM(reply="   "), template="{{query}}")
    with pytest.raises(ToolError, match="Empty completion"):
        box.invoke("analyze", {"query": "x"})


def test_template_with_unknown_variable_fails() -> None:
    box = GenerationToolbox(_FakeLLM(), template="{{query}} {{missing}}")
    with pytest.raises(TemplateError):
        box.invoke("analyze", {"query": "x"})


def test_from_config_and_end_to_end_run() -> None:
    cfg = load_app_config()
    llm = _FakeLLM(reply="The answer is 110")
    agent = ReCapAgent.from_config(cfg, tools=GenerationToolbox.from_config(cfg.llm, llm))
    outcome = agent.run("calculate 25*4+10")

    assert outcome.status == RunStatus.COMPLETED
    assert len(llm.calls) == 3
    assert "Task:\nUnderstand the calculation request: calculate 25*4+10" in llm.calls[0]["prompt"]
    assert llm.calls[0]["system"] == cfg.llm.system_prompt
    assert "The answer is 110" in outcome.answer


def test_client_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(LLMConfigError, match="OPENAI_API_KEY"):
        OpenAICompatibleChatClient()


def test_client_env_bool() -> None:
    env_bool = OpenAICompatibleChatClient._env_bool
    assert env_bool("RECAP_TEST_UNSET_FLAG", True) is True
