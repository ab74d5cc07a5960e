from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any


class LLMConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class ChatCompletionResult:
    content: str
    raw: dict[str, Any]
    reasoning_content: str | None = None


class OpenAICompatibleChatClient:
    """Generation collaborator backed by any OpenAI-compatible endpoint.

    The engine never talks to this directly; it sits behind
    `GenerationToolbox`, which turns tool calls into prompts.
    """

    @staticmethod
    def _env_bool(name: str, default: bool = False) -> bool:
        raw = os.getenv(name)
        if raw is None:
            return default
        v = raw.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off"}:
            return False
        return default

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
        temperature: float = 0.2,
    ) -> None:
        self.base_url = (
            base_url
            or os.getenv("OPENAI_API_BASE")
            or os.getenv("OPENAI_BASE_URL")
            or "https://api.openai.com/v1"
        )
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or os.getenv("LLM_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
        self.timeout_s = timeout_s
        self.temperature = float(temperature)
        # Only sent when enabled; most providers reject the unknown field.
        self.enable_thinking = self._env_bool("RECAP_LLM_ENABLE_THINKING", False)

        if not self.api_key:
            raise LLMConfigError("Missing OPENAI_API_KEY (or provide api_key explicitly).")

        try:
            from openai import OpenAI  # type: ignore
        except Exception as e:
            raise LLMConfigError("Missing dependency: openai. Install it in the runtime environment.") from e

        self._client = OpenAI(base_url=self.base_url, api_key=self.api_key, timeout=self.timeout_s)

    def complete(self, prompt: str, *, system: str | None = None, temperature: float | None = None) -> str:
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        result = self.chat_messages(
            messages=messages,
            temperature=self.temperature if temperature is None else temperature,
        )
        return result.content

    def chat_messages(
        self,
        *,
        messages: list[dict[str, Any]],
        temperature: float,
        extra: dict[str, Any] | None = None,
    ) -> ChatCompletionResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": float(temperature),
        }
        if extra:
            payload.update(extra)
        if self.enable_thinking:
            extra_body = payload.get("extra_body")
            if isinstance(extra_body, dict):
                payload["extra_body"] = {**extra_body, "enable_thinking": True}
            else:
                payload["extra_body"] = {"enable_thinking": True}
        resp = self._client.chat.completions.create(**payload)
        raw = resp.model_dump()
        msg = resp.choices[0].message
        content = (msg.content or "").strip()

        reasoning_content: str | None = None
        rc = getattr(msg, "reasoning_content", None)
        if isinstance(rc, str) and rc.strip():
            reasoning_content = rc.strip()
        if reasoning_content is None:
            # Some gateways only surface it as an extra field.
            m_extra = getattr(msg, "model_extra", None)
            if isinstance(m_extra, dict):
                rc2 = m_extra.get("reasoning_content")
                if isinstance(rc2, str) and rc2.strip():
                    reasoning_content = rc2.strip()

        return ChatCompletionResult(content=content, raw=raw, reasoning_content=reasoning_content)
