from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class ConfigError(RuntimeError):
    pass


def _as_int(value: Any, *, key: str) -> int:
    if value is None:
        raise ConfigError(f"Missing required config key: {key}")
    if isinstance(value, bool):
        raise ConfigError(f"Invalid int for {key}: {value!r}")
    try:
        return int(value)
    except Exception as e:
        raise ConfigError(f"Invalid int for {key}: {value!r}") from e


def _as_float(value: Any, *, key: str) -> float:
    if value is None:
        raise ConfigError(f"Missing required config key: {key}")
    try:
        return float(value)
    except Exception as e:
        raise ConfigError(f"Invalid float for {key}: {value!r}") from e


def _as_str(value: Any, *, key: str) -> str:
    if value is None:
        raise ConfigError(f"Missing required config key: {key}")
    return str(value)


def _require_min(value: int, *, key: str, min_v: int) -> int:
    if value < min_v:
        raise ConfigError(f"Invalid {key}: must be >= {min_v}, got {value}")
    return value


@dataclass(frozen=True)
class RecapConfig:
    max_steps: int
    max_depth: int


@dataclass(frozen=True)
class PromptConfig:
    max_tokens: int
    tokens_per_char: float
    insight_window: int
    few_shot: str
    injection_instruction: str


@dataclass(frozen=True)
class LLMConfig:
    temperature: float
    system_prompt: str
    tool_prompt_template: str


@dataclass(frozen=True)
class AppConfig:
    recap: RecapConfig
    prompt: PromptConfig
    llm: LLMConfig


def default_config_path() -> Path:
    env = os.getenv("RECAP_CONFIG_PATH")
    if env:
        return Path(env).expanduser().resolve()
    # Repo layout: <repo>/recap_agent/config/load_config.py -> <repo>/config/default.toml
    return (Path(__file__).resolve().parents[2] / "config" / "default.toml").resolve()


def load_app_config(path: Path | None = None) -> AppConfig:
    cfg_path = path or default_config_path()
    if not cfg_path.exists():
        raise ConfigError(f"Config file not found: {cfg_path}")

    try:
        import tomllib  # py3.11+
    except Exception as e:
        raise ConfigError("tomllib is required (Python 3.11+).") from e

    try:
        raw = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {cfg_path}: {e}") from e

    recap = raw.get("recap", {})
    prompt = raw.get("prompt", {})
    llm = raw.get("llm", {})

    tokens_per_char = _as_float(prompt.get("tokens_per_char"), key="prompt.tokens_per_char")
    if tokens_per_char <= 0:
        raise ConfigError(f"Invalid prompt.tokens_per_char: must be > 0, got {tokens_per_char}")

    return AppConfig(
        recap=RecapConfig(
            max_steps=_require_min(
                _as_int(recap.get("max_steps"), key="recap.max_steps"), key="recap.max_steps", min_v=1
            ),
            max_depth=_require_min(
                _as_int(recap.get("max_depth"), key="recap.max_depth"), key="recap.max_depth", min_v=0
            ),
        ),
        prompt=PromptConfig(
            max_tokens=_require_min(
                _as_int(prompt.get("max_tokens"), key="prompt.max_tokens"), key="prompt.max_tokens", min_v=1
            ),
            tokens_per_char=tokens_per_char,
            insight_window=_require_min(
                _as_int(prompt.get("insight_window"), key="prompt.insight_window"),
                key="prompt.insight_window",
                min_v=1,
            ),
            few_shot=_as_str(prompt.get("few_shot"), key="prompt.few_shot").strip(),
            injection_instruction=_as_str(
                prompt.get("injection_instruction"), key="prompt.injection_instruction"
            ).strip(),
        ),
        llm=LLMConfig(
            temperature=_as_float(llm.get("temperature"), key="llm.temperature"),
            system_prompt=_as_str(llm.get("system_prompt"), key="llm.system_prompt").strip(),
            tool_prompt_template=_as_str(
                llm.get("tool_prompt_template"), key="llm.tool_prompt_template"
            ).strip(),
        ),
    )
