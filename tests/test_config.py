from __future__ import annotations

from pathlib import Path

import pytest

from recap_agent.config.load_config import ConfigError, default_config_path, load_app_config


_VALID = """
[recap]
max_steps = 7
max_depth = 2

[prompt]
max_tokens = 500
tokens_per_char = 0.25
insight_window = 3
few_shot = "example"
injection_instruction = "carry on"

[llm]
temperature = 0.0
system_prompt = "be brief"
tool_prompt_template = "{{tool}}: {{query}}"
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "cfg.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config_loads() -> None:
    cfg = load_app_config()
    assert cfg.recap.max_steps == 20
    assert cfg.recap.max_depth == 5
    assert cfg.prompt.max_tokens == 4000
    assert cfg.prompt.tokens_per_char == pytest.approx(0.5)
    assert cfg.prompt.insight_window == 5
    assert cfg.prompt.few_shot.startswith("Example decomposition:")
    assert "{{query}}" in cfg.llm.tool_prompt_template


def test_env_var_overrides_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path, _VALID)
    monkeypatch.setenv("RECAP_CONFIG_PATH", str(path))

    assert default_config_path() == path.resolve()
    cfg = load_app_config()
    assert cfg.recap.max_steps == 7
    assert cfg.prompt.tokens_per_char == pytest.approx(0.25)
    assert cfg.llm.system_prompt == "be brief"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_app_config(tmp_path / "nope.toml")


def test_missing_key_is_named(tmp_path: Path) -> None:
    path = _write(tmp_path, _VALID.replace("max_depth = 2\n", ""))
    with pytest.raises(ConfigError, match="recap.max_depth"):
        load_app_config(path)


def test_wrong_type_is_named(tmp_path: Path) -> None:
    path = _write(tmp_path, _VALID.replace("max_steps = 7", 'max_steps = "lots"'))
    with pytest.raises(ConfigError, match="recap.max_steps"):
        load_app_config(path)


@pytest.mark.parametrize(
    ("old", "new", "key"),
    [
        ("max_steps = 7", "max_steps = 0", "recap.max_steps"),
        ("max_depth = 2", "max_depth = -1", "recap.max_depth"),
        ("tokens_per_char = 0.25", "tokens_per_char = 0", "prompt.tokens_per_char"),
        ("insight_window = 3", "insight_window = 0", "prompt.insight_window"),
    ],
)
def test_out_of_range_values(tmp_path: Path, old: str, new: str, key: str) -> None:
    path = _write(tmp_path, _VALID.replace(old, new))
    with pytest.raises(ConfigError, match=key):
        load_app_config(path)


def test_invalid_toml(tmp_path: Path) -> None:
    path = _write(tmp_path, "[recap\nmax_steps = 1")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_app_config(path)
