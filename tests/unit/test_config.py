import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from toolstream.config import DEFAULT_SYSTEM_PROMPT, ChatConfig

_VARS = [
    "LMSTUDIO_BASE_URL", "LMSTUDIO_API_KEY", "LMSTUDIO_MODEL",
    "LMSTUDIO_ENABLE_TOOLS", "LMSTUDIO_TIMEOUT", "LMSTUDIO_MAX_RETRIES",
    "CHAT_HISTORY_DIR", "CHAT_HISTORY_PREFIX", "CHAT_SESSION_TIMEOUT",
    "CHAT_MAX_ROUNDS", "SYSTEM_PROMPT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _VARS:
        monkeypatch.delenv(var, raising=False)
    yield
    # load_dotenv writes straight to os.environ
    for var in _VARS:
        os.environ.pop(var, None)


def test_defaults():
    config = ChatConfig.from_env(env_file=Path("missing.env"))
    assert config.base_url == "http://localhost:1234/v1"
    assert config.api_key == "lm-studio"
    assert config.model == "local-model"
    assert config.enable_tools is False
    assert config.history_prefix == "lmstudio_chat_history"
    assert config.system_prompt == DEFAULT_SYSTEM_PROMPT


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("LMSTUDIO_BASE_URL", "http://box:1234/v1")
    monkeypatch.setenv("LMSTUDIO_MODEL", "qwen2.5-7b-instruct")
    monkeypatch.setenv("LMSTUDIO_ENABLE_TOOLS", "true")
    monkeypatch.setenv("CHAT_HISTORY_DIR", "/tmp/hist")
    monkeypatch.setenv("CHAT_MAX_ROUNDS", "4")

    config = ChatConfig.from_env(env_file=Path("missing.env"))

    assert config.base_url == "http://box:1234/v1"
    assert config.model == "qwen2.5-7b-instruct"
    assert config.enable_tools is True
    assert config.history_dir == Path("/tmp/hist")
    assert config.max_rounds == 4


@pytest.mark.parametrize("value", ["True", "1", "yes", "false"])
def test_enable_tools_only_literal_true(monkeypatch, value):
    monkeypatch.setenv("LMSTUDIO_ENABLE_TOOLS", value)
    assert ChatConfig.from_env(env_file=Path("missing.env")).enable_tools is False


def test_reads_dotenv_file(tmp_path):
    env_file = tmp_path / "chat.env"
    env_file.write_text("LMSTUDIO_MODEL=from-dotenv\n")
    config = ChatConfig.from_env(env_file=env_file)
    assert config.model == "from-dotenv"


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("LMSTUDIO_MODEL", "env-model")
    config = ChatConfig.from_env(
        env_file=Path("missing.env"), model="cli-model", base_url=None,
    )
    assert config.model == "cli-model"
    assert config.base_url == "http://localhost:1234/v1"


def test_invalid_rounds_rejected(monkeypatch):
    monkeypatch.setenv("CHAT_MAX_ROUNDS", "0")
    with pytest.raises(ValidationError):
        ChatConfig.from_env(env_file=Path("missing.env"))
