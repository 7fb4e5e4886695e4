"""Settings for a chat, read from the environment.

``ChatConfig.from_env()`` loads a ``.env`` file first (python-dotenv),
then reads the variables below; anything unset keeps its default.

==========================  ===========================
Variable                    Field
==========================  ===========================
``LMSTUDIO_BASE_URL``       ``base_url``
``LMSTUDIO_API_KEY``        ``api_key``
``LMSTUDIO_MODEL``          ``model``
``LMSTUDIO_ENABLE_TOOLS``   ``enable_tools``
``LMSTUDIO_TIMEOUT``        ``timeout``
``LMSTUDIO_MAX_RETRIES``    ``max_retries``
``CHAT_HISTORY_DIR``        ``history_dir``
``CHAT_HISTORY_PREFIX``     ``history_prefix``
``CHAT_SESSION_TIMEOUT``    ``session_timeout``
``CHAT_MAX_ROUNDS``         ``max_rounds``
``SYSTEM_PROMPT``           ``system_prompt``
==========================  ===========================
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from toolstream.provider import LMSTUDIO_BASE_URL

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer concisely. "
    "When a tool can answer the question, call it instead of guessing."
)

_ENV_FIELDS = {
    "LMSTUDIO_BASE_URL": "base_url",
    "LMSTUDIO_API_KEY": "api_key",
    "LMSTUDIO_MODEL": "model",
    "LMSTUDIO_TIMEOUT": "timeout",
    "LMSTUDIO_MAX_RETRIES": "max_retries",
    "CHAT_HISTORY_DIR": "history_dir",
    "CHAT_HISTORY_PREFIX": "history_prefix",
    "CHAT_SESSION_TIMEOUT": "session_timeout",
    "CHAT_MAX_ROUNDS": "max_rounds",
    "SYSTEM_PROMPT": "system_prompt",
}


class ChatConfig(BaseModel):
    base_url: str = LMSTUDIO_BASE_URL
    api_key: str = "lm-studio"
    model: str = "local-model"
    enable_tools: bool = False
    history_dir: Path = Path("chat_history")
    history_prefix: str = "lmstudio_chat_history"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    session_timeout: float = Field(default=300.0, ge=0)
    max_rounds: int = Field(default=25, gt=0)
    timeout: float = Field(default=600.0, gt=0)
    max_retries: int = Field(default=2, ge=0)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None, **overrides) -> "ChatConfig":
        """Build a config from environment variables.

        Keyword overrides win over the environment.
        """
        load_dotenv(env_file)
        values = {
            field: os.environ[var]
            for var, field in _ENV_FIELDS.items()
            if os.environ.get(var)
        }
        # Only the literal "true" turns tools on.
        values["enable_tools"] = os.getenv("LMSTUDIO_ENABLE_TOOLS") == "true"
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
