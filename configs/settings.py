from __future__ import annotations

import os
from typing import Optional, Tuple

from dotenv import load_dotenv

from exceptions.exceptions import ConfigurationError


load_dotenv()


DEFAULT_ALLOWED_ORIGIN = "https://apluz.vercel.app"
DEFAULT_ALLOWED_ORIGIN_REGEX = (
    r"^(https://([a-z0-9-]+\.)*apluz\.vercel\.app"
    r"|http://(localhost|127\.0\.0\.1):\d+)$"
)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Settings:
    """
    Central configuration for the chat relay.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties. Keyword arguments override the
    environment, which is how tests build settings with fake credentials.

    Required values (API key, workflow id, assistant id) are never defaulted:
    reading them while unset raises ConfigurationError.
    """

    def __init__(self, **overrides) -> None:
        def pick(key: str, env_value):
            return overrides[key] if key in overrides else env_value

        # OpenAI credentials and identifiers
        self._openai_api_key = pick("openai_api_key", os.getenv("OPENAI_API_KEY"))
        self._openai_base_url = pick("openai_base_url", os.getenv("OPENAI_BASE_URL") or None)
        self._workflow_id = pick("workflow_id", os.getenv("WORKFLOW_ID"))
        self._assistant_id = pick("assistant_id", os.getenv("ASSISTANT_ID"))

        # Upstream feature-flag headers
        self._chatkit_beta = pick(
            "chatkit_beta", os.getenv("RELAY_CHATKIT_BETA", "chatkit_beta=v1")
        )
        self._chatkit_user = pick("chatkit_user", os.getenv("RELAY_CHATKIT_USER") or None)
        self._assistants_beta = pick(
            "assistants_beta", os.getenv("RELAY_ASSISTANTS_BETA", "assistants=v2")
        )

        # Run polling
        self._poll_interval = pick(
            "poll_interval", _env_float("RELAY_POLL_INTERVAL", 1.0)
        )
        self._max_polls = pick("max_polls", _env_int("RELAY_MAX_POLLS", 60))
        self._upstream_timeout = pick(
            "upstream_timeout", _env_float("RELAY_UPSTREAM_TIMEOUT", 30.0)
        )

        # CORS
        self._default_origin = pick(
            "default_origin", os.getenv("RELAY_DEFAULT_ORIGIN", DEFAULT_ALLOWED_ORIGIN)
        )
        self._allowed_origin_regex = pick(
            "allowed_origin_regex",
            os.getenv("RELAY_ALLOWED_ORIGIN_REGEX", DEFAULT_ALLOWED_ORIGIN_REGEX),
        )

        self._log_level = pick("log_level", os.getenv("RELAY_LOG_LEVEL", "INFO"))

    # ------------------------------------------------------------------
    # OpenAI credentials
    # ------------------------------------------------------------------

    @property
    def openai_api_key(self) -> str:
        if not self._openai_api_key:
            raise ConfigurationError(["OPENAI_API_KEY"])
        return self._openai_api_key

    @property
    def openai_base_url(self) -> Optional[str]:
        return self._openai_base_url

    @property
    def workflow_id(self) -> str:
        if not self._workflow_id:
            raise ConfigurationError(["WORKFLOW_ID"])
        return self._workflow_id

    @property
    def assistant_id(self) -> str:
        if not self._assistant_id:
            raise ConfigurationError(["ASSISTANT_ID"])
        return self._assistant_id

    def require_session_config(self) -> Tuple[str, str]:
        """Return (api_key, workflow_id), naming every missing variable."""
        missing = []
        if not self._openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self._workflow_id:
            missing.append("WORKFLOW_ID")
        if missing:
            raise ConfigurationError(missing)
        return self._openai_api_key, self._workflow_id

    def require_conversation_config(self) -> Tuple[str, str]:
        """Return (api_key, assistant_id), naming every missing variable."""
        missing = []
        if not self._openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self._assistant_id:
            missing.append("ASSISTANT_ID")
        if missing:
            raise ConfigurationError(missing)
        return self._openai_api_key, self._assistant_id

    # ------------------------------------------------------------------
    # Upstream behaviour
    # ------------------------------------------------------------------

    @property
    def chatkit_beta(self) -> str:
        return self._chatkit_beta

    @property
    def chatkit_user(self) -> Optional[str]:
        return self._chatkit_user

    @property
    def assistants_beta(self) -> str:
        return self._assistants_beta

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def max_polls(self) -> int:
        return self._max_polls

    @property
    def upstream_timeout(self) -> float:
        return self._upstream_timeout

    # ------------------------------------------------------------------
    # CORS + logging
    # ------------------------------------------------------------------

    @property
    def default_origin(self) -> str:
        return self._default_origin

    @property
    def allowed_origin_regex(self) -> str:
        return self._allowed_origin_regex

    @property
    def log_level(self) -> str:
        return self._log_level


settings = Settings()
