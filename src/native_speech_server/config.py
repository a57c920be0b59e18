#
# Copyright (c) 2026, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Server configuration resolved once at startup.

The configuration is built from an environment mapping (typically
``os.environ`` after ``.env`` has been loaded) and then passed explicitly to
every component. Nothing reads the environment after startup.
"""

import tempfile
from collections.abc import Mapping
from dataclasses import dataclass

VALID_ENGINES = ("powershell", "say")
VALID_TRANSPORTS = ("http", "stdio")

DEFAULT_CHAT_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful voice assistant. Keep replies short and conversational, "
    "since they will be read aloud."
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ServerConfig:
    """Immutable runtime configuration."""

    engine: str = "powershell"
    transport: str = "http"
    host: str = "0.0.0.0"
    port: int = 3000
    port_attempts: int = 100
    default_voice: str | None = None
    engine_timeout: float = 30.0
    voices_timeout: float = 10.0
    capture_grace: float = 10.0
    capture_dir: str = tempfile.gettempdir()
    serialize_captures: bool = True
    static_dir: str | None = None
    powershell_exe: str = "powershell"
    chat_api_url: str = DEFAULT_CHAT_URL
    chat_api_key: str | None = None
    chat_model: str = "gpt-4o-mini"
    chat_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    chat_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def chat_enabled(self) -> bool:
        return bool(self.chat_api_key)

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "ServerConfig":
        """Build a config from environment variables.

        Args:
            env: Environment variables dict (typically os.environ).

        Raises:
            ValueError: If a variable holds a value of the wrong type or an
                unknown engine/transport name.

        """
        engine = env.get("SPEECH_ENGINE", cls.engine).lower()
        if engine not in VALID_ENGINES:
            raise ValueError(f"Invalid SPEECH_ENGINE '{engine}'. Allowed: {', '.join(VALID_ENGINES)}")
        transport = env.get("SPEECH_TRANSPORT", cls.transport).lower()
        if transport not in VALID_TRANSPORTS:
            raise ValueError(
                f"Invalid SPEECH_TRANSPORT '{transport}'. Allowed: {', '.join(VALID_TRANSPORTS)}"
            )

        return cls(
            engine=engine,
            transport=transport,
            host=env.get("SPEECH_HOST", cls.host),
            port=_int(env, "SPEECH_PORT", cls.port),
            port_attempts=_int(env, "SPEECH_PORT_ATTEMPTS", cls.port_attempts),
            default_voice=env.get("SPEECH_DEFAULT_VOICE") or None,
            engine_timeout=_float(env, "SPEECH_ENGINE_TIMEOUT", cls.engine_timeout),
            voices_timeout=_float(env, "SPEECH_VOICES_TIMEOUT", cls.voices_timeout),
            capture_grace=_float(env, "SPEECH_CAPTURE_GRACE", cls.capture_grace),
            capture_dir=env.get("SPEECH_CAPTURE_DIR") or cls.capture_dir,
            serialize_captures=_bool(env, "SPEECH_SERIALIZE_CAPTURES", cls.serialize_captures),
            static_dir=env.get("SPEECH_STATIC_DIR") or None,
            powershell_exe=env.get("POWERSHELL_EXE") or cls.powershell_exe,
            chat_api_url=env.get("CHAT_API_URL") or cls.chat_api_url,
            chat_api_key=env.get("CHAT_API_KEY") or env.get("OPENAI_API_KEY") or None,
            chat_model=env.get("CHAT_MODEL") or cls.chat_model,
            chat_system_prompt=env.get("CHAT_SYSTEM_PROMPT") or cls.chat_system_prompt,
            chat_timeout=_float(env, "CHAT_TIMEOUT", cls.chat_timeout),
            log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'") from None


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got '{raw}'")
    return value


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean (1/0, true/false), got '{raw}'")
