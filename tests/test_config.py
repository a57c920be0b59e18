"""Tests for ServerConfig.from_env()."""

import tempfile

import pytest

from native_speech_server.config import DEFAULT_CHAT_URL, ServerConfig


class TestFromEnvDefaults:
    """An empty environment yields the documented defaults."""

    def test_defaults(self):
        config = ServerConfig.from_env({})
        assert config.engine == "powershell"
        assert config.transport == "http"
        assert config.port == 3000
        assert config.port_attempts == 100
        assert config.default_voice is None
        assert config.engine_timeout == 30.0
        assert config.capture_dir == tempfile.gettempdir()
        assert config.serialize_captures is True
        assert config.chat_api_url == DEFAULT_CHAT_URL
        assert config.chat_enabled is False
        assert config.log_level == "INFO"


class TestFromEnvOverrides:
    """Environment variables override defaults."""

    def test_values_parsed(self):
        config = ServerConfig.from_env(
            {
                "SPEECH_ENGINE": "SAY",
                "SPEECH_TRANSPORT": "stdio",
                "SPEECH_PORT": "4100",
                "SPEECH_DEFAULT_VOICE": "Microsoft Zira Desktop",
                "SPEECH_ENGINE_TIMEOUT": "12.5",
                "SPEECH_SERIALIZE_CAPTURES": "false",
                "SPEECH_CAPTURE_DIR": "/var/tmp/speech",
                "LOG_LEVEL": "debug",
            }
        )
        assert config.engine == "say"
        assert config.transport == "stdio"
        assert config.port == 4100
        assert config.default_voice == "Microsoft Zira Desktop"
        assert config.engine_timeout == 12.5
        assert config.serialize_captures is False
        assert config.capture_dir == "/var/tmp/speech"
        assert config.log_level == "DEBUG"

    def test_openai_key_enables_chat(self):
        config = ServerConfig.from_env({"OPENAI_API_KEY": "sk-test"})
        assert config.chat_api_key == "sk-test"
        assert config.chat_enabled is True

    def test_chat_api_key_takes_precedence(self):
        config = ServerConfig.from_env({"OPENAI_API_KEY": "sk-a", "CHAT_API_KEY": "sk-b"})
        assert config.chat_api_key == "sk-b"

    def test_empty_values_fall_back_to_defaults(self):
        config = ServerConfig.from_env({"SPEECH_PORT": "", "SPEECH_DEFAULT_VOICE": ""})
        assert config.port == 3000
        assert config.default_voice is None


class TestFromEnvInvalid:
    """Bad values fail at startup with the variable name."""

    @pytest.mark.parametrize(
        "env,match",
        [
            ({"SPEECH_ENGINE": "espeak"}, "SPEECH_ENGINE"),
            ({"SPEECH_TRANSPORT": "grpc"}, "SPEECH_TRANSPORT"),
            ({"SPEECH_PORT": "eighty"}, "SPEECH_PORT"),
            ({"SPEECH_ENGINE_TIMEOUT": "soon"}, "SPEECH_ENGINE_TIMEOUT"),
            ({"SPEECH_ENGINE_TIMEOUT": "0"}, "positive"),
            ({"SPEECH_SERIALIZE_CAPTURES": "maybe"}, "SPEECH_SERIALIZE_CAPTURES"),
        ],
    )
    def test_invalid_values_raise(self, env, match):
        with pytest.raises(ValueError, match=match):
            ServerConfig.from_env(env)
