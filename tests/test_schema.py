"""Tests for domain.schema: the shared operation schema and validator."""

import pytest

from native_speech_server.domain.errors import InvalidArguments, UnknownOperation
from native_speech_server.domain.schema import (
    OPERATIONS,
    get_operation,
    to_json_schema,
    validate_arguments,
)


class TestValidateTextToSpeech:
    """validate_arguments('text_to_speech', ...) normalizes synthesis requests."""

    def test_defaults_applied(self):
        """Missing voice and speed should take their declared defaults."""
        params = validate_arguments("text_to_speech", {"text": "hello"})
        assert params == {"text": "hello", "voice": None, "speed": 1.0}

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_text_rejected(self, text):
        """Empty or whitespace-only text should be rejected with the HTTP error message."""
        with pytest.raises(InvalidArguments, match="Text is required"):
            validate_arguments("text_to_speech", {"text": text})

    def test_missing_text_rejected(self):
        with pytest.raises(InvalidArguments, match="Text is required"):
            validate_arguments("text_to_speech", {})

    def test_non_string_text_rejected(self):
        with pytest.raises(InvalidArguments, match="text must be a string"):
            validate_arguments("text_to_speech", {"text": 42})

    @pytest.mark.parametrize("speed", [0.49, 2.01, -1, 10])
    def test_speed_out_of_bounds(self, speed):
        """Speed outside [0.5, 2.0] should be rejected."""
        with pytest.raises(InvalidArguments, match="speed must be between 0.5 and 2.0"):
            validate_arguments("text_to_speech", {"text": "hi", "speed": speed})

    @pytest.mark.parametrize("speed", [0.5, 2.0, 1, 1.25])
    def test_speed_in_bounds_becomes_float(self, speed):
        params = validate_arguments("text_to_speech", {"text": "hi", "speed": speed})
        assert params["speed"] == float(speed)
        assert isinstance(params["speed"], float)

    @pytest.mark.parametrize("speed", ["fast", True, [1]])
    def test_non_numeric_speed_rejected(self, speed):
        with pytest.raises(InvalidArguments, match="speed must be a number"):
            validate_arguments("text_to_speech", {"text": "hi", "speed": speed})

    @pytest.mark.parametrize("speed", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_speed_rejected(self, speed):
        with pytest.raises(InvalidArguments, match="speed must be a finite number"):
            validate_arguments("text_to_speech", {"text": "hi", "speed": speed})

    @pytest.mark.parametrize("duration", [float("nan"), float("inf")])
    def test_non_finite_duration_rejected(self, duration):
        with pytest.raises(InvalidArguments, match="duration must be a finite number"):
            validate_arguments("speech_to_text", {"duration": duration})

    def test_empty_voice_means_default(self):
        params = validate_arguments("text_to_speech", {"text": "hi", "voice": ""})
        assert params["voice"] is None

    def test_unknown_keys_dropped(self):
        params = validate_arguments("text_to_speech", {"text": "hi", "volume": 11})
        assert "volume" not in params


class TestValidateSpeechToText:
    """validate_arguments('speech_to_text', ...) bounds the recording duration."""

    def test_default_duration(self):
        assert validate_arguments("speech_to_text", {}) == {"duration": 5}

    def test_none_arguments_treated_as_empty(self):
        assert validate_arguments("speech_to_text", None) == {"duration": 5}

    @pytest.mark.parametrize("duration", [0, 61, -5])
    def test_duration_out_of_bounds(self, duration):
        with pytest.raises(InvalidArguments, match="duration must be between 1 and 60"):
            validate_arguments("speech_to_text", {"duration": duration})

    def test_whole_float_duration_becomes_int(self):
        params = validate_arguments("speech_to_text", {"duration": 3.0})
        assert params["duration"] == 3
        assert isinstance(params["duration"], int)

    def test_fractional_duration_rejected(self):
        with pytest.raises(InvalidArguments, match="whole number"):
            validate_arguments("speech_to_text", {"duration": 2.5})

    def test_non_object_arguments_rejected(self):
        with pytest.raises(InvalidArguments, match="object"):
            validate_arguments("speech_to_text", [5])


class TestOperationLookup:
    """get_operation() resolves operation names."""

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperation, match="Unknown tool: shout"):
            get_operation("shout")

    def test_validate_unknown_operation(self):
        with pytest.raises(UnknownOperation):
            validate_arguments("shout", {})

    def test_only_speech_operations_are_tools(self):
        """Only text_to_speech and speech_to_text are advertised as MCP tools."""
        assert [op.name for op in OPERATIONS if op.tool] == ["text_to_speech", "speech_to_text"]

    def test_chat_requires_message(self):
        with pytest.raises(InvalidArguments, match="Message is required"):
            validate_arguments("chat", {"message": ""})


class TestToJsonSchema:
    """to_json_schema() renders operation parameters for discovery."""

    def test_text_to_speech_schema(self):
        schema = to_json_schema(
            get_operation("text_to_speech"), voices=["A", "B"], default_voice="A"
        )
        assert schema["type"] == "object"
        assert schema["required"] == ["text"]
        assert schema["properties"]["voice"]["enum"] == ["A", "B"]
        assert schema["properties"]["voice"]["default"] == "A"
        assert schema["properties"]["speed"]["minimum"] == 0.5
        assert schema["properties"]["speed"]["maximum"] == 2.0
        assert schema["properties"]["speed"]["default"] == 1.0

    def test_speech_to_text_schema(self):
        schema = to_json_schema(get_operation("speech_to_text"))
        duration = schema["properties"]["duration"]
        assert duration["type"] == "integer"
        assert (duration["minimum"], duration["maximum"], duration["default"]) == (1, 60, 5)
        assert schema["required"] == []

    def test_voice_without_live_list_has_no_enum(self):
        schema = to_json_schema(get_operation("text_to_speech"))
        assert "enum" not in schema["properties"]["voice"]
        assert "default" not in schema["properties"]["voice"]
