"""Declarative operation schema and the argument validator both transports use.

The schema is static data; nothing here touches the speech engine. The MCP
transport renders it as JSON Schema for ``tools/list`` and the HTTP transport
relies on the same :func:`validate_arguments` call through the dispatcher, so
an out-of-range value is rejected identically no matter how it arrived.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from native_speech_server.domain.errors import InvalidArguments, UnknownOperation

MIN_SPEED = 0.5
MAX_SPEED = 2.0
MIN_DURATION = 1
MAX_DURATION = 60
DEFAULT_DURATION = 5
DEFAULT_SPEED = 1.0

_JSON_TYPES = {"string": str, "number": (int, float), "integer": int}


@dataclass(frozen=True)
class ParameterSpec:
    """One named parameter of an operation."""

    name: str
    type: str
    description: str
    required: bool = False
    default: Any = None
    minimum: float | None = None
    maximum: float | None = None


@dataclass(frozen=True)
class OperationSpec:
    """One operation the dispatcher can run.

    ``tool`` marks operations advertised through MCP capability discovery.
    """

    name: str
    description: str
    params: tuple[ParameterSpec, ...] = field(default_factory=tuple)
    tool: bool = False

    def param(self, name: str) -> ParameterSpec | None:
        return next((p for p in self.params if p.name == name), None)


_VOICE = ParameterSpec("voice", "string", "Voice to use (defaults to the server's default voice)")
_SPEED = ParameterSpec(
    "speed",
    "number",
    "Speech rate multiplier (0.5 to 2.0)",
    default=DEFAULT_SPEED,
    minimum=MIN_SPEED,
    maximum=MAX_SPEED,
)

OPERATIONS: tuple[OperationSpec, ...] = (
    OperationSpec(
        name="list_voices",
        description="List the voices installed in the speech engine",
    ),
    OperationSpec(
        name="text_to_speech",
        description="Convert text to speech using the host's speech engine",
        params=(
            ParameterSpec("text", "string", "The text to convert to speech", required=True),
            _VOICE,
            _SPEED,
        ),
        tool=True,
    ),
    OperationSpec(
        name="speech_to_text",
        description="Record audio from the microphone and convert it to text",
        params=(
            ParameterSpec(
                "duration",
                "integer",
                "Recording duration in seconds",
                default=DEFAULT_DURATION,
                minimum=MIN_DURATION,
                maximum=MAX_DURATION,
            ),
        ),
        tool=True,
    ),
    OperationSpec(
        name="chat",
        description="Generate a reply to a message and speak it aloud",
        params=(
            ParameterSpec("message", "string", "The message to reply to", required=True),
            _VOICE,
            _SPEED,
        ),
    ),
)

_BY_NAME = {op.name: op for op in OPERATIONS}


def get_operation(name: str) -> OperationSpec:
    """Look up an operation by name.

    Raises:
        UnknownOperation: If no operation has that name.

    """
    try:
        return _BY_NAME[name]
    except KeyError:
        raise UnknownOperation(f"Unknown tool: {name}") from None


def _coerce(param: ParameterSpec, value: Any) -> Any:
    """Check one present value against its spec and return the normalized value."""
    if param.type == "string":
        if not isinstance(value, str):
            raise InvalidArguments(f"{param.name} must be a string")
        if param.required and not value.strip():
            raise InvalidArguments(f"{param.name.capitalize()} is required")
        return value

    # bool is an int subclass, but true/false is never a valid number here
    if isinstance(value, bool) or not isinstance(value, _JSON_TYPES["number"]):
        raise InvalidArguments(f"{param.name} must be a number")
    # NaN and infinities compare false against both bounds
    if not math.isfinite(value):
        raise InvalidArguments(f"{param.name} must be a finite number")
    if param.type == "integer":
        if isinstance(value, float):
            if not value.is_integer():
                raise InvalidArguments(f"{param.name} must be a whole number")
            value = int(value)
    else:
        value = float(value)

    too_low = param.minimum is not None and value < param.minimum
    too_high = param.maximum is not None and value > param.maximum
    if too_low or too_high:
        raise InvalidArguments(
            f"{param.name} must be between {param.minimum} "
            f"and {param.maximum}"
        )
    return value


def validate_arguments(operation: str, arguments: Any) -> dict[str, Any]:
    """Validate and normalize the arguments for an operation.

    Missing optional parameters get their declared default (which may be
    None, e.g. ``voice``, so the caller can apply configuration). Unknown
    keys are dropped.

    Raises:
        UnknownOperation: If the operation does not exist.
        InvalidArguments: If a required value is missing or a value is out of range.

    """
    spec = get_operation(operation)
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArguments("Arguments must be an object")

    normalized: dict[str, Any] = {}
    for param in spec.params:
        value = arguments.get(param.name)
        # Empty optional strings mean "use the default"
        if value is None or (value == "" and not param.required):
            if param.required:
                raise InvalidArguments(f"{param.name.capitalize()} is required")
            normalized[param.name] = param.default
            continue
        normalized[param.name] = _coerce(param, value)
    return normalized


def to_json_schema(
    spec: OperationSpec, voices: list[str] | None = None, default_voice: str | None = None
) -> dict[str, Any]:
    """Render an operation's parameters as a JSON Schema object.

    Args:
        spec: Operation to render.
        voices: Live voice list, advertised as an ``enum`` on ``voice``.
        default_voice: Advertised default for ``voice``.

    """
    properties: dict[str, Any] = {}
    for param in spec.params:
        prop: dict[str, Any] = {"type": param.type, "description": param.description}
        if param.minimum is not None:
            prop["minimum"] = param.minimum
        if param.maximum is not None:
            prop["maximum"] = param.maximum
        default = default_voice if param.name == "voice" else param.default
        if default is not None:
            prop["default"] = default
        if param.name == "voice" and voices:
            prop["enum"] = list(voices)
        properties[param.name] = prop
    return {
        "type": "object",
        "properties": properties,
        "required": [p.name for p in spec.params if p.required],
    }
