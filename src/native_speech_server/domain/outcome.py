"""Normalized result of a dispatched operation."""

from dataclasses import dataclass, field
from typing import Any

from native_speech_server.domain.errors import SpeechServerError


@dataclass(frozen=True)
class OperationOutcome:
    """Either a success payload or a normalized failure.

    Failures may still carry a payload when part of the work succeeded
    (e.g. a chat reply was generated but could not be spoken).
    """

    ok: bool
    payload: dict[str, Any] = field(default_factory=dict)
    error_kind: str | None = None
    message: str | None = None

    @classmethod
    def success(cls, **payload: Any) -> "OperationOutcome":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: SpeechServerError, **payload: Any) -> "OperationOutcome":
        return cls(ok=False, payload=payload, error_kind=error.kind, message=error.message)
