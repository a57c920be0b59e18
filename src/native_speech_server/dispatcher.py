#
# Copyright (c) 2026, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Transport-agnostic request handling.

The dispatcher is the only thing the HTTP and MCP front-ends talk to. A
request moves through Received -> Validated -> Executing -> Completed or
Failed, and always comes back as an ``OperationOutcome``: validation problems,
engine failures and timeouts are all normalized here rather than raised.

Operations:
    list_voices: Installed voices (falls back to a fixed list).
    text_to_speech: Speak text with an optional voice and speed.
    speech_to_text: Record from the microphone and transcribe.
    chat: Generate a reply with the chat collaborator and speak it.
"""

from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from native_speech_server.capabilities import CapabilityRegistry
from native_speech_server.capture import AudioCaptureManager
from native_speech_server.domain.errors import (
    SpeechServerError,
    UnknownOperation,
    UpstreamGenerationError,
)
from native_speech_server.domain.outcome import OperationOutcome
from native_speech_server.domain.schema import validate_arguments
from native_speech_server.ports.speech_engine import SpeechEnginePort
from native_speech_server.ports.text_generator import TextGeneratorPort

NO_SPEECH_DETECTED = "No speech detected"


class Dispatcher:
    """Maps validated operation arguments onto engine work."""

    def __init__(
        self,
        engine: SpeechEnginePort,
        captures: AudioCaptureManager,
        registry: CapabilityRegistry,
        generator: Optional[TextGeneratorPort] = None,
    ):
        """Initialize the dispatcher.

        Args:
            engine: Speech engine adapter.
            captures: Owner of the per-request capture files.
            registry: Voice discovery and the operation schema.
            generator: Chat reply generator; ``chat`` fails without one.

        """
        self._engine = engine
        self._captures = captures
        self._registry = registry
        self._generator = generator
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[OperationOutcome]]] = {
            "list_voices": self._list_voices,
            "text_to_speech": self._text_to_speech,
            "speech_to_text": self._speech_to_text,
            "chat": self._chat,
        }

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    async def dispatch(self, operation: str, arguments: Any = None) -> OperationOutcome:
        """Validate ``arguments`` and run ``operation``.

        Args:
            operation: Operation name from the capability schema.
            arguments: Raw argument mapping from the transport (may be None).

        Returns:
            The normalized outcome. Never raises for expected failures.

        """
        try:
            handler = self._handlers.get(operation)
            if handler is None:
                raise UnknownOperation(f"Unknown tool: {operation}")
            params = validate_arguments(operation, arguments)
        except SpeechServerError as e:
            logger.info(f"Rejected '{operation}' request: {e.message}")
            return OperationOutcome.failure(e)

        try:
            return await handler(params)
        except SpeechServerError as e:
            logger.error(f"Operation '{operation}' failed ({e.kind}): {e.message}")
            return OperationOutcome.failure(e)
        except Exception as e:
            logger.exception(f"Unexpected error in operation '{operation}'")
            return OperationOutcome.failure(SpeechServerError(f"{type(e).__name__}: {e}"))

    def _voice(self, params: dict[str, Any]) -> str:
        return params.get("voice") or self._registry.default_voice

    async def _list_voices(self, params: dict[str, Any]) -> OperationOutcome:
        return OperationOutcome.success(voices=await self._registry.list_voices())

    async def _text_to_speech(self, params: dict[str, Any]) -> OperationOutcome:
        await self._engine.speak(params["text"], self._voice(params), params["speed"])
        return OperationOutcome.success(success=True)

    async def _speech_to_text(self, params: dict[str, Any]) -> OperationOutcome:
        duration = params["duration"]
        logger.info(f"Recording {duration}s for transcription")
        async with self._captures.recording(duration) as handle:
            self._captures.verify(handle)
            text = await self._engine.transcribe(handle.path)
        return OperationOutcome.success(text=text or NO_SPEECH_DETECTED)

    async def _chat(self, params: dict[str, Any]) -> OperationOutcome:
        if self._generator is None:
            raise UpstreamGenerationError("Chat generation is not configured")

        # Generation failures propagate before the engine is touched
        reply = await self._generator.generate(params["message"])

        try:
            await self._engine.speak(reply, self._voice(params), params["speed"])
        except SpeechServerError as e:
            logger.error(f"Generated a reply but could not speak it ({e.kind}): {e.message}")
            return OperationOutcome.failure(e, success=False, response=reply, spoken=False)
        return OperationOutcome.success(success=True, response=reply, spoken=True)
