"""Capability discovery: live voice list plus the static operation schema."""

from typing import Any

from loguru import logger

from native_speech_server.domain.schema import OPERATIONS, OperationSpec, to_json_schema
from native_speech_server.ports.speech_engine import SpeechEnginePort


class CapabilityRegistry:
    """Answers "what can this server do" for both transports."""

    def __init__(self, engine: SpeechEnginePort, default_voice: str):
        self._engine = engine
        self._default_voice = default_voice

    @property
    def default_voice(self) -> str:
        return self._default_voice

    async def list_voices(self) -> list[str]:
        """Return installed voices, or the engine's fallback list.

        Never raises for engine problems: discovery must always succeed.
        """
        try:
            voices = await self._engine.list_voices()
        except Exception as e:
            logger.warning(f"Voice enumeration failed, using fallback voices: {e}")
            return self._engine.fallback_voices()
        if not voices:
            logger.warning("Speech engine reported no voices, using fallback voices")
            return self._engine.fallback_voices()
        return voices

    def describe_operations(self) -> tuple[OperationSpec, ...]:
        """Return the declarative operation schema (no engine calls)."""
        return OPERATIONS

    async def describe_tools(self) -> list[dict[str, Any]]:
        """Return MCP-style tool descriptions with the live voice enum filled in."""
        voices = await self.list_voices()
        return [
            {
                "name": spec.name,
                "description": spec.description,
                "inputSchema": to_json_schema(spec, voices, self._default_voice),
            }
            for spec in OPERATIONS
            if spec.tool
        ]
