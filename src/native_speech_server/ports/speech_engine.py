"""Port interface for the host speech engine."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class SpeechEnginePort(Protocol):
    """Protocol for an OS speech engine driven through subprocess commands.

    Implementations build engine commands and interpret their output; the
    timing and process handling belong to the engine invoker they wrap.
    """

    name: str
    default_voice: str

    def fallback_voices(self) -> list[str]:
        """Return the fixed voice list used when enumeration fails."""
        ...

    async def list_voices(self) -> list[str]:
        """Enumerate installed voices, in engine order."""
        ...

    async def speak(self, text: str, voice: str, speed: float) -> None:
        """Speak text aloud, returning once playback has finished."""
        ...

    async def record(self, path: str, duration: int, timeout: float) -> None:
        """Record ``duration`` seconds of microphone audio into ``path``."""
        ...

    async def transcribe(self, path: str) -> str:
        """Recognize speech in the audio file at ``path``."""
        ...
