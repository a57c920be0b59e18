"""macOS speech engine driven through the ``say`` command.

Synthesis and voice enumeration only: ``say`` has no recognizer, so the
recognition half of the port reports an engine failure.
"""

import re

from native_speech_server.domain.errors import EngineExecutionError
from native_speech_server.infrastructure.engine_invoker import EngineCommand, EngineInvoker

DEFAULT_VOICE = "Samantha"
FALLBACK_VOICES = ["Samantha", "Alex"]

# Normal speaking rate in words per minute
BASE_WORDS_PER_MINUTE = 175

# "Bad News            en_US    # The light you see ..."
_VOICE_LINE_RE = re.compile(r"^(?P<name>.+?)\s+[a-z]{2,3}[_-][A-Za-z0-9]+\s+#")


class SaySpeechEngine:
    """Speech engine adapter for macOS ``say``.

    Implements the SpeechEnginePort protocol. Text is fed on standard input
    (``-f -``) so it can never be parsed as an option.
    """

    name = "say"
    default_voice = DEFAULT_VOICE

    def __init__(
        self,
        invoker: EngineInvoker,
        executable: str = "say",
        timeout: float = 30.0,
        voices_timeout: float = 10.0,
    ):
        self._invoker = invoker
        self._executable = executable
        self._timeout = timeout
        self._voices_timeout = voices_timeout

    def fallback_voices(self) -> list[str]:
        return list(FALLBACK_VOICES)

    async def list_voices(self) -> list[str]:
        command = EngineCommand(name="list_voices", argv=(self._executable, "-v", "?"))
        output = await self._invoker.invoke(command, self._voices_timeout)
        voices = []
        for line in output.splitlines():
            match = _VOICE_LINE_RE.match(line.strip())
            if match:
                voices.append(match.group("name"))
        return voices

    async def speak(self, text: str, voice: str, speed: float) -> None:
        rate = max(1, round(BASE_WORDS_PER_MINUTE * speed))
        command = EngineCommand(
            name="speak",
            argv=(self._executable, "-v", voice, "-r", str(rate), "-f", "-"),
            input=text.encode("utf-8"),
        )
        await self._invoker.invoke(command, self._timeout)

    async def record(self, path: str, duration: int, timeout: float) -> None:
        raise EngineExecutionError("Audio capture is not supported by the 'say' engine")

    async def transcribe(self, path: str) -> str:
        raise EngineExecutionError("Speech recognition is not supported by the 'say' engine")
