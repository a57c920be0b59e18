"""Shared fixtures: an in-memory speech engine and a wired dispatcher.

The fake engine stands in for the OS speech engine so the orchestration
layer can be tested without PowerShell or a microphone. Recording writes a
small fake WAV header into the capture file, like the real recorder would.
"""

import asyncio
import sys
from unittest.mock import AsyncMock

import pytest

from native_speech_server.capabilities import CapabilityRegistry
from native_speech_server.capture import AudioCaptureManager
from native_speech_server.dispatcher import Dispatcher
from native_speech_server.infrastructure.engine_invoker import EngineCommand, EngineInvoker

FAKE_AUDIO = b"RIFF" + b"\x00" * 40


class FakeSpeechEngine:
    """SpeechEnginePort implementation backed by AsyncMocks."""

    name = "fake"
    default_voice = "Fake Voice"

    def __init__(self):
        self.recorded_paths: list[str] = []
        self.list_voices = AsyncMock(return_value=["Fake Voice", "Other Voice"])
        self.speak = AsyncMock(return_value=None)
        self.record = AsyncMock(side_effect=self._write_audio)
        self.transcribe = AsyncMock(return_value="hello world")

    def fallback_voices(self) -> list[str]:
        return ["Fallback One", "Fallback Two"]

    async def _write_audio(self, path: str, duration: int, timeout: float) -> None:
        self.recorded_paths.append(path)
        await asyncio.sleep(0)
        with open(path, "wb") as f:
            f.write(FAKE_AUDIO)


class SleepingSpeakEngine(FakeSpeechEngine):
    """Fake engine whose ``speak`` runs a real child process that outlives its timeout."""

    def __init__(self, invoker: EngineInvoker, timeout: float):
        super().__init__()
        self._invoker = invoker
        self._timeout = timeout
        self.speak = AsyncMock(side_effect=self._sleep)

    async def _sleep(self, text: str, voice: str, speed: float) -> None:
        command = EngineCommand(
            name="speak", argv=(sys.executable, "-c", "import time; time.sleep(30)")
        )
        await self._invoker.invoke(command, self._timeout)


def make_dispatcher(engine, capture_dir, generator=None) -> Dispatcher:
    captures = AudioCaptureManager(engine, directory=str(capture_dir), capture_grace=1.0)
    registry = CapabilityRegistry(engine, engine.default_voice)
    return Dispatcher(engine, captures, registry, generator)


@pytest.fixture
def engine() -> FakeSpeechEngine:
    return FakeSpeechEngine()


@pytest.fixture
def capture_dir(tmp_path):
    path = tmp_path / "captures"
    path.mkdir()
    return path


@pytest.fixture
def dispatcher(engine, capture_dir) -> Dispatcher:
    return make_dispatcher(engine, capture_dir)
