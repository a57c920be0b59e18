#
# Copyright (c) 2026, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""Lifecycle of the transient audio files used for speech recognition.

Each recognition request owns exactly one capture file. The file is created
(exclusively, under a uuid-based name) before recording starts and is removed
before the request completes, whatever the outcome. ``recording()`` is the
scoped form of that contract and is what request handlers should use.
"""

import asyncio
import os
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from native_speech_server.domain.errors import ArtifactIOError
from native_speech_server.ports.speech_engine import SpeechEnginePort

_PREFIX = "speech-capture-"
_SUFFIX = ".wav"


@dataclass(frozen=True)
class CaptureHandle:
    """Reference to one capture file."""

    path: str
    request_id: str


class AudioCaptureManager:
    """Allocates, records into, reads and releases capture files."""

    def __init__(
        self,
        engine: SpeechEnginePort,
        directory: str,
        capture_grace: float = 10.0,
        serialize: bool = True,
    ):
        """Initialize the manager.

        Args:
            engine: Engine used to record into the capture file.
            directory: Directory where capture files are created.
            capture_grace: Seconds allowed on top of the recording duration
                before the record command is considered hung.
            serialize: Allow only one recording at a time (one microphone).

        """
        self._engine = engine
        self._directory = directory
        self._capture_grace = capture_grace
        self._device_lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize else None

    def allocate(self) -> CaptureHandle:
        """Create an empty, uniquely named capture file.

        Raises:
            ArtifactIOError: If the file cannot be created.

        """
        request_id = uuid.uuid4().hex
        path = os.path.join(self._directory, f"{_PREFIX}{request_id}{_SUFFIX}")
        try:
            os.makedirs(self._directory, exist_ok=True)
            # "x" fails if the name already exists, so two requests never share a file
            with open(path, "xb"):
                pass
        except OSError as e:
            raise ArtifactIOError(f"Could not create capture file {path}: {e}") from e
        logger.debug(f"Allocated capture file {path}")
        return CaptureHandle(path=path, request_id=request_id)

    async def capture(self, duration: int) -> CaptureHandle:
        """Record ``duration`` seconds of audio into a new capture file.

        The caller owns the returned handle and must ``release()`` it. If
        recording fails the file is released here before the error propagates.

        Raises:
            EngineExecutionError: If the engine failed to record.
            EngineTimeoutError: If recording overran ``duration`` plus the grace period.
            ArtifactIOError: If the file could not be created.

        """
        handle = self.allocate()
        try:
            await self._record(handle, duration)
        except BaseException:
            await self.release(handle)
            raise
        return handle

    async def _record(self, handle: CaptureHandle, duration: int) -> None:
        timeout = duration + self._capture_grace
        logger.debug(f"Recording {duration}s into {handle.path}")
        if self._device_lock is None:
            await self._engine.record(handle.path, duration, timeout)
            return
        async with self._device_lock:
            await self._engine.record(handle.path, duration, timeout)

    async def read(self, handle: CaptureHandle) -> bytes:
        """Return the recorded audio.

        Raises:
            ArtifactIOError: If the file is missing, unreadable or empty.

        """
        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, _read_bytes, handle.path)
        except OSError as e:
            raise ArtifactIOError(f"Could not read capture file {handle.path}: {e}") from e
        if not data:
            raise ArtifactIOError("No audio was captured")
        return data

    def verify(self, handle: CaptureHandle) -> int:
        """Return the size of the recorded audio without loading it.

        Raises:
            ArtifactIOError: If the file is missing or empty.

        """
        try:
            size = os.path.getsize(handle.path)
        except OSError as e:
            raise ArtifactIOError(f"Could not read capture file {handle.path}: {e}") from e
        if not size:
            raise ArtifactIOError("No audio was captured")
        return size

    async def release(self, handle: Optional[CaptureHandle]) -> None:
        """Delete the capture file if it still exists.

        Safe to call more than once and on handles whose file was never
        created. Deletion problems are logged and never raised, so they cannot
        hide the result of the request.
        """
        if handle is None:
            return
        loop = asyncio.get_running_loop()
        try:
            removed = await loop.run_in_executor(None, _remove_if_exists, handle.path)
        except OSError as e:
            logger.warning(f"Failed to delete capture file {handle.path}: {e}")
            return
        if removed:
            logger.debug(f"Released capture file {handle.path}")

    @asynccontextmanager
    async def recording(self, duration: int) -> AsyncIterator[CaptureHandle]:
        """Capture audio and guarantee the file is released when the block exits."""
        handle = await self.capture(duration)
        try:
            yield handle
        finally:
            await self.release(handle)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _remove_if_exists(path: str) -> bool:
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True
