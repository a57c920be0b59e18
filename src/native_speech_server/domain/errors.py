"""Domain error taxonomy shared by the dispatcher and both transports.

Every failure the server reports is one of these exceptions. Each carries a
``kind`` string so transports can map failures to status codes without
``isinstance`` ladders.
"""


class SpeechServerError(Exception):
    """Base class for all expected server failures."""

    kind = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArguments(SpeechServerError):
    """Arguments failed local validation; nothing external was called."""

    kind = "InvalidArguments"


class UnknownOperation(SpeechServerError):
    """The requested operation is not part of the capability schema."""

    kind = "MethodNotFound"


class NoAvailablePort(SpeechServerError):
    """No port in the scan window could be bound (fatal at startup)."""

    kind = "NoAvailablePort"


class EngineExecutionError(SpeechServerError):
    """The speech engine failed to start or exited with a non-zero status."""

    kind = "EngineExecutionError"

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


class EngineTimeoutError(SpeechServerError):
    """An engine command exceeded its wall-clock limit and was killed."""

    kind = "Timeout"

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout


class ArtifactIOError(SpeechServerError):
    """The transient capture file could not be created, read or finalized."""

    kind = "ArtifactIOError"


class UpstreamGenerationError(SpeechServerError):
    """The chat-completion collaborator failed to produce a reply."""

    kind = "UpstreamGenerationError"
