"""Infrastructure layer: concrete speech engine factory.

Picks the engine adapter for the configured engine name. Adapters are
allowed to depend on platform tools (PowerShell, ``say``); that is the purpose
of the infrastructure layer.
"""

from native_speech_server.config import ServerConfig
from native_speech_server.infrastructure.engine_invoker import EngineInvoker
from native_speech_server.infrastructure.powershell_engine import PowerShellSpeechEngine
from native_speech_server.infrastructure.say_engine import SaySpeechEngine
from native_speech_server.ports.speech_engine import SpeechEnginePort


def create_speech_engine(config: ServerConfig, invoker: EngineInvoker) -> SpeechEnginePort:
    """Create a speech engine adapter based on ``config.engine``.

    Args:
        config: Server configuration (engine name and timeouts).
        invoker: Subprocess runner shared by all engine operations.

    Returns:
        An object implementing SpeechEnginePort.

    Raises:
        ValueError: If the engine name is unknown.

    """
    if config.engine == "say":
        return SaySpeechEngine(
            invoker, timeout=config.engine_timeout, voices_timeout=config.voices_timeout
        )

    if config.engine == "powershell":
        return PowerShellSpeechEngine(
            invoker,
            executable=config.powershell_exe,
            timeout=config.engine_timeout,
            voices_timeout=config.voices_timeout,
        )

    raise ValueError(f"Unknown speech engine '{config.engine}'")
