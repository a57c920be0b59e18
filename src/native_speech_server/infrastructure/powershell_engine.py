"""Windows speech engine driven through PowerShell and System.Speech.

The scripts below are constants. Everything that varies per request (the
text, the voice, the rate, the artifact path, the duration) is handed to the
child through ``SPEECH_*`` environment variables, so caller text is never
spliced into script source and needs no quoting.
"""

import base64

from loguru import logger

from native_speech_server.infrastructure.engine_invoker import EngineCommand, EngineInvoker

DEFAULT_VOICE = "Microsoft David Desktop"
FALLBACK_VOICES = ["Microsoft David Desktop", "Microsoft Zira Desktop"]

_PRELUDE = "$ErrorActionPreference = 'Stop'\nAdd-Type -AssemblyName System.Speech\n"

_LIST_VOICES_SCRIPT = _PRELUDE + """
$synth = New-Object System.Speech.Synthesis.SpeechSynthesizer
try {
    $synth.GetInstalledVoices() | ForEach-Object { $_.VoiceInfo.Name }
} finally {
    $synth.Dispose()
}
"""

_SPEAK_SCRIPT = _PRELUDE + """
$synth = New-Object System.Speech.Synthesis.SpeechSynthesizer
try {
    if ($env:SPEECH_VOICE) { $synth.SelectVoice($env:SPEECH_VOICE) }
    $synth.Rate = [int]$env:SPEECH_RATE
    $synth.Speak($env:SPEECH_TEXT)
} finally {
    $synth.Dispose()
}
"""

_RECORD_SCRIPT = _PRELUDE + """
$signature = '[DllImport("winmm.dll", CharSet = CharSet.Unicode)] public static extern int mciSendString(string command, System.Text.StringBuilder buffer, int size, IntPtr callback);'
$mci = Add-Type -MemberDefinition $signature -Name SpeechMci -Namespace NativeSpeech -PassThru
function Send-Mci([string]$command) {
    $code = $mci::mciSendString($command, $null, 0, [IntPtr]::Zero)
    if ($code -ne 0) { throw "MCI command failed ($code): $command" }
}
Send-Mci 'open new type waveaudio alias capture'
try {
    Send-Mci 'set capture bitspersample 16 channels 1 samplespersec 16000'
    Send-Mci 'record capture'
    Start-Sleep -Seconds ([int]$env:SPEECH_DURATION)
    Send-Mci 'stop capture'
    Send-Mci ('save capture "' + $env:SPEECH_AUDIO_PATH + '"')
} finally {
    $mci::mciSendString('close capture', $null, 0, [IntPtr]::Zero) | Out-Null
}
"""

_TRANSCRIBE_SCRIPT = _PRELUDE + """
$recognizer = New-Object System.Speech.Recognition.SpeechRecognitionEngine
try {
    $recognizer.LoadGrammar((New-Object System.Speech.Recognition.DictationGrammar))
    $recognizer.SetInputToWaveFile($env:SPEECH_AUDIO_PATH)
    $parts = @()
    while ($true) {
        $result = $recognizer.Recognize()
        if ($null -eq $result) { break }
        $parts += $result.Text
    }
    $parts -join ' '
} finally {
    $recognizer.Dispose()
}
"""


def speed_to_rate(speed: float) -> int:
    """Map a speed multiplier (1.0 = normal) to a System.Speech rate in [-10, 10]."""
    return max(-10, min(10, round((speed - 1) * 10)))


def _encode(script: str) -> str:
    """Encode a script for ``-EncodedCommand`` (base64 of UTF-16LE)."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


class PowerShellSpeechEngine:
    """Speech engine adapter for Windows System.Speech.

    Implements the SpeechEnginePort protocol.
    """

    name = "powershell"
    default_voice = DEFAULT_VOICE

    def __init__(
        self,
        invoker: EngineInvoker,
        executable: str = "powershell",
        timeout: float = 30.0,
        voices_timeout: float = 10.0,
    ):
        """Initialize the engine adapter.

        Args:
            invoker: Runs the built commands.
            executable: PowerShell executable (``powershell`` or ``pwsh``).
            timeout: Seconds allowed for speaking and recognition.
            voices_timeout: Seconds allowed for voice enumeration.

        """
        self._invoker = invoker
        self._executable = executable
        self._timeout = timeout
        self._voices_timeout = voices_timeout

    def command(self, name: str, script: str, env: dict[str, str] | None = None) -> EngineCommand:
        """Build a PowerShell command running ``script`` with extra ``env``."""
        argv = (
            self._executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-EncodedCommand",
            _encode(script),
        )
        return EngineCommand(name=name, argv=argv, env=env or {})

    def fallback_voices(self) -> list[str]:
        return list(FALLBACK_VOICES)

    async def list_voices(self) -> list[str]:
        output = await self._invoker.invoke(
            self.command("list_voices", _LIST_VOICES_SCRIPT), self._voices_timeout
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def speak(self, text: str, voice: str, speed: float) -> None:
        rate = speed_to_rate(speed)
        logger.debug(f"Speaking {len(text)} chars with voice '{voice}' at rate {rate}")
        env = {"SPEECH_TEXT": text, "SPEECH_VOICE": voice, "SPEECH_RATE": str(rate)}
        await self._invoker.invoke(self.command("speak", _SPEAK_SCRIPT, env), self._timeout)

    async def record(self, path: str, duration: int, timeout: float) -> None:
        env = {"SPEECH_AUDIO_PATH": path, "SPEECH_DURATION": str(duration)}
        await self._invoker.invoke(self.command("record", _RECORD_SCRIPT, env), timeout)

    async def transcribe(self, path: str) -> str:
        env = {"SPEECH_AUDIO_PATH": path}
        return await self._invoker.invoke(
            self.command("transcribe", _TRANSCRIBE_SCRIPT, env), self._timeout
        )
