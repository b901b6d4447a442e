"""System voice service using native OS text-to-speech commands.

This module provides text-to-speech functionality using the built-in
TTS capabilities of the operating system (say on macOS, espeak on Linux,
SAPI on Windows).
"""

import asyncio
import logging
import platform
import shutil
import tempfile
from pathlib import Path

from ..tts.errors import RecognitionUnsupportedError
from .base import VoiceService

logger = logging.getLogger(__name__)


async def _run(cmd: list[str], what: str) -> None:
    proc = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    _, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise RuntimeError(
            f"{what} failed with code {proc.returncode}: {stderr.decode(errors='replace')}"
        )


class SystemVoiceService(VoiceService):
    """System TTS fallback using native OS commands.

    Provides text-to-speech functionality without requiring external APIs,
    using the built-in TTS capabilities of the operating system.

    Note: Audio quality will be robotic compared to the primary voice.
    """

    name = "system"

    def __init__(self) -> None:
        """Initialize system voice service and detect platform."""
        self.platform = platform.system()

        if self.platform not in ["Darwin", "Linux", "Windows"]:
            raise RuntimeError(f"Unsupported platform: {self.platform}")

        if self.platform == "Linux" and shutil.which("espeak") is None:
            logger.warning(
                "espeak not found; system fallback will fail until it is installed "
                "(sudo apt-get install espeak)"
            )

    async def generate_speech(self, text: str, voice_id: str | None = None) -> bytes:
        """Convert text to speech using native OS commands.

        Args:
            text: Text to convert to speech
            voice_id: Optional voice name (platform-specific)

        Returns:
            Audio data as WAV bytes

        Raises:
            RuntimeError: If the TTS command fails
        """
        if not text or not text.strip():
            return b""

        with tempfile.TemporaryDirectory(prefix="voicegate-") as tmp:
            output_path = Path(tmp) / "speech.wav"

            if self.platform == "Darwin":
                # say writes AIFF; afconvert turns it into WAV
                aiff_path = Path(tmp) / "speech.aiff"
                cmd = ["say", "-o", str(aiff_path)]
                if voice_id:
                    cmd.extend(["-v", voice_id])
                cmd.append(text)
                await _run(cmd, "System TTS")
                await _run(
                    [
                        "afconvert",
                        "-f",
                        "WAVE",
                        "-d",
                        "LEI16",
                        str(aiff_path),
                        str(output_path),
                    ],
                    "Audio conversion",
                )

            elif self.platform == "Linux":
                if shutil.which("espeak") is None:
                    raise RuntimeError(
                        "espeak not found. Install it with: sudo apt-get install espeak"
                    )
                cmd = ["espeak", "-w", str(output_path)]
                if voice_id:
                    cmd.extend(["-v", voice_id])
                cmd.append(text)
                await _run(cmd, "System TTS")

            else:  # Windows
                escaped = text.replace('"', '`"')
                ps_script = (
                    "Add-Type -AssemblyName System.Speech\n"
                    "$speak = New-Object System.Speech.Synthesis.SpeechSynthesizer\n"
                    f'$speak.SetOutputToWaveFile("{output_path}")\n'
                )
                if voice_id:
                    ps_script += f'$speak.SelectVoice("{voice_id}")\n'
                ps_script += f'$speak.Speak("{escaped}")\n$speak.Dispose()'
                await _run(["powershell", "-Command", ps_script], "System TTS")

            audio = output_path.read_bytes()

        logger.debug(f"System TTS produced {len(audio)} bytes")
        return audio

    async def recognize_speech(self, audio: bytes, language: str | None = None) -> str:
        raise RecognitionUnsupportedError(
            "Speech recognition is not available from system TTS"
        )

    async def list_voices(self) -> list[dict]:
        """List available system voices."""
        voices = []

        if self.platform == "Darwin":
            cmd = ["say", "-v", "?"]
        elif self.platform == "Linux":
            cmd = ["espeak", "--voices"]
        else:
            cmd = [
                "powershell",
                "-Command",
                "Add-Type -AssemblyName System.Speech; "
                "(New-Object System.Speech.Synthesis.SpeechSynthesizer)"
                ".GetInstalledVoices() | ForEach-Object { $_.VoiceInfo.Name }",
            ]

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
            stdout, _ = await proc.communicate()
            lines = stdout.decode(errors="replace").strip().splitlines()
        except OSError as e:
            logger.warning(f"Failed to list system voices: {e}")
            lines = []

        if self.platform == "Darwin":
            # Format: "Voice Name     Language  # Description"
            names = [line.split()[0] for line in lines if line.strip()]
        elif self.platform == "Linux":
            # Header first; voice id is the second column
            names = [line.split()[1] for line in lines[1:] if len(line.split()) >= 2]
        else:
            names = [line.strip() for line in lines if line.strip()]

        for voice_name in names:
            voices.append({"id": voice_name, "name": voice_name, "provider": self.name})

        if not voices:
            voices.append(
                {"id": "default", "name": "Default System Voice", "provider": self.name}
            )
        return voices
