"""Local voice engine using native OS text-to-speech commands.

Speaks through the built-in TTS of the operating system (say on macOS,
espeak on Linux, SAPI on Windows).
"""

import asyncio
import contextlib
import logging
import platform
import re

from .base import LocalVoice, LocalVoiceEngine, clamp_local

logger = logging.getLogger(__name__)

# "Alex                en_US    # Most people recognize me by my voice."
_SAY_VOICE = re.compile(r"^(?P<name>.+?)\s{2,}(?P<language>[A-Za-z]{2,3}[_-]\w+)\s")
_GENDERS = {"m": "male", "f": "female", "male": "male", "female": "female"}

# Words per minute at rate 0 and per rate step
_BASE_WPM = 175
_WPM_STEP = 15


def _ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string."""
    return "'" + value.replace("'", "''") + "'"


class SystemVoiceEngine(LocalVoiceEngine):
    """Local voice engine using native OS commands.

    Note: Audio quality will be robotic compared to the online voices.
    """

    def __init__(self) -> None:
        """Detect platform.

        Raises:
            RuntimeError: If the platform has no supported speech command
        """
        self.platform = platform.system()
        if self.platform not in ["Darwin", "Linux", "Windows"]:
            raise RuntimeError(f"Unsupported platform: {self.platform}")
        self._process: asyncio.subprocess.Process | None = None

    async def _run(self, cmd: list[str]) -> str:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise RuntimeError(
                f"{cmd[0]} failed with code {proc.returncode}: {stderr.decode()}"
            )
        return stdout.decode(errors="replace")

    async def enumerate_voices(self) -> list[LocalVoice]:
        """List installed system voices.

        Returns an empty list if the speech command is missing or fails.
        """
        try:
            if self.platform == "Darwin":
                return self._parse_say(await self._run(["say", "-v", "?"]))
            if self.platform == "Linux":
                return self._parse_espeak(await self._run(["espeak", "--voices"]))
            return self._parse_sapi(
                await self._run(["powershell", "-Command", self._sapi_list_script()])
            )
        except (OSError, RuntimeError) as e:
            logger.warning(f"Failed to list system voices: {e}")
            return []

    @staticmethod
    def _parse_say(output: str) -> list[LocalVoice]:
        voices = []
        for line in output.splitlines():
            match = _SAY_VOICE.match(line)
            if match:
                voices.append(
                    LocalVoice(
                        name=match.group("name").strip(),
                        language=match.group("language"),
                    )
                )
        return voices

    @staticmethod
    def _parse_espeak(output: str) -> list[LocalVoice]:
        # Columns: Pty Language Age/Gender VoiceName File Other
        voices = []
        for line in output.splitlines()[1:]:
            parts = line.split()
            if len(parts) >= 4:
                gender = parts[2].rsplit("/", 1)[-1].lower()
                voices.append(
                    LocalVoice(
                        name=parts[3],
                        language=parts[1],
                        gender=_GENDERS.get(gender, ""),
                    )
                )
        return voices

    @staticmethod
    def _parse_sapi(output: str) -> list[LocalVoice]:
        voices = []
        for line in output.splitlines():
            parts = line.strip().split("|")
            if len(parts) == 3 and parts[0]:
                voices.append(
                    LocalVoice(
                        name=parts[0],
                        language=parts[1],
                        gender=_GENDERS.get(parts[2].lower(), ""),
                    )
                )
        return voices

    @staticmethod
    def _sapi_list_script() -> str:
        return """
        Add-Type -AssemblyName System.Speech
        $speak = New-Object System.Speech.Synthesis.SpeechSynthesizer
        $speak.GetInstalledVoices() | ForEach-Object {
            $info = $_.VoiceInfo
            "$($info.Name)|$($info.Culture.Name)|$($info.Gender)"
        }
        """

    def _speak_command(
        self, text: str, voice_name: str | None, rate: int, volume: int
    ) -> list[str]:
        wpm = str(_BASE_WPM + rate * _WPM_STEP)
        if self.platform == "Darwin":
            cmd = ["say", "-r", wpm]
            if voice_name:
                cmd.extend(["-v", voice_name])
            return [*cmd, text]

        if self.platform == "Linux":
            # espeak amplitude runs 0-200
            cmd = ["espeak", "-s", wpm, "-a", str(volume * 2)]
            if voice_name:
                cmd.extend(["-v", voice_name])
            return [*cmd, text]

        ps_script = (
            "Add-Type -AssemblyName System.Speech\n"
            "$speak = New-Object System.Speech.Synthesis.SpeechSynthesizer\n"
            f"$speak.Rate = {rate}\n"
            f"$speak.Volume = {volume}\n"
        )
        if voice_name:
            ps_script += f"$speak.SelectVoice({_ps_quote(voice_name)})\n"
        ps_script += f"$speak.Speak({_ps_quote(text)})\n$speak.Dispose()"
        return ["powershell", "-Command", ps_script]

    async def speak(
        self, text: str, voice_name: str | None, rate: int = 0, volume: int = 100
    ) -> None:
        """Speak text through the OS speech command.

        Raises:
            RuntimeError: If the command is missing or fails
        """
        rate, volume = clamp_local(rate, volume)
        cmd = self._speak_command(text, voice_name, rate, volume)

        await self.stop()
        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise RuntimeError(f"System speech command unavailable: {e}") from e

        process = self._process
        _, stderr = await process.communicate()
        if self._process is process:
            self._process = None
        # Negative return codes mean the process was stopped by a signal
        if process.returncode and process.returncode > 0:
            raise RuntimeError(
                f"System TTS failed with code {process.returncode}: {stderr.decode()}"
            )

    async def stop(self) -> None:
        process, self._process = self._process, None
        if process is not None and process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
            await process.wait()
