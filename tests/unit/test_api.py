"""Unit tests for the library API entry points."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from guidevoice.api import default_config, speak
from guidevoice.config import GuideVoiceConfig, get_config_path
from guidevoice.providers.base import LocalVoice, LocalVoiceEngine


class RecordingEngine(LocalVoiceEngine):
    """Local engine double that records spoken text."""

    def __init__(self) -> None:
        self.spoken: list[str] = []

    async def enumerate_voices(self) -> list[LocalVoice]:
        return [LocalVoice("Samantha", "en_US", "female")]

    async def speak(
        self, text: str, voice_name: str | None, rate: int, volume: int
    ) -> None:
        self.spoken.append(text)

    async def stop(self) -> None:
        pass


class TestDefaultConfig:
    """Test configuration used when callers pass none."""

    def test_config_path_follows_home(self, isolated_home: Path) -> None:
        """Test the default path is resolved against the current home."""
        assert get_config_path() == (
            isolated_home / ".config" / "guidevoice" / "config.toml"
        )

    def test_missing_file_uses_defaults(self) -> None:
        """Test no file is generated and built-in defaults apply."""
        config = default_config()

        assert config == GuideVoiceConfig()
        assert not get_config_path().exists()

    def test_invalid_file_uses_defaults(self) -> None:
        """Test an unreadable config does not end the process."""
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("[synthesis\nenabled = ")

        assert default_config() == GuideVoiceConfig()

    def test_existing_file_is_read(self) -> None:
        """Test a valid config file is used."""
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text('[speech]\ngender = "male"\n')

        assert default_config().speech.gender == "male"


class TestSpeak:
    """Test the one-shot speak function."""

    @pytest.mark.asyncio
    async def test_speak_without_config_file(self) -> None:
        """Test speak returns a result instead of exiting when unconfigured."""
        engine = RecordingEngine()

        with patch(
            "guidevoice.tts.pipeline.EngineRegistry.create", return_value=engine
        ):
            result = await speak("hello")

        assert result.ok
        assert result.route == "local"
        assert engine.spoken == ["hello"]
        assert not get_config_path().exists()
