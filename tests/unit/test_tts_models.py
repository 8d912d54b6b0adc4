"""Unit tests for speech data models."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from guidevoice.tts.errors import NetworkError, SpeechError, WorkerError
from guidevoice.tts.models import SpeechResult, VoiceDescriptor


class TestVoiceDescriptor:
    """Test voice descriptor validation and entry conversion."""

    def test_empty_name_rejected(self) -> None:
        """Test voices need a name."""
        with pytest.raises(ValueError, match="name cannot be empty"):
            VoiceDescriptor(name="  ")

    def test_language_lowercased(self) -> None:
        """Test language tags are stored lowercase."""
        assert VoiceDescriptor(name="a", language=" EN ").language == "en"

    def test_from_bare_string(self) -> None:
        """Test a bare id becomes a voice without language."""
        voice = VoiceDescriptor.from_entry("alice", "ref-a")

        assert voice == VoiceDescriptor(name="alice", provider_id="ref-a")

    def test_from_table(self) -> None:
        """Test an {id, language} table."""
        voice = VoiceDescriptor.from_entry("bob", {"id": "ref-b", "language": "zh"})

        assert voice.provider_id == "ref-b"
        assert voice.language == "zh"

    def test_immutable(self) -> None:
        """Test descriptors are frozen."""
        voice = VoiceDescriptor(name="a")

        with pytest.raises(AttributeError):
            voice.name = "b"  # type: ignore[misc]


class TestSpeechResultAndErrors:
    """Test result helpers and the error hierarchy."""

    def test_skipped(self) -> None:
        """Test skipped results carry the reason."""
        result = SpeechResult.skipped("disabled")

        assert not result.ok
        assert result.route == "skipped"
        assert result.error == "disabled"
        assert result.path is None

    def test_error_hierarchy(self) -> None:
        """Test all errors share the SpeechError base."""
        cause = OSError("boom")
        error = NetworkError("failed", 502, cause)

        assert isinstance(error, SpeechError)
        assert error.status_code == 502
        assert error.original_error is cause
        assert isinstance(WorkerError("x"), SpeechError)
