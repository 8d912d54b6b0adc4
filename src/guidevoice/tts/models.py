"""Speech data models with validation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class VoiceDescriptor:
    """A named voice profile for the remote synthesis provider.

    Args:
        name: Unique voice name, also used as a cache directory
        provider_id: Provider voice identity (reference id); empty for
            voices recovered from the cache only
        language: Lowercase language tag of the voice ("" when unknown)
        is_default: Whether this is the active default voice
    """

    name: str
    provider_id: str = ""
    language: str = ""
    is_default: bool = False

    def __post_init__(self) -> None:
        """Validate voice information."""
        if not self.name or not self.name.strip():
            raise ValueError("name cannot be empty")
        object.__setattr__(self, "language", (self.language or "").strip().lower())

    @classmethod
    def from_entry(cls, name: str, entry: Any) -> "VoiceDescriptor":
        """Build a descriptor from a bare id string or an ``{id, language}`` table."""
        if isinstance(entry, VoiceDescriptor):
            return entry
        if isinstance(entry, str):
            return cls(name=name, provider_id=entry)
        if isinstance(entry, dict):
            return cls(
                name=name,
                provider_id=str(entry.get("id") or entry.get("provider_id") or ""),
                language=str(entry.get("language") or ""),
            )
        raise ValueError(f"Unsupported voice entry for {name!r}: {entry!r}")


@dataclass(frozen=True)
class SpeechResult:
    """Outcome of a speech request.

    Attributes:
        ok: True if audio was delivered
        route: "online", "local" or "skipped"
        path: Cached audio file used for online playback
        cached: True if the audio came from the cache
        error: Failure or skip reason
    """

    ok: bool
    route: str
    path: Path | None = None
    cached: bool = False
    error: str | None = None

    @classmethod
    def skipped(cls, reason: str) -> "SpeechResult":
        return cls(ok=False, route="skipped", error=reason)
