"""Abstract base class for local (offline) voice engines.

Local engines speak text directly through the operating system and are
used when online synthesis is disabled.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

MAX_LOCAL_RATE = 10
MAX_LOCAL_VOLUME = 100


@dataclass(frozen=True)
class LocalVoice:
    """An installed voice.

    Args:
        name: Voice name understood by the engine
        language: Language tag as reported by the engine ("" when unknown)
        gender: "male", "female" or "" when unknown
    """

    name: str
    language: str = ""
    gender: str = ""


class LocalVoiceEngine(ABC):
    """Abstract base class for local voice engines."""

    @abstractmethod
    async def enumerate_voices(self) -> list[LocalVoice]:
        """Return voices installed on this machine."""
        pass

    @abstractmethod
    async def speak(
        self, text: str, voice_name: str | None, rate: int, volume: int
    ) -> None:
        """Speak text and wait until it has been spoken.

        Args:
            text: Text to speak
            voice_name: Installed voice name (None uses the engine default)
            rate: Speech rate, -10 to 10
            volume: Volume, 0 to 100

        Raises:
            RuntimeError: If speaking fails
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Interrupt any speech in progress."""
        pass


def clamp_local(rate: int, volume: int) -> tuple[int, int]:
    """Clamp rate to -10..10 and volume to 0..100."""
    rate = max(-MAX_LOCAL_RATE, min(MAX_LOCAL_RATE, int(rate)))
    volume = max(0, min(MAX_LOCAL_VOLUME, int(volume)))
    return rate, volume


def _matches_language(voice: LocalVoice, language: str) -> bool:
    tag = voice.language.replace("_", "-").lower()
    return bool(tag) and tag.split("-")[0] == language.split("-")[0]


def select_local_voice(
    voices: list[LocalVoice], language: str | None, gender: str
) -> LocalVoice | None:
    """Pick an installed voice for the display language and preferred gender.

    Voices speaking the language are preferred. Within them the configured
    gender wins, then the opposite gender. Returns None to let the engine
    use its default voice.
    """
    language = (language or "").replace("_", "-").lower()
    matching = [v for v in voices if language and _matches_language(v, language)]
    pool = matching or voices

    gender = gender.lower()
    opposite = "male" if gender == "female" else "female"
    for wanted in (gender, opposite):
        for voice in pool:
            if voice.gender == wanted:
                return voice
    return matching[0] if matching else None
