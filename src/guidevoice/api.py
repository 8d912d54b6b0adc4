"""High-level API for guidevoice library usage."""

import logging

from .audio.player import PlaybackEngine
from .config import ConfigHandle, GuideVoiceConfig, get_config_path, read_config
from .localization import Localization
from .tts.errors import ConfigurationError
from .tts.models import SpeechResult
from .tts.pipeline import SpeechOrchestrator

logger = logging.getLogger(__name__)


def default_config() -> GuideVoiceConfig:
    """Configuration for library callers that pass none.

    Reads ~/.config/guidevoice/config.toml when it exists. A missing or
    invalid file falls back to the built-in defaults, which speak with the
    local voice only. Generating the file is left to the CLI.
    """
    path = get_config_path()
    if not path.exists():
        logger.debug(f"No config at {path}, using defaults")
        return GuideVoiceConfig()
    try:
        return read_config(path)
    except ConfigurationError as e:
        logger.warning(f"{e}; using defaults")
        return GuideVoiceConfig()


def create_orchestrator(
    config: GuideVoiceConfig | None = None,
    localization: Localization | None = None,
) -> SpeechOrchestrator:
    """Build an orchestrator wired from configuration.

    Args:
        config: Configuration (``default_config()`` if omitted)
        localization: Optional cross-language lookup

    Returns:
        Orchestrator owning its HTTP client and playback worker; call
        ``aclose()`` when done
    """
    config = config or default_config()
    return SpeechOrchestrator(
        ConfigHandle(config.synthesis),
        player=PlaybackEngine(
            idle_timeout=config.playback.idle_timeout,
            volume=config.playback.volume,
        ),
        localization=localization,
        speech=config.speech,
    )


async def speak(
    text: str,
    language: str = "en",
    key: str | None = None,
    dungeon_id: str | None = None,
    config: GuideVoiceConfig | None = None,
) -> SpeechResult:
    """Speak text once and release all resources.

    Args:
        text: Text to speak
        language: Language of the text
        key: Localization key, used when the voice speaks another language
        dungeon_id: Localization scope of the key
        config: Configuration (``default_config()`` if omitted)

    Returns:
        SpeechResult describing what happened
    """
    orchestrator = create_orchestrator(config)
    try:
        return await orchestrator.play(text, language, key=key, dungeon_id=dungeon_id)
    finally:
        await orchestrator.aclose()
