"""Speech orchestrator for guidevoice.

Decides how a notification is spoken: through the online voice (synthesis,
cache and the playback worker) or through a local system voice, and turns
every failure into a ``SpeechResult`` instead of an exception.
"""

import asyncio
import logging
from pathlib import Path

from ..audio.player import PlaybackEngine
from ..audio.protocol import ProtocolError
from ..cache.manager import VoiceCache
from ..config import ConfigHandle, LocalSpeechConfig, SynthesisConfig
from ..localization import Localization
from ..providers import EngineRegistry, select_local_voice
from ..providers.base import LocalVoiceEngine
from .client import SynthesisClient
from .errors import ConfigurationError, SpeechError
from .models import SpeechResult, VoiceDescriptor

logger = logging.getLogger(__name__)

ONLINE_TEST_TEXT = "This is an online TTS test"


def _primary_language(language: str | None) -> str:
    return (language or "").replace("_", "-").lower().split("-")[0]


class SpeechOrchestrator:
    """Routes speech requests to the online voice or a local voice.

    Example:
        handle = ConfigHandle(default_config().synthesis)
        orchestrator = SpeechOrchestrator(handle)

        result = await orchestrator.play("Stack on 3rd add", "en")
        # SpeechResult(ok=True, route="online", path=..., cached=False)

        await orchestrator.aclose()
    """

    def __init__(
        self,
        config: ConfigHandle,
        cache: VoiceCache | None = None,
        client: SynthesisClient | None = None,
        player: PlaybackEngine | None = None,
        local_engine: LocalVoiceEngine | None = None,
        localization: Localization | None = None,
        speech: LocalSpeechConfig | None = None,
        detect_cached_voices: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Configuration handle shared with the other components
            cache: Audio cache (defaults to the configured cache directory)
            client: Synthesis client (created from config and cache if omitted)
            player: Playback engine (a pygame worker engine if omitted)
            local_engine: Local voice engine (created from ``speech.engine``
                on first local request if omitted)
            localization: Cross-language lookup for voices in another language
            speech: Local voice settings
            detect_cached_voices: Recover voices found in the cache directory
        """
        self.config = config
        self.cache = cache or VoiceCache(config.current.cache_root())
        self.client = client or SynthesisClient(config, self.cache)
        self.player = player or PlaybackEngine()
        self.local_engine = local_engine
        self.localization = localization
        self.speech = speech or LocalSpeechConfig()

        if detect_cached_voices:
            config.merge_detected(self.cache.detect_existing())
        self._unsubscribe = config.subscribe(self._on_config_change)

    def _on_config_change(self, config: SynthesisConfig) -> None:
        root = config.cache_root()
        if root != self.cache.root:
            logger.info(f"Cache directory changed to {root}")
            self.cache = VoiceCache(root, self.cache.suffix)
            self.client.cache = self.cache

    async def play(
        self,
        text: str,
        language: str | None,
        key: str | None = None,
        dungeon_id: str | None = None,
    ) -> SpeechResult:
        """Speak a notification.

        Args:
            text: Display text
            language: Language of the display text
            key: Localization key of the text, used when the voice speaks
                another language
            dungeon_id: Localization scope of the key

        Returns:
            Outcome of the request; never raises for speech failures
        """
        if not text or not text.strip():
            return SpeechResult.skipped("Text is empty")

        config = self.config.current
        if not config.enabled:
            return await self._speak_local(text, language)

        voice = config.resolve_voice()
        if voice is None:
            return await self._online_failed(
                ConfigurationError("No voices configured"), text, language
            )

        spoken_text, spoken_language = text, language
        mismatch = _primary_language(voice.language) != _primary_language(language)
        if voice.language and mismatch:
            translated = self._translate(voice, key, dungeon_id)
            if translated is None:
                logger.info(
                    f"Skipping speech: no {voice.language!r} text for voice "
                    f"{voice.name!r} (key={key!r}, dungeon={dungeon_id!r})"
                )
                return SpeechResult.skipped(
                    f"No {voice.language} translation for voice {voice.name}"
                )
            spoken_text, spoken_language = translated, voice.language

        try:
            cached = await self.cache.has(
                spoken_text, voice.language or spoken_language, voice.name
            )
            path = await self.client.generate(spoken_text, spoken_language, voice.name)
            await self.player.play(path)
        except (SpeechError, FileNotFoundError, ProtocolError) as e:
            return await self._online_failed(e, text, language)

        return SpeechResult(ok=True, route="online", path=path, cached=cached)

    def _translate(
        self, voice: VoiceDescriptor, key: str | None, dungeon_id: str | None
    ) -> str | None:
        if not key or self.localization is None:
            return None
        translated = self.localization.get_translation(dungeon_id, key, voice.language)
        return translated or None

    async def _online_failed(
        self, error: Exception, text: str, language: str | None
    ) -> SpeechResult:
        policy = self.config.current.on_online_failure
        logger.warning(f"Online speech failed ({policy}): {error}")
        if policy == "fallback_to_local":
            return await self._speak_local(text, language)
        return SpeechResult.skipped(str(error))

    def _get_local_engine(self) -> LocalVoiceEngine:
        if self.local_engine is None:
            self.local_engine = EngineRegistry.create(self.speech.engine)
        return self.local_engine

    async def _speak_local(self, text: str, language: str | None) -> SpeechResult:
        try:
            engine = self._get_local_engine()
        except (KeyError, RuntimeError) as e:
            logger.error(f"Local voice engine unavailable: {e}")
            return SpeechResult(ok=False, route="local", error=str(e))

        voices = await engine.enumerate_voices()
        voice = select_local_voice(voices, language, self.speech.gender)
        voice_name = voice.name if voice else None
        logger.debug(f"Speaking locally with voice {voice_name or 'default'}")

        try:
            await engine.speak(text, voice_name, self.speech.rate, self.speech.volume)
        except RuntimeError as e:
            logger.error(f"Local speech failed: {e}")
            return SpeechResult(ok=False, route="local", error=str(e))
        return SpeechResult(ok=True, route="local")

    async def generate(
        self, text: str, language: str | None, voice_name: str | None = None
    ) -> SpeechResult:
        """Synthesize and cache text without playing it."""
        try:
            voice = self.config.current.resolve_voice(voice_name)
            cached = voice is not None and await self.cache.has(
                text, voice.language or language, voice.name
            )
            path = await self.client.generate(text, language, voice_name)
        except SpeechError as e:
            logger.warning(f"Generation failed: {e}")
            return SpeechResult(ok=False, route="online", error=str(e))
        return SpeechResult(ok=True, route="online", path=path, cached=cached)

    async def test(
        self, text: str = ONLINE_TEST_TEXT, voice_name: str | None = None
    ) -> bool:
        """Check the online voice end to end by generating and playing text.

        Returns:
            False if online synthesis is unavailable or any step fails
        """
        if not self.config.current.available:
            logger.info("Online synthesis test skipped: not enabled or no API key")
            return False
        try:
            path = await self.client.generate(text, None, voice_name)
            await self.play_file(path)
        except (SpeechError, FileNotFoundError, ProtocolError) as e:
            logger.error(f"Online synthesis test failed: {e}")
            return False
        return True

    async def play_file(self, path: Path) -> None:
        await self.player.play(path)

    async def delete_voice(self, name: str) -> bool:
        """Delete a non-default voice and its cached audio."""
        if not self.config.delete_voice(name):
            return False
        removed = await asyncio.to_thread(self.cache.purge_voice, name)
        logger.info(f"Removed {removed} cache directories of voice {name!r}")
        return True

    async def stop(self) -> None:
        """Stop online playback and local speech immediately."""
        await self.player.stop()
        if self.local_engine is not None:
            await self.local_engine.stop()

    async def aclose(self) -> None:
        """Release the HTTP client and the playback worker."""
        self._unsubscribe()
        await self.client.aclose()
        await self.player.close()
