"""Client for the online voice-cloning synthesis API."""

import logging
import re
from pathlib import Path

import httpx

from ..cache.manager import VoiceCache
from ..config import ConfigHandle, SynthesisConfig
from ..text.normalizer import normalize
from .errors import ConfigurationError, NetworkError, ValidationError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0

_PLACEHOLDER = re.compile(r"\{[^}]*\}")


def is_audio(data: bytes) -> bool:
    """Return True if data starts like an MP3 stream (ID3 tag or frame sync)."""
    if data[:3] == b"ID3":
        return True
    return len(data) >= 2 and data[0] == 0xFF and (data[1] & 0xE0) == 0xE0


class SynthesisClient:
    """Turns text into a cached audio file using the configured voice.

    Audio is stored under the original text; the normalized text is what
    is sent to the service. A cache hit never touches the network.

    Example:
        client = SynthesisClient(handle, VoiceCache(root))
        path = await client.generate("Stack 3rd", "en")
        await client.aclose()
    """

    def __init__(
        self,
        config: ConfigHandle,
        cache: VoiceCache,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Configuration handle, read on every request
            cache: Audio cache
            http_client: Optional client to use instead of an owned one
        """
        self.config = config
        self.cache = cache
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    async def generate(
        self, text: str, language: str | None, voice_name: str | None = None
    ) -> Path:
        """Return a cached audio file for text, synthesizing it if missing.

        Args:
            text: Text to speak (also the cache key)
            language: Language of the text
            voice_name: Voice to use (defaults to the configured default)

        Returns:
            Path of the audio file

        Raises:
            ConfigurationError: If synthesis is disabled or misconfigured
            ValidationError: If the text or the returned audio is invalid
            NetworkError: If the request fails
            CacheIOError: If the audio cannot be written
        """
        config = self.config.current
        if not config.enabled:
            raise ConfigurationError("Online synthesis is disabled")
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        voice = config.resolve_voice(voice_name)
        if voice is None:
            raise ConfigurationError("No voices configured")
        if _PLACEHOLDER.search(text):
            raise ValidationError(f"Text contains unresolved placeholders: {text!r}")

        cache_language = voice.language or language
        path = self.cache.resolve_path(text, cache_language, voice.name)
        if await self.cache.has(text, cache_language, voice.name):
            logger.debug(f"Cache hit for voice {voice.name!r}: {path}")
            return path

        if not config.api_key:
            raise ConfigurationError("API key not configured")
        if not voice.provider_id:
            raise ConfigurationError(
                f"Voice {voice.name!r} has no provider id (recovered from cache only)"
            )

        spoken = normalize(text, cache_language)
        audio = await self.fetch(spoken, voice.provider_id, config)
        return await self.cache.store(text, cache_language, voice.name, audio)

    async def fetch(
        self,
        text: str,
        provider_id: str,
        config: SynthesisConfig | None = None,
    ) -> bytes:
        """POST text to the synthesis service and return validated audio.

        Raises:
            NetworkError: On timeout, connection failure or non-200 status
            ValidationError: If the body is not audio
        """
        config = config or self.config.current
        payload = {
            "text": text,
            "reference_id": provider_id,
            "api_key": config.api_key,
            "sample_rate": config.sample_rate,
            "volume": config.volume,
            "rate": config.rate,
        }
        headers = {"Accept": "audio/mpeg", "Cache-Control": "no-cache"}

        logger.debug(
            f"Requesting synthesis of {len(text)} chars from {config.endpoint}"
        )
        try:
            response = await self._http.post(
                config.endpoint, json=payload, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Request timed out after {REQUEST_TIMEOUT}s", None, e
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request failed: {e}", None, e) from e

        if response.status_code != 200:
            raise NetworkError(
                f"Synthesis failed with status {response.status_code}",
                response.status_code,
            )

        audio = response.content
        if not is_audio(audio):
            raise ValidationError(
                f"Response is not audio ({len(audio)} bytes, starts {audio[:8]!r})"
            )
        return audio

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()
