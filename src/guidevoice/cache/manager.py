"""Content-addressed audio cache for synthesized speech.

Audio files live at ``<root>/<language>/<voice>/<key>.mp3`` where the key is
a sanitized form of the text. File existence is the only index: a present
file is a cache hit. Changing this layout orphans existing files.
"""

import asyncio
import contextlib
import logging
import os
import re
import shutil
import uuid
from pathlib import Path

from ..tts.errors import CacheIOError
from ..tts.models import VoiceDescriptor

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".mp3"
DEFAULT_LANGUAGE_DIR = "default"
MAX_KEY_LENGTH = 100
PLACEHOLDER_KEY = "tts_audio"

_PUNCTUATION = re.compile(r"[.,!?;:，。！？；：、\"“”'‘’()（）【】\[\]]")
_UNSAFE = re.compile(r'[\\/:*?"<>|]')
_SPACES = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")


def text_to_cache_key(text: str, max_length: int = MAX_KEY_LENGTH) -> str:
    """Convert text to a filesystem-safe cache key.

    Punctuation is stripped, path-unsafe characters and whitespace become
    underscores and the result is capped at ``max_length``. Different texts
    may map to the same key; they then share one cache file.

    Args:
        text: Source text
        max_length: Maximum key length

    Returns:
        Cache key, or "tts_audio" if nothing usable remains
    """
    key = _PUNCTUATION.sub("", (text or "").strip())
    key = _UNSAFE.sub("_", key)
    key = _SPACES.sub("_", key)
    key = _UNDERSCORES.sub("_", key).strip("_")
    return key[:max_length] or PLACEHOLDER_KEY


def _path_segment(value: str, fallback: str) -> str:
    segment = _UNSAFE.sub("_", (value or "").strip())
    if segment in ("", ".", ".."):
        return fallback
    return segment


class VoiceCache:
    """Filesystem cache mapping (text, language, voice) to an audio file.

    Example:
        cache = VoiceCache(Path("~/.cache/guidevoice/tts_cache").expanduser())

        path = cache.resolve_path("Stack 3rd", "en", "narrator")
        if not await cache.has("Stack 3rd", "en", "narrator"):
            audio = await fetch_audio(...)
            path = await cache.store("Stack 3rd", "en", "narrator", audio)
    """

    def __init__(self, root: Path, suffix: str = CACHE_SUFFIX) -> None:
        """Initialize cache at the given root directory.

        Args:
            root: Cache root directory (created lazily on first store)
            suffix: Audio file suffix
        """
        self.root = Path(root)
        self.suffix = suffix

    def voice_dir(self, language: str | None, voice_name: str) -> Path:
        """Return the directory holding audio for one language/voice pair."""
        language_dir = _path_segment((language or "").lower(), DEFAULT_LANGUAGE_DIR)
        return self.root / language_dir / _path_segment(voice_name, PLACEHOLDER_KEY)

    def resolve_path(self, text: str, language: str | None, voice_name: str) -> Path:
        """Return the cache file path for text spoken by a voice.

        Pure path construction; nothing is touched on disk.
        """
        return self.voice_dir(language, voice_name) / (
            text_to_cache_key(text) + self.suffix
        )

    async def has(self, text: str, language: str | None, voice_name: str) -> bool:
        """Check whether audio for this text is already cached."""
        path = self.resolve_path(text, language, voice_name)
        return await asyncio.to_thread(path.is_file)

    async def store(
        self, text: str, language: str | None, voice_name: str, audio_bytes: bytes
    ) -> Path:
        """Write audio for this text into the cache, replacing any existing file.

        Returns:
            Path of the cached file

        Raises:
            CacheIOError: If the file cannot be written
        """
        path = self.resolve_path(text, language, voice_name)
        await asyncio.to_thread(self._write, path, audio_bytes)
        logger.debug(f"Cached {len(audio_bytes)} bytes at {path}")
        return path

    def _write(self, path: Path, audio_bytes: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # The directory may still be usable (e.g. created concurrently)
            logger.warning(f"Failed to create cache directory {path.parent}: {e}")

        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.part")
        try:
            tmp_path.write_bytes(audio_bytes)
            os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise CacheIOError(f"Failed to save audio file {path}: {e}", e) from e

    def detect_existing(self) -> dict[str, VoiceDescriptor]:
        """Find voices that have cached audio on disk.

        Scans ``<root>/<language>/<voice>/`` directories and returns a
        descriptor with an empty provider id for every voice found, so cached
        audio stays playable when the voice is missing from configuration.

        Returns:
            Mapping of voice name to inferred descriptor
        """
        detected: dict[str, VoiceDescriptor] = {}
        if not self.root.is_dir():
            return detected

        for language_dir in sorted(self.root.iterdir()):
            if not language_dir.is_dir():
                continue
            language = (
                "" if language_dir.name == DEFAULT_LANGUAGE_DIR else language_dir.name
            )
            for voice_dir in sorted(language_dir.iterdir()):
                if voice_dir.is_dir() and voice_dir.name not in detected:
                    detected[voice_dir.name] = VoiceDescriptor(
                        name=voice_dir.name, language=language
                    )

        if detected:
            logger.debug(f"Detected cached voices: {', '.join(detected)}")
        return detected

    def purge_voice(self, voice_name: str) -> int:
        """Delete all cached audio of a voice across languages.

        Returns:
            Number of voice directories removed
        """
        removed = 0
        if not self.root.is_dir():
            return removed

        segment = _path_segment(voice_name, PLACEHOLDER_KEY)
        for language_dir in self.root.iterdir():
            voice_dir = language_dir / segment
            if voice_dir.is_dir():
                try:
                    shutil.rmtree(voice_dir)
                    removed += 1
                except OSError as e:
                    logger.error(f"Failed to delete voice cache {voice_dir}: {e}")
        return removed
