"""Unit tests for the audio file cache."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from guidevoice.cache.manager import VoiceCache, text_to_cache_key
from guidevoice.tts.errors import CacheIOError


class TestCacheKey:
    """Test text to cache key sanitization."""

    def test_punctuation_removed_and_spaces_joined(self) -> None:
        """Test punctuation is dropped and whitespace becomes underscores."""
        assert text_to_cache_key("Stack on me!") == "Stack_on_me"
        assert text_to_cache_key("Hello, world.") == "Hello_world"

    def test_unsafe_characters_replaced(self) -> None:
        """Test path separators cannot escape the voice directory."""
        assert text_to_cache_key("left/right") == "left_right"
        assert text_to_cache_key("a\\b*c") == "a_b_c"

    def test_length_capped(self) -> None:
        """Test keys are capped at 100 characters."""
        assert len(text_to_cache_key("a" * 300)) == 100

    def test_placeholder_for_empty_result(self) -> None:
        """Test text with nothing usable maps to the placeholder key."""
        assert text_to_cache_key("   ") == "tts_audio"
        assert text_to_cache_key("?!.") == "tts_audio"

    def test_collisions_are_expected(self) -> None:
        """Test texts differing only in punctuation share a key."""
        assert text_to_cache_key("Run!") == text_to_cache_key("Run.")


class TestResolvePath:
    """Test cache path layout."""

    def test_layout(self, cache_root: Path) -> None:
        """Test root/language/voice/key.mp3 layout."""
        cache = VoiceCache(cache_root)

        path = cache.resolve_path("Stack on me!", "EN", "narrator")

        assert path == cache_root / "en" / "narrator" / "Stack_on_me.mp3"

    def test_missing_language_uses_default_dir(self, cache_root: Path) -> None:
        """Test voices without a language live under "default"."""
        cache = VoiceCache(cache_root)

        assert cache.resolve_path("hi", None, "v").parent.parent.name == "default"

    def test_deterministic_without_io(self, cache_root: Path) -> None:
        """Test the same input yields the same path and creates nothing."""
        cache = VoiceCache(cache_root)

        first = cache.resolve_path("Run", "en", "v")
        second = cache.resolve_path("Run", "en", "v")

        assert first == second
        assert not cache_root.exists()


class TestStore:
    """Test writing and checking cached audio."""

    @pytest.mark.asyncio
    async def test_store_then_has(self, cache_root: Path) -> None:
        """Test stored audio is found afterwards."""
        cache = VoiceCache(cache_root)
        assert not await cache.has("Run", "en", "v")

        path = await cache.store("Run", "en", "v", b"ID3data")

        assert path.read_bytes() == b"ID3data"
        assert await cache.has("Run", "en", "v")

    @pytest.mark.asyncio
    async def test_store_overwrites(self, cache_root: Path) -> None:
        """Test storing twice replaces the file without error."""
        cache = VoiceCache(cache_root)

        await cache.store("Run", "en", "v", b"old")
        path = await cache.store("Run", "en", "v", b"new")

        assert path.read_bytes() == b"new"
        assert list(path.parent.iterdir()) == [path]

    @pytest.mark.asyncio
    async def test_write_failure_raises_cache_io_error(self, tmp_path: Path) -> None:
        """Test an unwritable root raises CacheIOError."""
        root = tmp_path / "not-a-dir"
        root.write_bytes(b"")
        cache = VoiceCache(root)

        with pytest.raises(CacheIOError, match="Failed to save audio file"):
            await cache.store("Run", "en", "v", b"ID3data")


class TestDetectAndPurge:
    """Test voice recovery from and removal of cache directories."""

    def test_detect_existing(self, cache_root: Path) -> None:
        """Test language/voice directories become partial descriptors."""
        (cache_root / "en" / "alice").mkdir(parents=True)
        (cache_root / "default" / "bob").mkdir(parents=True)
        (cache_root / "stray.txt").parent.mkdir(parents=True, exist_ok=True)
        (cache_root / "stray.txt").write_text("x")

        detected = VoiceCache(cache_root).detect_existing()

        assert set(detected) == {"alice", "bob"}
        assert detected["alice"].language == "en"
        assert detected["alice"].provider_id == ""
        assert detected["bob"].language == ""

    def test_detect_missing_root(self, cache_root: Path) -> None:
        """Test a missing cache root detects nothing."""
        assert VoiceCache(cache_root).detect_existing() == {}

    def test_purge_voice_across_languages(self, cache_root: Path) -> None:
        """Test all directories of a voice are deleted."""
        for language in ("en", "zh"):
            (cache_root / language / "alice").mkdir(parents=True)
        (cache_root / "en" / "bob").mkdir(parents=True)

        removed = VoiceCache(cache_root).purge_voice("alice")

        assert removed == 2
        assert not (cache_root / "en" / "alice").exists()
        assert (cache_root / "en" / "bob").exists()
