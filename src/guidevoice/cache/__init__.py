"""Audio cache for guidevoice synthesized speech."""

from pathlib import Path

from .manager import VoiceCache, text_to_cache_key

__all__ = ["VoiceCache", "get_cache_dir", "text_to_cache_key"]


def get_cache_dir() -> Path:
    """Get or create the guidevoice cache directory.

    Creates ~/.cache/guidevoice/ if it doesn't exist.

    Returns:
        Path to the cache directory
    """
    cache_dir = Path.home() / ".cache" / "guidevoice"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir
