"""Pytest configuration and fixtures for guidevoice tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from guidevoice.config import ConfigHandle, SynthesisConfig

STUB_WORKER = Path(__file__).parent / "stub_worker.py"

# Smallest byte strings that pass the MP3 sniff check
ID3_AUDIO = b"ID3\x04\x00\x00\x00\x00\x00\x00fake-audio"
FRAME_AUDIO = b"\xff\xfb\x90\x64fake-frame"


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point HOME at a temp directory so no test touches the real config or cache.

    Config and cache paths are resolved from HOME at call time; the cached
    default config is dropped so it cannot leak between tests.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "GUIDEVOICE_API_KEY",
        "GUIDEVOICE_ENDPOINT",
        "GUIDEVOICE_CACHE_DIR",
        "GUIDEVOICE_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("guidevoice.config._cached_config", None)
    return home


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "tts_cache"


@pytest.fixture
def online_config(cache_root: Path) -> SynthesisConfig:
    """Enabled config with one English voice."""
    return SynthesisConfig(
        enabled=True,
        api_key="test-key",
        voices={"narrator": {"id": "ref-123", "language": "en"}},
        default_voice="narrator",
        cache_dir=cache_root,
    )


@pytest.fixture
def handle(online_config: SynthesisConfig) -> ConfigHandle:
    return ConfigHandle(online_config)


@pytest.fixture
def stub_worker_command(tmp_path: Path):
    """Build a command for the protocol stub worker.

    Returns a factory taking the stub options and returning
    ``(command, log_path)``.
    """

    def build(*options: str) -> tuple[list[str], Path]:
        log_path = tmp_path / "worker.log"
        log_path.touch()
        return [sys.executable, str(STUB_WORKER), str(log_path), *options], log_path

    return build
