"""Configuration management for guidevoice.

Loads configuration from ~/.config/guidevoice/config.toml.
Priority chain: env vars > config file > defaults.

Runtime changes (voice management, API key, rate) go through a
``ConfigHandle``, which swaps the whole frozen ``SynthesisConfig`` and
notifies subscribers.
"""

import dataclasses
import logging
import os
import sys
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .tts.errors import ConfigurationError
from .tts.models import VoiceDescriptor

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.toml"

DEFAULT_ENDPOINT = "https://api.espai.fun/ai_api/tts"
MIN_RATE = 0.5
MAX_RATE = 5.0
FAILURE_POLICIES = ("skip", "fallback_to_local")

# Boundary field names (as written by the host settings) -> attribute names
_FIELD_ALIASES = {
    "enabled": "enabled",
    "apiKey": "api_key",
    "api_key": "api_key",
    "endpoint": "endpoint",
    "apiEndpoint": "endpoint",
    "voices": "voices",
    "defaultVoice": "default_voice",
    "default_voice": "default_voice",
    "sampleRate": "sample_rate",
    "sample_rate": "sample_rate",
    "volume": "volume",
    "rate": "rate",
    "cacheDir": "cache_dir",
    "cache_dir": "cache_dir",
    "onOnlineFailure": "on_online_failure",
    "on_online_failure": "on_online_failure",
}

DEFAULT_CONFIG = """\
# guidevoice configuration

[synthesis]
# Use the online voice-cloning API instead of the local system voice
enabled = false

# API key for the synthesis service (or set GUIDEVOICE_API_KEY)
api_key = ""

# Voice used when none is requested
default_voice = ""

# Speech rate sent to the service (0.5-5)
rate = 1

# Cache directory; relative paths live under ~/.cache/guidevoice/
cache_dir = "tts_cache"

# What to do when online synthesis fails: "skip" or "fallback_to_local"
on_online_failure = "skip"

[synthesis.voices]
# name = "reference-id"
# name = { id = "reference-id", language = "en" }

[speech]
# Local voice engine used when online synthesis is disabled
engine = "system"
gender = "female"
rate = 1
volume = 100

[playback]
# Seconds before an idle playback worker is shut down
idle_timeout = 300
volume = 1.0
"""


def clamp_rate(value: Any) -> float:
    """Parse a speech rate and clamp it to 0.5-5 (1 if unparseable)."""
    try:
        rate = float(value)
    except (TypeError, ValueError):
        rate = 1.0
    if rate != rate or rate == 0:  # NaN or zero
        rate = 1.0
    return max(MIN_RATE, min(MAX_RATE, rate))


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _normalize_voices(
    voices: Mapping[str, Any] | None, default_voice: str
) -> dict[str, VoiceDescriptor]:
    normalized = {}
    for name, entry in (voices or {}).items():
        voice = VoiceDescriptor.from_entry(name, entry)
        if voice.name != name:
            voice = dataclasses.replace(voice, name=name)
        normalized[name] = dataclasses.replace(
            voice, is_default=(name == default_voice)
        )
    return normalized


@dataclass(frozen=True)
class SynthesisConfig:
    """Online synthesis configuration.

    Voices are always ``VoiceDescriptor`` values; bare id strings and
    ``{id, language}`` tables are converted on construction.
    """

    enabled: bool = False
    api_key: str = ""
    endpoint: str = DEFAULT_ENDPOINT
    voices: dict[str, VoiceDescriptor] = field(default_factory=dict)
    default_voice: str = ""
    sample_rate: int = 24000
    volume: int = 90
    rate: float = 1.0
    cache_dir: Path = Path("tts_cache")
    on_online_failure: str = "skip"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "voices", _normalize_voices(self.voices, self.default_voice)
        )
        object.__setattr__(self, "rate", clamp_rate(self.rate))
        object.__setattr__(self, "cache_dir", Path(self.cache_dir))
        if self.on_online_failure not in FAILURE_POLICIES:
            raise ValueError(
                f"on_online_failure must be one of {FAILURE_POLICIES}, "
                f"got {self.on_online_failure!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SynthesisConfig":
        """Build config from host settings, ignoring unknown fields."""
        return cls(**_boundary_kwargs(data))

    @property
    def available(self) -> bool:
        """True if online synthesis is enabled and has an API key."""
        return self.enabled and bool(self.api_key)

    def resolve_voice(self, name: str | None = None) -> VoiceDescriptor | None:
        """Resolve a voice: the requested one, else the default, else the first."""
        for candidate in (name, self.default_voice):
            if candidate and candidate in self.voices:
                return self.voices[candidate]
        return next(iter(self.voices.values()), None)

    def cache_root(self) -> Path:
        """Absolute cache root directory."""
        cache_dir = self.cache_dir.expanduser()
        if cache_dir.is_absolute():
            return cache_dir
        from .cache import get_cache_dir

        return get_cache_dir() / cache_dir


def _boundary_kwargs(data: Mapping[str, Any] | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for key, value in (data or {}).items():
        attr = _FIELD_ALIASES.get(key)
        if attr is None or value is None:
            continue
        if attr == "enabled":
            value = _as_bool(value)
        elif attr in ("sample_rate", "volume"):
            value = int(value)
        elif attr in ("api_key", "endpoint", "default_voice", "on_online_failure"):
            value = str(value)
        elif attr == "voices":
            value = dict(value)
        kwargs[attr] = value
    return kwargs


@dataclass(frozen=True)
class LocalSpeechConfig:
    """Local (system) voice configuration."""

    engine: str = "system"
    gender: str = "female"
    rate: int = 1
    volume: int = 100


@dataclass(frozen=True)
class PlaybackConfig:
    """Playback worker configuration."""

    idle_timeout: float = 300.0
    volume: float = 1.0


@dataclass(frozen=True)
class GuideVoiceConfig:
    """Top-level guidevoice configuration."""

    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    speech: LocalSpeechConfig = field(default_factory=LocalSpeechConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)


class ConfigHandle:
    """Holder of the current synthesis configuration.

    Every change replaces the whole ``SynthesisConfig`` and then notifies
    subscribers with the new value. Components keep the handle and read
    ``current`` when they need settings.
    """

    def __init__(self, config: SynthesisConfig | None = None) -> None:
        self._config = config or SynthesisConfig()
        self._subscribers: list[Callable[[SynthesisConfig], None]] = []

    @property
    def current(self) -> SynthesisConfig:
        return self._config

    def subscribe(
        self, callback: Callable[[SynthesisConfig], None]
    ) -> Callable[[], None]:
        """Register a change callback.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def replace(self, config: SynthesisConfig) -> SynthesisConfig:
        """Swap in a new configuration and notify subscribers."""
        self._config = config
        for callback in list(self._subscribers):
            callback(config)
        return config

    def update(self, changes: Mapping[str, Any]) -> SynthesisConfig:
        """Apply host setting changes; unknown fields are ignored."""
        kwargs = _boundary_kwargs(changes)
        if not kwargs:
            return self._config
        return self.replace(dataclasses.replace(self._config, **kwargs))

    def add_voice(
        self, name: str, provider_id: str, language: str = ""
    ) -> VoiceDescriptor:
        """Add or replace a voice. The first voice becomes the default."""
        voice = VoiceDescriptor(name=name, provider_id=provider_id, language=language)
        voices = {**self._config.voices, name: voice}
        default_voice = self._config.default_voice
        if len(voices) == 1 or not default_voice:
            default_voice = name
        config = self.replace(
            dataclasses.replace(
                self._config, voices=voices, default_voice=default_voice
            )
        )
        logger.info(f"Voice {name!r} set to {provider_id!r}")
        return config.voices[name]

    def delete_voice(self, name: str) -> bool:
        """Remove a voice.

        Returns:
            False if the voice is unknown or is the active default
        """
        if name not in self._config.voices or name == self._config.default_voice:
            return False
        voices = {k: v for k, v in self._config.voices.items() if k != name}
        self.replace(dataclasses.replace(self._config, voices=voices))
        logger.info(f"Voice {name!r} deleted")
        return True

    def set_default_voice(self, name: str) -> bool:
        """Make a configured voice the default. Returns False if unknown."""
        if name not in self._config.voices:
            return False
        self.replace(dataclasses.replace(self._config, default_voice=name))
        return True

    def set_rate(self, rate: Any) -> float:
        """Set the speech rate, clamped to 0.5-5. Returns the applied rate."""
        return self.replace(
            dataclasses.replace(self._config, rate=clamp_rate(rate))
        ).rate

    def set_api_key(self, api_key: str) -> str:
        self.replace(dataclasses.replace(self._config, api_key=api_key))
        return api_key

    def set_enabled(self, enabled: bool) -> bool:
        return self.replace(
            dataclasses.replace(self._config, enabled=bool(enabled))
        ).enabled

    def merge_detected(self, detected: Mapping[str, VoiceDescriptor]) -> list[str]:
        """Add voices found in the cache. Declared voices always win.

        Returns:
            Names of the voices that were added
        """
        added = [name for name in detected if name not in self._config.voices]
        if added:
            voices = {**self._config.voices, **{n: detected[n] for n in added}}
            self.replace(dataclasses.replace(self._config, voices=voices))
            logger.info(f"Recovered cached voices: {', '.join(added)}")
        return added


_cached_config: GuideVoiceConfig | None = None


def get_config_path() -> Path:
    """Default config file location, resolved against the current home."""
    return Path.home() / ".config" / "guidevoice" / CONFIG_FILE_NAME


def generate_config(path: Path | None = None) -> Path:
    """Generate default config file at ~/.config/guidevoice/config.toml."""
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def parse_config(data: Mapping[str, Any]) -> GuideVoiceConfig:
    """Build configuration from parsed TOML data with env var overrides.

    Raises:
        ValueError: If a value is invalid
    """
    synthesis = dict(data.get("synthesis", {}))
    speech = data.get("speech", {})
    playback = data.get("playback", {})

    # Env vars override config file values
    for env_name, key in (
        ("GUIDEVOICE_API_KEY", "api_key"),
        ("GUIDEVOICE_ENDPOINT", "endpoint"),
        ("GUIDEVOICE_CACHE_DIR", "cache_dir"),
        ("GUIDEVOICE_ENABLED", "enabled"),
    ):
        value = os.getenv(env_name)
        if value:
            synthesis[key] = value

    return GuideVoiceConfig(
        synthesis=SynthesisConfig.from_mapping(synthesis),
        speech=LocalSpeechConfig(
            engine=str(speech.get("engine", "system")),
            gender=str(speech.get("gender", "female")).lower(),
            rate=int(speech.get("rate", 1)),
            volume=int(speech.get("volume", 100)),
        ),
        playback=PlaybackConfig(
            idle_timeout=float(playback.get("idle_timeout", 300)),
            volume=float(playback.get("volume", 1.0)),
        ),
    )


def read_config(path: Path) -> GuideVoiceConfig:
    """Read and validate a config file without generating or exiting.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    try:
        with open(path, "rb") as f:
            return parse_config(tomllib.load(f))
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}", e) from e
    except (tomllib.TOMLDecodeError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid config {path}: {e}", e) from e


def load_config(path: Path | None = None) -> GuideVoiceConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        path: Config file to read (defaults to ~/.config/guidevoice/config.toml)

    Returns:
        Loaded and validated GuideVoiceConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if path is None and _cached_config is not None:
        return _cached_config

    config_path = path or get_config_path()
    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated}, review and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        config = read_config(config_path)
    except ConfigurationError as e:
        print(e, file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from e

    if path is None:
        _cached_config = config
    return config
