"""Typer CLI definition for guidevoice."""

import asyncio
import logging
import sys
from pathlib import Path

import typer

from .api import create_orchestrator
from .cache.manager import VoiceCache
from .config import GuideVoiceConfig, generate_config, get_config_path, load_config
from .providers import EngineRegistry
from .text.normalizer import normalize as normalize_text
from .tts.models import SpeechResult

app = typer.Typer(help="Speak notifications with cloned online voices")


class CliState:
    debug: bool = False
    config_path: Path | None = None


state = CliState()


def _load() -> GuideVoiceConfig:
    return load_config(state.config_path)


def _fail(message: str, error: Exception | None = None) -> typer.Exit:
    if state.debug and error is not None:
        typer.echo(f"Debug - {message}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def read_text(text: str | None, file: Path | None) -> str:
    """Return text from the argument, a file, or stdin (in priority order).

    Raises:
        ValueError: If no text is provided
    """
    if text is None and file is not None:
        text = file.read_text()
    elif text is None and not sys.stdin.isatty():
        text = sys.stdin.read()
    if text is None or not text.strip():
        raise ValueError("No text provided")
    return text.strip()


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and cache activity"
    ),
    config: Path | None = typer.Option(
        None,
        "-c",
        "--config",
        help="Config file (default ~/.config/guidevoice/config.toml)",
    ),
) -> None:
    """Speak notifications with cloned online voices."""
    state.debug = debug
    state.config_path = config
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def say(
    text: str | None = typer.Argument(None, help="Text to speak"),
    file: Path | None = typer.Option(None, "-f", "--file", help="Read text from file"),
    language: str = typer.Option("en", "-l", "--language", help="Language of the text"),
    key: str | None = typer.Option(None, "--key", help="Localization key of the text"),
    dungeon: str | None = typer.Option(
        None, "--dungeon", help="Localization scope of the key"
    ),
    catalog: Path | None = typer.Option(
        None, "--catalog", help="JSON translation catalog for cross-language voices"
    ),
) -> None:
    """Speak text with the configured voice."""
    try:
        text = read_text(text, file)
    except (OSError, UnicodeDecodeError) as e:
        raise _fail(f"Unable to read {file}", e) from None
    except ValueError as e:
        raise _fail(str(e), e) from None

    config = _load()
    localization = None
    if catalog is not None:
        from .localization import CatalogLocalization

        try:
            localization = CatalogLocalization.from_json(catalog)
        except (OSError, ValueError) as e:
            raise _fail(f"Unable to load catalog {catalog}", e) from None

    async def run() -> SpeechResult:
        orchestrator = create_orchestrator(config, localization)
        try:
            return await orchestrator.play(text, language, key=key, dungeon_id=dungeon)
        finally:
            await orchestrator.aclose()

    result = asyncio.run(run())
    if not result.ok:
        raise _fail(f"Speech {result.route}: {result.error}")
    if state.debug:
        detail = f" ({result.path}, cached={result.cached})" if result.path else ""
        typer.echo(f"Spoke via {result.route}{detail}", err=True)


@app.command()
def test(
    text: str = typer.Option(
        "This is an online TTS test", "-t", "--text", help="Text to speak"
    ),
    voice: str | None = typer.Option(None, "-v", "--voice", help="Voice name"),
) -> None:
    """Check the online voice end to end."""
    config = _load()

    async def run() -> bool:
        orchestrator = create_orchestrator(config)
        try:
            return await orchestrator.test(text, voice)
        finally:
            await orchestrator.aclose()

    if not asyncio.run(run()):
        raise _fail("Online synthesis test failed (see log with --debug)")
    typer.echo("✓ Online synthesis works")


@app.command()
def voices() -> None:
    """List configured voices and voices recovered from the cache."""
    config = _load().synthesis
    detected = VoiceCache(config.cache_root()).detect_existing()

    if not config.voices and not detected:
        typer.echo("No voices configured")
        return
    for voice in config.voices.values():
        marker = "*" if voice.is_default else " "
        language = voice.language or "-"
        typer.echo(f"{marker} {voice.name}\t{language}\t{voice.provider_id}")
    for name, voice in detected.items():
        if name not in config.voices:
            typer.echo(f"  {name}\t{voice.language or '-'}\t(cache only)")


@app.command("local-voices")
def local_voices() -> None:
    """List voices installed for local speech."""
    config = _load()
    try:
        engine = EngineRegistry.create(config.speech.engine)
    except (KeyError, RuntimeError) as e:
        raise _fail(str(e), e) from None

    found = asyncio.run(engine.enumerate_voices())
    if not found:
        typer.echo("No local voices found")
        return
    for voice in found:
        typer.echo(f"{voice.name}\t{voice.language or '-'}\t{voice.gender or '-'}")


@app.command()
def normalize(
    text: str = typer.Argument(..., help="Text to normalize"),
    language: str = typer.Option("en", "-l", "--language", help="Language of the text"),
) -> None:
    """Show the text that would be sent for synthesis."""
    typer.echo(normalize_text(text, language))


@app.command("cache-path")
def cache_path(
    text: str = typer.Argument(..., help="Source text"),
    language: str = typer.Option("en", "-l", "--language", help="Language of the text"),
    voice: str | None = typer.Option(None, "-v", "--voice", help="Voice name"),
) -> None:
    """Show where the audio for text is cached."""
    config = _load().synthesis
    resolved = config.resolve_voice(voice)
    if resolved is None:
        raise _fail("No voices configured")
    cache = VoiceCache(config.cache_root())
    path = cache.resolve_path(text, resolved.language or language, resolved.name)
    status = "cached" if path.is_file() else "missing"
    typer.echo(f"{path} ({status})")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default config file."""
    path = state.config_path or get_config_path()
    if path.exists() and not force:
        raise _fail(f"{path} already exists (use --force to overwrite)")
    typer.echo(f"Config written to {generate_config(path)}")
