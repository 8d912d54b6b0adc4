"""Audio rendering worker process.

Run as ``python -m guidevoice.audio.worker``. Reads job lines from stdin,
plays each file to completion with pygame and reports back on stdout.
"""

# ruff: noqa: E402
import os

# Suppress pygame's annoying welcome message BEFORE any pygame import
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

# Suppress pygame's pkg_resources deprecation warning spam
warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import argparse
import logging
import sys
from pathlib import Path

import pygame

from .protocol import DONE, FAIL, QUIT, READY, ProtocolError, decode_job, format_reply

logger = logging.getLogger(__name__)


def _send(data: bytes) -> None:
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def play_file(path: Path) -> None:
    """Play one audio file, blocking until playback finishes.

    Raises:
        RuntimeError: If the file cannot be loaded or played
    """
    try:
        pygame.mixer.music.load(str(path))
        pygame.mixer.music.play()

        clock = pygame.time.Clock()
        while pygame.mixer.music.get_busy():
            clock.tick(10)
    except pygame.error as e:
        raise RuntimeError(f"Failed to play audio: {e}") from e


def run(volume: float) -> int:
    try:
        pygame.mixer.init()
    except pygame.error as e:
        logger.error(f"Failed to initialize pygame audio mixer: {e}")
        return 1
    pygame.mixer.music.set_volume(max(0.0, min(1.0, volume)))

    _send(f"{READY}\n".encode())

    for raw in sys.stdin.buffer:
        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            continue
        if line == QUIT:
            break

        try:
            job_id, path = decode_job(line)
        except ProtocolError as e:
            logger.warning(str(e))
            continue

        try:
            play_file(path)
        except RuntimeError as e:
            logger.warning(f"Job {job_id} failed: {e}")
            _send(format_reply(FAIL, job_id, str(e)))
        else:
            _send(format_reply(DONE, job_id))

    pygame.mixer.quit()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="guidevoice.audio.worker")
    parser.add_argument("--volume", type=float, default=1.0)
    args = parser.parse_args(argv)

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return run(args.volume)


if __name__ == "__main__":
    sys.exit(main())
