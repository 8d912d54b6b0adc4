"""Audio playback package for guidevoice.

Playback runs in a separate pygame worker process so that at most one
clip plays at a time and the host process never blocks on audio.
"""

from .player import PlaybackEngine, WorkerState, default_worker_command

__all__ = ["PlaybackEngine", "WorkerState", "default_worker_command"]
