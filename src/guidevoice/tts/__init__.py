"""Speech synthesis package for guidevoice.

The client and orchestrator live in ``guidevoice.tts.client`` and
``guidevoice.tts.pipeline``; this package exposes the shared errors and
data models.
"""

from .errors import (
    CacheIOError,
    ConfigurationError,
    NetworkError,
    SpeechError,
    ValidationError,
    WorkerError,
)
from .models import SpeechResult, VoiceDescriptor

__all__ = [
    "CacheIOError",
    "ConfigurationError",
    "NetworkError",
    "SpeechError",
    "SpeechResult",
    "ValidationError",
    "VoiceDescriptor",
    "WorkerError",
]
