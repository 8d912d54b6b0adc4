"""Local voice engines.

This module provides a registry pattern for managing local voice engines,
allowing runtime selection by name from configuration.
"""

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .base import LocalVoiceEngine

from .base import LocalVoice, select_local_voice
from .system import SystemVoiceEngine

__all__ = ["EngineRegistry", "LocalVoice", "select_local_voice"]


class EngineRegistry:
    """Registry for managing local voice engines."""

    _engines: ClassVar[dict[str, type["LocalVoiceEngine"]]] = {}

    @classmethod
    def register(cls, name: str, engine_class: type["LocalVoiceEngine"]) -> None:
        """Register a local voice engine.

        Args:
            name: Name to register the engine under
            engine_class: Class that implements LocalVoiceEngine
        """
        cls._engines[name] = engine_class

    @classmethod
    def get(cls, name: str) -> type["LocalVoiceEngine"]:
        """Get an engine class by name.

        Raises:
            KeyError: If engine name not found
        """
        if name not in cls._engines:
            available = ", ".join(cls._engines.keys()) if cls._engines else "none"
            raise KeyError(f"Engine '{name}' not found. Available engines: {available}")
        return cls._engines[name]

    @classmethod
    def create(cls, name: str) -> "LocalVoiceEngine":
        """Instantiate an engine by name."""
        return cls.get(name)()

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._engines)


# Register engines
EngineRegistry.register("system", SystemVoiceEngine)
