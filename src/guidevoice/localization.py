"""Cross-language text lookup.

When the configured voice speaks a different language than the text being
displayed, the orchestrator asks a ``Localization`` for the same string in
the voice's language.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Localization(Protocol):
    def get_translation(
        self, dungeon_id: str | None, key: str, language: str
    ) -> str | None:
        """Return the text for key in language, or None if unavailable."""
        ...


class CatalogLocalization:
    """Dictionary-backed translations.

    The catalog is keyed ``{language: {dungeon_id: {key: text}}}``. Entries
    under the ``"*"`` dungeon apply to every dungeon.

    Example:
        catalog = CatalogLocalization({
            "en": {"*": {"stack": "Stack on {player}"}},
        })
        catalog.get_translation("halls", "stack", "en")
    """

    SHARED = "*"

    def __init__(
        self, catalog: Mapping[str, Mapping[str, Mapping[str, str]]] | None = None
    ) -> None:
        self._catalog = {
            language.lower(): {
                dungeon: dict(keys) for dungeon, keys in dungeons.items()
            }
            for language, dungeons in (catalog or {}).items()
        }

    @classmethod
    def from_json(cls, path: Path) -> "CatalogLocalization":
        """Load a catalog from a JSON file.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid JSON
        """
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    def get_translation(
        self, dungeon_id: str | None, key: str, language: str
    ) -> str | None:
        dungeons = self._catalog.get((language or "").lower())
        if not dungeons:
            return None
        for scope in (dungeon_id, self.SHARED):
            if scope is not None and key in dungeons.get(scope, {}):
                return dungeons[scope][key]
        logger.debug(f"No {language!r} translation for {dungeon_id}/{key}")
        return None
