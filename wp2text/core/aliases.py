"""Read-only alias tables: magic words, namespaces, templates and entities.

The tables are loaded once per process from the JSON files shipped in
``wp2text/data`` (or from a directory with the same file layout) and are
never mutated afterwards, so worker processes can share them freely.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from html.entities import html5
from pathlib import Path
from typing import Dict, Optional, Tuple

from .errors import ConfigError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

DATA_FILES = {
    "magic_words": "magic_words.json",
    "namespaces": "namespaces.json",
    "templates": "templates.json",
    "entities": "entities.json",
}


def _load_json(path: Path) -> Dict[str, object]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not load alias table {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Alias table {path} must be a JSON object")
    return data


def _as_alias_map(data: Dict[str, object]) -> Dict[str, Tuple[str, ...]]:
    return {str(k): tuple(str(v) for v in values) for k, values in data.items()}


@dataclass(frozen=True)
class AliasTables:
    """Lookup tables for localized and alternate names."""
    magic_words: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    namespaces: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    templates: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    entities: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, directory: Path) -> "AliasTables":
        """Load alias tables from a directory holding the four JSON files."""
        directory = Path(directory)
        raw = {name: _load_json(directory / filename) for name, filename in DATA_FILES.items()}

        # html5 keys come both with and without the trailing ';'
        entities = {k.rstrip(";"): v for k, v in html5.items()}
        entities.update({str(k): str(v) for k, v in raw["entities"].items()})

        tables = cls(
            magic_words=_as_alias_map(raw["magic_words"]),
            namespaces=_as_alias_map(raw["namespaces"]),
            templates=_as_alias_map(raw["templates"]),
            entities=entities,
        )
        logger.debug(
            "Loaded alias tables from %s (%d magic words, %d namespaces, %d template families)",
            directory, len(tables.magic_words), len(tables.namespaces), len(tables.templates),
        )
        return tables

    def aliases_for(self, magic_word: str) -> Tuple[str, ...]:
        """Localized aliases of a magic word (e.g. ``redirect``)."""
        return self.magic_words.get(magic_word.lower(), ())

    def namespace_aliases(self, namespace: str) -> Tuple[str, ...]:
        """Canonical namespace name followed by its localized aliases."""
        aliases = self.namespaces.get(namespace, ())
        if namespace in aliases:
            return aliases
        return (namespace,) + aliases

    def template_names(self, family: str) -> Tuple[str, ...]:
        """Lower-cased template names belonging to a family."""
        return tuple(name.lower() for name in self.templates.get(family, ()))

    def entity(self, name: str) -> Optional[str]:
        """Decoded character(s) of a named entity, or ``None`` if unknown."""
        value = self.entities.get(name)
        if value is None:
            value = self.entities.get(name.lower())
        return value

    def alternation(self, values: Tuple[str, ...]) -> str:
        """Regex alternation of ``values``, longest first so prefixes never shadow."""
        ordered = sorted(set(values), key=lambda v: (-len(v), v))
        return "|".join(re.escape(v) for v in ordered)


@lru_cache(maxsize=None)
def load_alias_tables(directory: Optional[str] = None) -> AliasTables:
    """Load (once per process) the alias tables from ``directory`` or the bundled data."""
    return AliasTables.from_directory(Path(directory) if directory else DATA_DIR)


def default_aliases() -> AliasTables:
    """Alias tables shipped with the package."""
    return load_alias_tables(None)
