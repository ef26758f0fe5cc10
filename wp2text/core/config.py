"""Configuration management for wp2text."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union

import yaml

from .errors import ConfigError
from ..processing.markers import MARKER_NAMES

MODES = ("text", "category_only", "summary_only", "metadata_only")
FORMATS = ("text", "json")

MarkerSetting = Union[bool, FrozenSet[str]]


def parse_markers(value: Any) -> MarkerSetting:
    """Normalize a ``markers`` setting.

    Accepts ``True``/``False``, ``"all"``/``"none"``, a comma-separated
    string, or an iterable of family names.
    """
    if value is None or value is True:
        return True
    if value is False:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("all", "true", "yes", "on", ""):
            return True
        if lowered in ("none", "false", "no", "off"):
            return False
        names: Iterable[str] = lowered.split(",")
    else:
        names = value

    selected = frozenset(str(n).strip().lower() for n in names if str(n).strip())
    unknown = selected - set(MARKER_NAMES)
    if unknown:
        raise ConfigError(
            f"Unknown marker(s): {', '.join(sorted(unknown))}. "
            f"Valid markers: {', '.join(MARKER_NAMES)}"
        )
    return selected


@dataclass
class RenderConfig:
    """Options controlling which elements are emitted and how text is cleaned."""

    keep_title: bool = True
    keep_heading: bool = True
    keep_list: bool = False
    keep_table: bool = False
    keep_pre: bool = False
    keep_redirect: bool = False
    keep_multiline_template: bool = False
    keep_category: bool = True
    keep_ref: bool = False
    strip_list_markers: bool = False
    file_captions: bool = False
    markers: MarkerSetting = True
    extract_citations: bool = False
    mode: str = "text"
    format: str = "text"
    sections: Optional[List[str]] = None
    alias_dir: Optional[str] = None

    def __post_init__(self) -> None:
        self.markers = parse_markers(self.markers)
        if self.mode not in MODES:
            raise ConfigError(f"Unknown mode {self.mode!r}; expected one of {', '.join(MODES)}")
        if self.format not in FORMATS:
            raise ConfigError(f"Unknown format {self.format!r}; expected one of {', '.join(FORMATS)}")
        if self.sections is not None:
            self.sections = [s.strip() for s in self.sections if s and s.strip()]

    def marker_enabled(self, name: str) -> bool:
        """Whether family ``name`` is replaced by its token (otherwise it is removed)."""
        if isinstance(self.markers, bool):
            return self.markers
        return name in self.markers

    @classmethod
    def from_file(cls, config_path: Path) -> "RenderConfig":
        """Load configuration from a YAML file."""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read config {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderConfig":
        """Create config from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        if not isinstance(self.markers, bool):
            result["markers"] = sorted(self.markers)
        return result

    def merged(self, **overrides: Any) -> "RenderConfig":
        """Copy of this config with ``overrides`` applied (``None`` values ignored)."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return self.from_dict(data)
