"""Configuration, alias tables and error types."""

from .aliases import AliasTables, default_aliases, load_alias_tables
from .config import RenderConfig, parse_markers
from .errors import (
    ConfigError,
    IoFailure,
    OutputFailure,
    PageProcessingError,
    Wp2TextError,
)

__all__ = [
    "AliasTables",
    "default_aliases",
    "load_alias_tables",
    "RenderConfig",
    "parse_markers",
    "ConfigError",
    "IoFailure",
    "OutputFailure",
    "PageProcessingError",
    "Wp2TextError",
]
