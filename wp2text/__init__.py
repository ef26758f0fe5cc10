"""wp2text: Convert Wikipedia XML dumps to plain text."""

from .core import (
    AliasTables,
    ConfigError,
    IoFailure,
    OutputFailure,
    PageProcessingError,
    RenderConfig,
    Wp2TextError,
    default_aliases,
    load_alias_tables,
)
from .models import (
    Article,
    Element,
    ElementType,
    PageFailure,
    PageRecord,
    RawPage,
    RunStats,
)
from .output import OutputWriter
from .parse import WikitextParser, parse_wikitext
from .pipeline import Orchestrator, optimal_workers, process, split_dump
from .render import Renderer, cleanup
from .renderers import ArticleHandler, build_handler
from .stream import ChunkedLineSource, PageExtractor, PageReader, iter_page_records

__all__ = [
    "AliasTables",
    "default_aliases",
    "load_alias_tables",
    "RenderConfig",
    "ConfigError",
    "IoFailure",
    "OutputFailure",
    "PageProcessingError",
    "Wp2TextError",
    "Article",
    "Element",
    "ElementType",
    "PageFailure",
    "PageRecord",
    "RawPage",
    "RunStats",
    "ChunkedLineSource",
    "PageExtractor",
    "PageReader",
    "iter_page_records",
    "WikitextParser",
    "parse_wikitext",
    "Renderer",
    "cleanup",
    "ArticleHandler",
    "build_handler",
    "OutputWriter",
    "Orchestrator",
    "optimal_workers",
    "process",
    "split_dump",
]

__version__ = "0.1.0"
