"""Article formatters and the picklable page handler built from a config."""

from typing import Any, Dict, Optional, Type

from ..core.aliases import load_alias_tables
from ..core.config import RenderConfig
from ..models import Article
from ..parse import WikitextParser
from ..render import Renderer
from .jsonl import JsonFormatter
from .sections import LEAD_SECTION, SECTION_ALIASES, SectionExtractor, split_sections
from .text import CategoryOnlyFormatter, MetadataFormatter, SummaryFormatter, TextFormatter

FORMATTERS: Dict[str, Type[Any]] = {
    "text": TextFormatter,
    "category_only": CategoryOnlyFormatter,
    "summary_only": SummaryFormatter,
    "metadata_only": MetadataFormatter,
}


def build_formatter(config: RenderConfig, renderer: Optional[Renderer] = None):
    """Formatter selected by ``config.format`` and ``config.mode``."""
    if config.format == "json":
        return JsonFormatter(config, renderer)
    return FORMATTERS[config.mode](config, renderer)


class ArticleHandler:
    """Parses a page and formats it according to a :class:`RenderConfig`.

    Only the config is pickled; the parser, renderer and formatter are
    rebuilt on first use in each process, where the alias tables are loaded
    once and cached.
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self._parser: Optional[WikitextParser] = None
        self._formatter = None

    def __getstate__(self) -> Dict[str, Any]:
        return {"config": self.config}

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self.__init__(state["config"])

    @property
    def parser(self) -> WikitextParser:
        if self._parser is None:
            self._parser = WikitextParser(load_alias_tables(self.config.alias_dir))
        return self._parser

    @property
    def formatter(self):
        if self._formatter is None:
            renderer = Renderer(self.config, load_alias_tables(self.config.alias_dir))
            self._formatter = build_formatter(self.config, renderer)
        return self._formatter

    def parse(self, text: str, title: str) -> Article:
        return self.parser.parse(text, title, strip_list_markers=self.config.strip_list_markers)

    def __call__(self, article: Article) -> Optional[str]:
        return self.formatter.render(article)


def build_handler(config: Optional[RenderConfig] = None) -> ArticleHandler:
    """Handler for ``config`` (defaults when ``None``)."""
    return ArticleHandler(config or RenderConfig())


__all__ = [
    "ArticleHandler",
    "CategoryOnlyFormatter",
    "FORMATTERS",
    "JsonFormatter",
    "LEAD_SECTION",
    "MetadataFormatter",
    "SECTION_ALIASES",
    "SectionExtractor",
    "SummaryFormatter",
    "TextFormatter",
    "build_formatter",
    "build_handler",
    "split_sections",
]
