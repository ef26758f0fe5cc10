"""JSON Lines article formatter."""

import json
from typing import Any, Dict, Optional

from ..core.config import RenderConfig
from ..models import Article
from ..render import Renderer
from .text import MetadataFormatter, SummaryFormatter, TextFormatter


class JsonFormatter:
    """One JSON object per article, one article per line.

    The object's keys depend on the mode: ``text`` and ``summary_only``
    produce ``title``, ``categories``, ``text`` and ``redirect`` (plus
    ``sections`` when sections are requested); ``category_only`` produces
    ``title`` and ``categories``; ``metadata_only`` adds ``headings``.
    """

    def __init__(self, config: Optional[RenderConfig] = None,
                 renderer: Optional[Renderer] = None):
        self.config = config or RenderConfig()
        self.renderer = renderer or Renderer(self.config)
        body_class = SummaryFormatter if self.config.mode == "summary_only" else TextFormatter
        self.body = body_class(self.config, self.renderer)
        self.metadata = MetadataFormatter(self.config, self.renderer)

    def record(self, article: Article) -> Optional[Dict[str, Any]]:
        """The JSON-serializable record for ``article``, or ``None`` to skip it."""
        record: Dict[str, Any] = {
            "title": self.renderer.render_title(article.title),
            "categories": [self.renderer.render_title(c) for c in article.categories],
        }
        mode = self.config.mode
        if mode == "category_only":
            return record
        if mode == "metadata_only":
            record["headings"] = self.metadata.headings(article)
            return record

        redirect = article.redirect_target if self.config.keep_redirect else None
        if self.body.sections is not None:
            sections = self.body.sections.extract(article)
            if not any(sections.values()) and redirect is None:
                return None
            record["sections"] = sections
        else:
            text = self.body.render_elements(self.body.body_elements(article))
            if not text and redirect is None:
                return None
            record["text"] = text
        record["redirect"] = redirect
        return record

    def render(self, article: Article) -> Optional[str]:
        record = self.record(article)
        if record is None:
            return None
        return json.dumps(record, ensure_ascii=False) + "\n"
