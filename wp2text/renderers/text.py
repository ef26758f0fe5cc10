"""Plain-text article formatters."""

import re
from typing import Callable, Dict, List, Optional

from ..core.config import RenderConfig
from ..models import LIST_TYPES, Article, Element, ElementType
from ..render import Renderer, cleanup
from .sections import SectionExtractor, split_sections

LIST_MARKER_RE = re.compile(r"^[*#;:]+\s*")
TOKEN_RE = re.compile(r"\[[A-Z]+\]")


class TextFormatter:
    """Renders an article as ``[[Title]]``, body text and a category footer."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 renderer: Optional[Renderer] = None):
        self.config = config or RenderConfig()
        self.renderer = renderer or Renderer(self.config)
        self._tokens = frozenset(f.token for f in self.renderer.markers.families)
        self.sections = (SectionExtractor(self.config.sections, self.render_elements)
                         if self.config.sections else None)

        self._element_renderers: Dict[ElementType, Callable[[Element], Optional[str]]] = {
            ElementType.HEADING: self._render_heading,
            ElementType.PARAGRAPH: self._render_paragraph,
            ElementType.QUOTE: self._render_paragraph,
            ElementType.TABLE: self._render_table,
            ElementType.HTML_TABLE: self._render_table,
            ElementType.PREFORMATTED: self._render_pre,
            ElementType.REDIRECT: self._render_redirect,
            ElementType.MULTILINE_TEMPLATE: self._render_template,
            ElementType.ISOLATED_TEMPLATE: self._render_template,
        }
        for kind in LIST_TYPES:
            self._element_renderers[kind] = self._render_list

    def render(self, article: Article) -> Optional[str]:
        """
        Render a complete article.

        Args:
            article: Parsed article

        Returns:
            The article text followed by a blank line, or ``None`` when the
            article has no body text
        """
        body = self.render_body(article)
        if not body:
            return None

        parts = []
        if self.config.keep_title:
            parts.append(f"[[{self.renderer.render_title(article.title)}]]")
        parts.append(body)
        footer = self._render_categories(article)
        if footer:
            parts.append(footer)
        return "\n\n".join(parts) + "\n\n"

    def body_elements(self, article: Article) -> List[Element]:
        return article.elements

    def render_body(self, article: Article) -> str:
        if self.sections is None:
            return self.render_elements(self.body_elements(article))
        parts = []
        for name, text in self.sections.extract(article).items():
            if text:
                parts.append(f"{name.upper()}\n{text}")
        return "\n\n".join(parts)

    def render_elements(self, elements: List[Element]) -> str:
        """Render a run of elements; blank elements become paragraph breaks."""
        lines: List[str] = []
        for element in elements:
            if element.type is ElementType.BLANK:
                lines.append("")
                continue
            text = self.render_element(element)
            if not text:
                continue
            if element.type is ElementType.HEADING:
                lines.extend(["", text, ""])
            else:
                lines.append(text)
        return cleanup("\n".join(lines))

    def render_element(self, element: Element) -> Optional[str]:
        render = self._element_renderers.get(element.type)
        return render(element) if render else None

    def _render_heading(self, element: Element) -> Optional[str]:
        if not self.config.keep_heading:
            return None
        return self.renderer.render(element.content)

    def _render_paragraph(self, element: Element) -> Optional[str]:
        return self.renderer.render(element.content)

    def _render_list(self, element: Element) -> Optional[str]:
        if not self.config.keep_list:
            return None
        text = self.renderer.render(element.content)
        # an item whose whole content was markup
        if not LIST_MARKER_RE.sub("", text).strip():
            return None
        return text

    def _render_table(self, element: Element) -> Optional[str]:
        if self.config.keep_table:
            return self.renderer.render_inline(element.content)
        return self.renderer.render(element.content)

    def _render_pre(self, element: Element) -> Optional[str]:
        if not self.config.keep_pre:
            return None
        return self.renderer.render_inline(element.content)

    def _render_redirect(self, element: Element) -> Optional[str]:
        if not self.config.keep_redirect:
            return None
        return f"REDIRECT: {element.target}"

    def _render_template(self, element: Element) -> Optional[str]:
        text = self.renderer.render(element.content)
        if self.config.keep_multiline_template:
            return text
        # only marker tokens survive
        tokens = [t for t in TOKEN_RE.findall(text) if t in self._tokens]
        return " ".join(tokens) or None

    def _render_categories(self, article: Article) -> Optional[str]:
        if not self.config.keep_category or not article.categories:
            return None
        names = [self.renderer.render_title(c) for c in article.categories]
        return "CATEGORIES: " + ", ".join(names)


class SummaryFormatter(TextFormatter):
    """Only the lead section (everything before the first heading)."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 renderer: Optional[Renderer] = None):
        super().__init__(config, renderer)
        self.sections = None

    def body_elements(self, article: Article) -> List[Element]:
        return split_sections(article)[0][1]


class CategoryOnlyFormatter:
    """One ``Title<TAB>cat1, cat2`` line per article."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 renderer: Optional[Renderer] = None):
        self.config = config or RenderConfig()
        self.renderer = renderer or Renderer(self.config)

    def render(self, article: Article) -> Optional[str]:
        title = self.renderer.render_title(article.title)
        categories = ", ".join(self.renderer.render_title(c) for c in article.categories)
        return f"{title}\t{categories}\n"


class MetadataFormatter(CategoryOnlyFormatter):
    """One ``Title<TAB>Heading1|Heading2<TAB>cat1,cat2`` line per article."""

    def headings(self, article: Article) -> List[str]:
        names = (" ".join(self.renderer.render(h.content).split()) for h in article.headings())
        return [n for n in names if n]

    def render(self, article: Article) -> Optional[str]:
        title = self.renderer.render_title(article.title)
        headings = "|".join(self.headings(article))
        categories = ",".join(self.renderer.render_title(c) for c in article.categories)
        return f"{title}\t{headings}\t{categories}\n"
