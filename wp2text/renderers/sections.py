"""Extraction of named sections from a parsed article."""

import re
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..models import Article, Element, ElementType

# Pseudo-section holding the elements before the first heading.
LEAD_SECTION = "summary"

SECTION_ALIASES: Dict[str, Tuple[str, ...]] = {
    "plot": ("synopsis", "story", "plot summary"),
    "references": ("notes", "citations", "sources", "footnotes"),
    "external links": ("links", "further links"),
    "see also": ("related articles", "related pages"),
    "history": ("background", "origins"),
    "biography": ("life", "early life", "life and career"),
}

_MARKUP_RE = re.compile(r"'{2,}|\[\[|\]\]")


def normalize_heading(text: str) -> str:
    """Case-folded heading text with emphasis and link brackets removed."""
    return " ".join(_MARKUP_RE.sub("", text).split()).lower()


def split_sections(article: Article) -> List[Tuple[Optional[Element], List[Element]]]:
    """Split an article into ``(heading, elements)`` pairs.

    The first pair is the lead, with ``None`` as heading. A section runs until
    the next heading of the same or a higher level, so subsections (and their
    headings) are part of their parent's elements.
    """
    lead: List[Element] = []
    sections: List[Tuple[Optional[Element], List[Element]]] = [(None, lead)]
    open_sections: List[Tuple[Element, List[Element]]] = []

    for element in article.elements:
        if element.type is ElementType.HEADING:
            level = element.level or 1
            open_sections = [(h, body) for h, body in open_sections if (h.level or 1) < level]
            for _, body in open_sections:
                body.append(element)
            section_body: List[Element] = []
            sections.append((element, section_body))
            open_sections.append((element, section_body))
            continue
        if open_sections:
            for _, body in open_sections:
                body.append(element)
        else:
            lead.append(element)
    return sections


class SectionExtractor:
    """Renders the sections named in ``names`` (``summary`` is the lead)."""

    def __init__(self, names: Sequence[str], render_elements: Callable[[List[Element]], str],
                 aliases: Optional[Dict[str, Tuple[str, ...]]] = None):
        self.names = [normalize_heading(n) for n in names]
        self.render_elements = render_elements
        self.aliases = SECTION_ALIASES if aliases is None else aliases

    def _candidates(self, name: str) -> Tuple[str, ...]:
        return (name,) + tuple(normalize_heading(a) for a in self.aliases.get(name, ()))

    def extract(self, article: Article) -> Dict[str, Optional[str]]:
        """Rendered text per requested section, ``None`` when the article lacks it."""
        sections = split_sections(article)
        result: Dict[str, Optional[str]] = {}
        for name in self.names:
            if name == LEAD_SECTION:
                text = self.render_elements(sections[0][1])
                result[name] = text or None
                continue
            result[name] = None
            candidates = self._candidates(name)
            for heading, elements in sections[1:]:
                if normalize_heading(heading.content) in candidates:
                    text = self.render_elements(elements)
                    result[name] = text or None
                    break
        return result
