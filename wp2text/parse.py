"""Segment raw wikitext into classified block elements."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .core.aliases import AliasTables, default_aliases
from .models import Article, Element, ElementType
from .processing.nested import LINK_CLOSE, LINK_OPEN, brace_delta, is_isolated
from .stream.pages import strip_comments

logger = logging.getLogger(__name__)

MAX_TEMPLATE_DEPTH = 10
# Longest run of lines a continuation block may swallow before it is closed.
MAX_SCAN_LINES = 5000

HEADING_RE = re.compile(r"^(={1,6})\s*(.+?)\s*\1\s*$")
LIST_MARKER_RE = re.compile(r"^[*#;:]+\s*")
QUOTE_MARKER_RE = re.compile(r"^(?:>\s?)+")
RULE_RE = re.compile(r"^-{4,}\s*$")
DIRECTIVE_RE = re.compile(r"^\s*__[A-Z_]+__\s*$")
SELF_CLOSING_TAG_RE = re.compile(r"^\s*<([A-Za-z][\w-]*)(?:\s[^<>]*)?/>\s*$")
PAIRED_TAG_RE = re.compile(r"^\s*<([A-Za-z][\w-]*)(?:\s[^<>]*)?>(.*)</\1\s*>\s*$", re.DOTALL)
TABLE_ROW_OPEN = "{|"
TABLE_ROW_CLOSE = "|}"

# Tags whose content is prose (or a marker) and must reach the renderer.
TEXT_TAGS = frozenset({
    "b", "i", "u", "s", "em", "strong", "span", "small", "big", "sub", "sup",
    "abbr", "font", "cite", "q", "del", "ins", "mark", "nowiki", "ref", "poem",
    "center", "div", "p", "blockquote", "tt", "var", "kbd", "samp", "bdi",
    "references", "gallery", "imagemap", "mapframe", "maplink", "timeline",
    "graph", "score", "math", "chem", "ce", "code", "syntaxhighlight", "source",
    "pre", "table",
})

# Transclusion directives whose content never belongs to the article text.
DIRECTIVE_TAGS = frozenset({
    "noinclude", "includeonly", "onlyinclude", "templatedata", "templatestyles",
    "categorytree", "inputbox", "indicator", "section",
})


class _Mode:
    TEMPLATE = "template"
    TABLE = "table"
    HTML_TABLE = "html_table"
    PRE = "pre"
    QUOTE = "quote"
    INLINE = "inline"  # a paragraph or list item holding an unclosed {{ or [[


# _continue results
_OPEN = "open"
_CLOSED = "closed"
_BROKEN = "broken"  # never terminated; the absorbed lines are segmented again


@dataclass
class _OpenBlock:
    element: Element
    mode: str
    start: int = 0
    depth: int = 0
    link_depth: int = 0
    lines: int = 1
    head: str = field(default="", init=False)

    def __post_init__(self):
        self.head = self.element.content


def _count(line: str, needle: str) -> int:
    return line.lower().count(needle)


def _is_isolated_tag(line: str) -> bool:
    match = SELF_CLOSING_TAG_RE.match(line)
    if match:
        return match.group(1).lower() not in TEXT_TAGS
    match = PAIRED_TAG_RE.match(line)
    if not match:
        return False
    tag = match.group(1).lower()
    if tag in DIRECTIVE_TAGS:
        return True
    return tag not in TEXT_TAGS and not match.group(2).strip()


class WikitextParser:
    """Classifies the lines of a page into :class:`Element` blocks.

    Rules are tried in a fixed order and the first match wins. Multi-line
    constructs (templates, tables, ``<pre>`` and ``<blockquote>`` blocks)
    keep absorbing lines until their terminator, tracked with explicit depth
    counters so that nested ``{{`` and ``{|`` never leak into prose. A block
    still open at end of text or after ``max_scan_lines`` keeps its first
    line only, and the lines after it are classified again as usual.
    """

    def __init__(self, aliases: Optional[AliasTables] = None,
                 max_template_depth: int = MAX_TEMPLATE_DEPTH,
                 max_scan_lines: int = MAX_SCAN_LINES):
        self.aliases = aliases or default_aliases()
        self.max_template_depth = max_template_depth
        self.max_scan_lines = max_scan_lines

        category = self.aliases.alternation(self.aliases.namespace_aliases("Category"))
        self.category_re = re.compile(
            rf"\[\[\s*(?:{category})\s*:\s*([^\[\]|\n]*?)\s*(?:\|[^\[\]\n]*)?\]\]",
            re.IGNORECASE,
        )
        redirect = self.aliases.alternation(self.aliases.aliases_for("redirect"))
        self.redirect_re = re.compile(
            rf"^\s*#?\s*(?:{redirect})\s*:?\s*\[\[([^\[\]\n]+?)\]\]",
            re.IGNORECASE,
        )

    def extract_categories(self, text: str) -> Tuple[List[str], str]:
        """Return the category names (document order) and the text without them."""
        categories = [m.group(1).strip() for m in self.category_re.finditer(text)]
        return [c for c in categories if c], self.category_re.sub("", text)

    def redirect_target(self, line: str) -> Optional[str]:
        match = self.redirect_re.match(line)
        if not match:
            return None
        return match.group(1).split("|", 1)[0].strip()

    def parse(self, raw_markup: str, title: str, strip_list_markers: bool = False) -> Article:
        """Parse one page of wikitext into an :class:`Article`."""
        text = strip_comments(raw_markup)
        categories, text = self.extract_categories(text)
        article = Article(title=title.strip(), categories=categories)

        lines = text.splitlines(keepends=True)
        block: Optional[_OpenBlock] = None
        i = 0
        while i < len(lines) or block is not None:
            if block is None:
                block = self._classify(lines[i], article, strip_list_markers)
                if block is not None:
                    block.start = i
                i += 1
                continue
            state = self._continue(block, lines[i]) if i < len(lines) else _BROKEN
            if state == _OPEN:
                i += 1
                continue
            if state == _BROKEN:
                # keep the opening line only; what followed is segmented again
                logger.debug("%r: unterminated %s block at line %d",
                             article.title, block.mode, block.start + 1)
                block.element.content = block.head
                i = block.start + 1
            else:
                i += 1
            block = None
        return article

    def _classify(self, line: str, article: Article,
                  strip_list_markers: bool) -> Optional[_OpenBlock]:
        """Append the element opened by ``line``; return it when it continues."""
        stripped = line.strip()
        head = line.lstrip()
        lowered = head.lower()

        def add(kind: ElementType, content: str = line, **kwargs) -> Element:
            element = Element(kind, content, **kwargs)
            article.elements.append(element)
            return element

        if not stripped:
            add(ElementType.BLANK, "\n")
            return None

        target = self.redirect_target(line)
        if target is not None:
            add(ElementType.REDIRECT, target=target)
            return None

        match = HEADING_RE.match(stripped)
        if match:
            add(ElementType.HEADING, match.group(2), level=len(match.group(1)))
            return None

        if head.startswith("{{"):
            depth = brace_delta(line)
            if depth > 0:
                element = add(ElementType.MULTILINE_TEMPLATE)
                return _OpenBlock(element, _Mode.TEMPLATE, depth=depth)
            if is_isolated(line):
                add(ElementType.ISOLATED_TEMPLATE)
                return None

        if head.startswith(TABLE_ROW_OPEN):
            element = add(ElementType.TABLE)
            return _OpenBlock(element, _Mode.TABLE, depth=1)

        if lowered.startswith("<table"):
            element = add(ElementType.HTML_TABLE)
            depth = _count(line, "<table") - _count(line, "</table")
            return _OpenBlock(element, _Mode.HTML_TABLE, depth=depth) if depth > 0 else None

        if lowered.startswith("<pre"):
            element = add(ElementType.PREFORMATTED)
            return None if "</pre" in lowered else _OpenBlock(element, _Mode.PRE)

        if lowered.startswith("<blockquote"):
            element = add(ElementType.QUOTE)
            return None if "</blockquote" in lowered else _OpenBlock(element, _Mode.QUOTE)

        if head.startswith(">"):
            add(ElementType.QUOTE, QUOTE_MARKER_RE.sub("", head))
            return None

        if _is_isolated_tag(line) or DIRECTIVE_RE.match(line):
            add(ElementType.ISOLATED_TAG)
            return None

        if RULE_RE.match(stripped):
            add(ElementType.OTHER)
            return None

        if line[0] in "*#;:":
            kind = {
                "*": ElementType.UNORDERED_LIST,
                "#": ElementType.ORDERED_LIST,
            }.get(line[0], ElementType.DEFINITION)
            content = LIST_MARKER_RE.sub("", line) if strip_list_markers else line
            return self._inline(add(kind, content), line)

        if line.startswith(" "):
            add(ElementType.PREFORMATTED, line[1:] if strip_list_markers else line)
            return None

        return self._inline(add(ElementType.PARAGRAPH), line)

    def _inline(self, element: Element, line: str) -> Optional[_OpenBlock]:
        """Keep a prose element open while it holds an unclosed template or link.

        Only a line that starts with ``[[`` may carry a link over to the next
        line; a stray ``[[`` later in a line stays literal.
        """
        depth = brace_delta(line)
        link_depth = brace_delta(line, LINK_OPEN, LINK_CLOSE) if line.startswith(LINK_OPEN) else 0
        if depth > 0 or link_depth > 0:
            return _OpenBlock(element, _Mode.INLINE, depth=max(depth, 0),
                              link_depth=max(link_depth, 0))
        return None

    def _continue(self, block: _OpenBlock, line: str) -> str:
        """Absorb ``line`` into the open block; return ``_OPEN``, ``_CLOSED`` or ``_BROKEN``."""
        lowered = line.lower()

        if block.mode == _Mode.INLINE and HEADING_RE.match(line.strip()):
            return _BROKEN
        block.element.append(line)
        block.lines += 1

        if block.mode in (_Mode.TEMPLATE, _Mode.INLINE):
            block.depth += brace_delta(line)
            if block.depth > self.max_template_depth:
                logger.debug("Template nesting %d exceeds %d", block.depth, self.max_template_depth)
            if block.link_depth:
                block.link_depth += brace_delta(line, LINK_OPEN, LINK_CLOSE)
            closed = block.depth <= 0 and block.link_depth <= 0
        elif block.mode == _Mode.TABLE:
            head = line.lstrip()
            if head.startswith(TABLE_ROW_OPEN):
                block.depth += 1
            elif head.startswith(TABLE_ROW_CLOSE):
                block.depth -= 1
            closed = block.depth <= 0
        elif block.mode == _Mode.HTML_TABLE:
            block.depth += _count(line, "<table") - _count(line, "</table")
            closed = block.depth <= 0
        elif block.mode == _Mode.PRE:
            closed = "</pre" in lowered
        else:
            closed = "</blockquote" in lowered

        if closed:
            return _CLOSED
        if block.lines >= self.max_scan_lines:
            return _BROKEN
        return _OPEN


def parse_wikitext(raw_markup: str, title: str = "", strip_list_markers: bool = False) -> Article:
    """Parse wikitext with the bundled alias tables."""
    return WikitextParser().parse(raw_markup, title, strip_list_markers=strip_list_markers)
