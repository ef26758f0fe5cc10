"""Carve ``<page>`` records out of a line stream and decode their fields."""

from __future__ import annotations

import logging
import re
from typing import BinaryIO, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup

from ..models import PageFailure, PageRecord, RawPage
from .lines import DEFAULT_CHUNK_SIZE, ChunkedLineSource

logger = logging.getLogger(__name__)

PAGE_START = "<page>"
PAGE_END = "</page>"
NAMESPACE_SEPARATOR = ":"

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)


class PageExtractor:
    """Groups lines into raw ``<page>...</page>`` records.

    A page opens on a line that starts with the start tag (optionally with
    attributes) and closes on a line that ends with the end tag. The end tag
    occurring in the middle of a line does not close the page. Lines outside
    a page are discarded. If the stream ends, or a new page opens, while a
    page is still open, the partial page is returned with
    ``complete=False``.
    """

    def __init__(self, source: ChunkedLineSource, start_tag: str = PAGE_START,
                 end_tag: str = PAGE_END):
        self.source = source
        self.start_tag = start_tag
        self.end_tag = end_tag
        self._open_prefix = start_tag[:-1] + " " if start_tag.endswith(">") else start_tag
        self._pending: Optional[str] = None

    def is_start(self, line: str) -> bool:
        head = line.lstrip()
        return head.startswith(self.start_tag) or head.startswith(self._open_prefix)

    def is_end(self, line: str) -> bool:
        return line.rstrip().endswith(self.end_tag)

    def unread(self, line: str) -> None:
        """Push back one line; it is read again before the source."""
        self._pending = line

    def _next_line(self) -> Optional[str]:
        if self._pending is not None:
            line, self._pending = self._pending, None
            return line
        return self.source.next_line()

    def next_page(self) -> Optional[RawPage]:
        """Return the next raw page, or ``None`` when the stream is exhausted."""
        parts: List[str] = []
        inside = False
        while True:
            line = self._next_line()
            if line is None:
                break
            if not inside:
                if not self.is_start(line):
                    continue
                inside = True
                parts.append(line)
                if self.is_end(line):
                    return RawPage("".join(parts))
                continue
            if self.is_start(line):
                logger.warning("Page start found inside an open page; closing the previous page")
                self.unread(line)
                return RawPage("".join(parts), complete=False)
            parts.append(line)
            if self.is_end(line):
                return RawPage("".join(parts))

        if parts:
            logger.warning("Input ended inside an open page; returning the partial page")
            return RawPage("".join(parts), complete=False)
        return None

    def __iter__(self) -> Iterator[RawPage]:
        while True:
            page = self.next_page()
            if page is None:
                return
            yield page


def strip_comments(text: str) -> str:
    """Remove HTML comments, keeping the newlines each one contained."""
    return _COMMENT_RE.sub(lambda m: "\n" * m.group().count("\n"), text)


def is_namespace_title(title: str) -> bool:
    """Titles carrying a namespace prefix (``Category:``, ``Template:`` ...)."""
    return NAMESPACE_SEPARATOR in title


def extract_page_fields(raw_page: str) -> Optional[Tuple[str, str]]:
    """Pull the title and the wikitext out of one raw page.

    Uses the XML parser so that entities (``&lt;ref&gt;``) are decoded.
    Returns ``None`` when the page lacks a title or a text element.
    """
    soup = BeautifulSoup(raw_page, "xml")
    title = soup.find("title")
    text = soup.find("text")
    if title is None or text is None:
        return None
    return title.get_text().strip(), text.get_text()


class PageReader:
    """Yields article pages from a binary dump stream, with counters.

    Namespace pages are skipped and pages whose XML cannot be decoded are
    recorded in ``failures``; neither stops the iteration.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.source = ChunkedLineSource(stream, chunk_size=chunk_size)
        self.extractor = PageExtractor(self.source)
        self.pages_read = 0
        self.skipped = 0
        self.failures: List[PageFailure] = []

    def __iter__(self) -> Iterator[PageRecord]:
        index = 0
        for raw in self.extractor:
            self.pages_read += 1
            try:
                fields = extract_page_fields(raw.text)
            except Exception as e:  # parser backends raise assorted errors
                logger.warning("Could not decode page #%d: %s", self.pages_read, e)
                self.failures.append(PageFailure(f"<page #{self.pages_read}>", f"XML error: {e}"))
                continue
            if fields is None:
                self.failures.append(PageFailure(f"<page #{self.pages_read}>", "missing title or text"))
                continue
            title, text = fields
            if is_namespace_title(title):
                logger.debug("Skipping namespace page %r", title)
                self.skipped += 1
                continue
            yield PageRecord(index=index, title=title, text=text)
            index += 1


def iter_page_records(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[PageRecord]:
    """Yield the article pages of a dump stream, skipping namespace pages."""
    yield from PageReader(stream, chunk_size=chunk_size)
