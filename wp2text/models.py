"""Core data models shared by the parser, renderer and pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class ElementType(Enum):
    """Block-level kinds a page is segmented into."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    UNORDERED_LIST = "unordered_list"
    ORDERED_LIST = "ordered_list"
    DEFINITION = "definition"
    TABLE = "table"                      # {| ... |}
    HTML_TABLE = "html_table"            # <table> ... </table>
    PREFORMATTED = "preformatted"
    QUOTE = "quote"
    REDIRECT = "redirect"
    MULTILINE_TEMPLATE = "multiline_template"
    ISOLATED_TEMPLATE = "isolated_template"
    ISOLATED_TAG = "isolated_tag"
    BLANK = "blank"
    OTHER = "other"


LIST_TYPES = frozenset({
    ElementType.UNORDERED_LIST,
    ElementType.ORDERED_LIST,
    ElementType.DEFINITION,
})


@dataclass
class Element:
    """One classified block of wikitext.

    The type is fixed at construction; ``content`` may be rewritten in place
    by the renderer before emission.
    """
    type: ElementType
    content: str = ""
    level: Optional[int] = None   # heading depth (number of '=')
    target: Optional[str] = None  # redirect target

    def append(self, line: str) -> None:
        self.content += line

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {"type": self.type.value, "content": self.content}
        if self.level is not None:
            result["level"] = self.level
        if self.target is not None:
            result["target"] = self.target
        return result


@dataclass
class Article:
    """A parsed page: title, categories and ordered elements."""
    title: str
    categories: List[str] = field(default_factory=list)
    elements: List[Element] = field(default_factory=list)

    @property
    def redirect_target(self) -> Optional[str]:
        for element in self.elements:
            if element.type is ElementType.REDIRECT:
                return element.target
        return None

    def headings(self) -> List[Element]:
        return [e for e in self.elements if e.type is ElementType.HEADING]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            "categories": list(self.categories),
            "elements": [e.to_dict() for e in self.elements],
        }


@dataclass
class RawPage:
    """Raw ``<page>...</page>`` text as carved out of the input stream."""
    text: str
    complete: bool = True  # False when the stream ended inside the page


@dataclass
class PageRecord:
    """Decoded title and wikitext of one article page."""
    index: int
    title: str
    text: str


@dataclass
class PageFailure:
    """A page that could not be processed."""
    title: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "reason": self.reason}


@dataclass
class OutputFile:
    """An output slot managed by :class:`wp2text.output.OutputWriter`."""
    index: int
    path: Path
    size: int = 0


@dataclass
class RunStats:
    """Counters reported at the end of a run."""
    pages_read: int = 0
    processed: int = 0
    skipped: int = 0
    failed: List[PageFailure] = field(default_factory=list)
    output_files: List[Path] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "pages_read": self.pages_read,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": [f.to_dict() for f in self.failed],
            "output_files": [str(p) for p in self.output_files],
        }
