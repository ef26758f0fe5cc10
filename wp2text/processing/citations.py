"""Citation template detection and formatting."""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, List, Optional

import wikitextparser as wtp

if TYPE_CHECKING:
    from ..core.aliases import AliasTables

MAX_AUTHORS = 3

WORK_FIELDS = ("work", "journal", "newspaper", "magazine", "website", "periodical", "encyclopedia")


@dataclass
class Citation:
    """Fields pulled out of a citation template."""
    authors: List[str]
    title: Optional[str] = None
    work: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[str] = None
    more_authors: bool = False

    def format(self) -> str:
        """Short human-readable form: ``Author. "Title". Work. Year. Publisher.``"""
        segments = []
        if self.authors:
            author = "; ".join(self.authors)
            if self.more_authors:
                author += " et al."
            segments.append(author)
        if self.title:
            segments.append(f'"{self.title}"')
        if self.work:
            segments.append(self.work)
        if self.year:
            segments.append(self.year)
        if self.publisher:
            segments.append(self.publisher)
        if not segments:
            return ""
        text = ". ".join(s.rstrip(".") for s in segments)
        return text + "."


class CitationFormatter:
    """Recognizes citation templates and reduces them to readable text."""

    def __init__(self, aliases: "AliasTables"):
        self.names: FrozenSet[str] = frozenset(aliases.template_names("citation"))

    def is_citation(self, name: str) -> bool:
        return name in self.names or name.startswith("cite ")

    def parse(self, template_text: str) -> Optional[Citation]:
        """Extract fields from the wikitext of a single citation template."""
        templates = wtp.parse(template_text).templates
        if not templates:
            return None
        template = templates[0]

        def field(*names: str) -> Optional[str]:
            for name in names:
                arg = template.get_arg(name)
                if arg is not None:
                    value = " ".join(arg.value.split())
                    if value:
                        return value
            return None

        authors = []
        more_authors = False
        for n in range(1, 10):
            suffixes = ("", "1") if n == 1 else (str(n),)
            last = field(*(f"last{s}" for s in suffixes), *(f"surname{s}" for s in suffixes),
                         *(f"author{s}" for s in suffixes))
            if not last:
                break
            first = field(*(f"first{s}" for s in suffixes), *(f"given{s}" for s in suffixes))
            if len(authors) == MAX_AUTHORS:
                more_authors = True
                break
            authors.append(f"{last}, {first}" if first else last)

        year = field("year")
        if not year:
            date = field("date")
            if date:
                match = re.search(r"\d{4}", date)
                year = match.group() if match else None

        return Citation(
            authors=authors,
            title=field("title", "chapter", "trans-title"),
            work=field(*WORK_FIELDS),
            publisher=field("publisher", "agency"),
            year=year,
            more_authors=more_authors,
        )

    def format(self, content: str) -> str:
        """Format a citation from the inner content of ``{{...}}``."""
        citation = self.parse("{{" + content + "}}")
        return citation.format() if citation else ""
