"""Marker registry: non-prose constructs replaced by bracketed tokens.

Families are tried in a fixed priority order. When constructs overlap (a
table holding a formula) the earlier family wins and swallows the later one.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, List, Optional, Pattern, Tuple

from .nested import TABLE_CLOSE, TABLE_OPEN, replace_nested

if TYPE_CHECKING:
    from ..core.aliases import AliasTables


@dataclass(frozen=True)
class MarkerFamily:
    """A group of tags and templates sharing one placeholder token."""
    name: str
    token: str
    tags: Tuple[str, ...] = ()
    templates: Tuple[str, ...] = ()
    prefixes: Tuple[str, ...] = ()
    alias_family: Optional[str] = None  # key into AliasTables.templates
    prefix_aliases: bool = False        # alias names also match "<alias> ..."


MARKER_FAMILIES: Tuple[MarkerFamily, ...] = (
    MarkerFamily("references", "[REFERENCES]", tags=("references",),
                 templates=("reflist", "references"), alias_family="references"),
    MarkerFamily("table", "[TABLE]", tags=("table",)),
    MarkerFamily("infobox", "[INFOBOX]", templates=("infobox",),
                 alias_family="infobox", prefix_aliases=True),
    MarkerFamily("navbox", "[NAVBOX]", templates=("navbox",),
                 alias_family="navbox", prefix_aliases=True),
    MarkerFamily("sidebar", "[SIDEBAR]", templates=("sidebar",),
                 alias_family="sidebar", prefix_aliases=True),
    MarkerFamily("gallery", "[GALLERY]", tags=("gallery",)),
    MarkerFamily("imagemap", "[IMAGEMAP]", tags=("imagemap",)),
    MarkerFamily("mapframe", "[MAPFRAME]", tags=("mapframe", "maplink")),
    MarkerFamily("timeline", "[TIMELINE]", tags=("timeline",)),
    MarkerFamily("graph", "[GRAPH]", tags=("graph",)),
    MarkerFamily("score", "[SCORE]", tags=("score",)),
    MarkerFamily("math", "[MATH]", tags=("math",), templates=("math", "mvar"),
                 alias_family="math"),
    MarkerFamily("chem", "[CHEM]", tags=("chem", "ce"), templates=("chem", "ce", "chem2"),
                 alias_family="chem"),
    MarkerFamily("code", "[CODE]", tags=("code", "syntaxhighlight", "source", "pre"),
                 templates=("code",), alias_family="code"),
    MarkerFamily("ipa", "[IPA]", templates=("ipa",), prefixes=("ipa-", "ipac-"),
                 alias_family="ipa"),
)

MARKER_NAMES: Tuple[str, ...] = tuple(f.name for f in MARKER_FAMILIES)


def _paired_tag(tag: str) -> Tuple[Pattern[str], Pattern[str]]:
    opener = re.compile(rf"<{tag}(?:\s[^<>]*)?(?<!/)>", re.IGNORECASE)
    closer = re.compile(rf"</{tag}\s*>", re.IGNORECASE)
    return opener, closer


def _self_closing(tag: str) -> Pattern[str]:
    return re.compile(rf"<{tag}(?:\s[^<>]*)?/>", re.IGNORECASE)


class MarkerRegistry:
    """Compiled matchers for every marker family."""

    def __init__(self, aliases: "AliasTables", families: Tuple[MarkerFamily, ...] = MARKER_FAMILIES):
        self.families = families
        self._tag_patterns: Dict[str, List[Tuple[Pattern[str], Pattern[str], Pattern[str]]]] = {}
        self._names: Dict[str, FrozenSet[str]] = {}
        self._prefixes: Dict[str, Tuple[str, ...]] = {}

        for family in families:
            self._tag_patterns[family.name] = [
                _paired_tag(tag) + (_self_closing(tag),) for tag in family.tags
            ]
            names = set(family.templates)
            prefixes = list(family.prefixes)
            if family.alias_family:
                alias_names = aliases.template_names(family.alias_family)
                names.update(alias_names)
                if family.prefix_aliases:
                    prefixes.extend(f"{name} " for name in alias_names)
            if family.prefix_aliases:
                prefixes.extend(f"{name} " for name in family.templates)
            self._names[family.name] = frozenset(names)
            self._prefixes[family.name] = tuple(sorted(set(prefixes)))

    def family_for_template(self, name: str) -> Optional[MarkerFamily]:
        """First family (by priority) claiming template ``name`` (normalized)."""
        for family in self.families:
            if name in self._names[family.name]:
                return family
            if name.startswith(self._prefixes[family.name]):
                return family
        return None

    def replace_tags(self, text: str, enabled: Callable[[str], bool]) -> str:
        """Replace marker tags (and wiki tables) in priority order.

        Enabled families leave their token; disabled ones are removed.
        """
        for family in self.families:
            replacement = family.token if enabled(family.name) else ""
            for opener, closer, self_closing in self._tag_patterns[family.name]:
                if opener.search(text):
                    text = replace_nested(text, opener, closer, lambda _: replacement)
                text = self_closing.sub(replacement, text)
            if family.name == "table":
                text = replace_nested(text, TABLE_OPEN, TABLE_CLOSE, lambda _: replacement)
        return text

    def token(self, name: str) -> str:
        for family in self.families:
            if family.name == name:
                return family.token
        raise KeyError(name)
