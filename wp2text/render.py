"""Render wikitext fragments to plain text.

:class:`Renderer` applies a fixed sequence of rewriting passes to a fragment
of wikitext: protected ``<nowiki>`` spans, references, links, emphasis,
marker substitution, template reduction, tag stripping and entity decoding.
:func:`cleanup` then normalizes whitespace. Every pass treats malformed
markup as literal text, so rendering never raises on bad input.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .core.aliases import AliasTables, load_alias_tables
from .core.config import RenderConfig
from .processing.citations import CitationFormatter
from .processing.markers import MarkerRegistry
from .processing.nested import (
    LINK_CLOSE,
    LINK_OPEN,
    TEMPLATE_CLOSE,
    TEMPLATE_OPEN,
    iter_balanced,
    replace_nested,
    split_arguments,
    template_name,
)
from .processing.templates import TemplateExpander

logger = logging.getLogger(__name__)

NOWIKI_RE = re.compile(r"<nowiki\s*>(.*?)</nowiki\s*>", re.IGNORECASE | re.DOTALL)
NOWIKI_EMPTY_RE = re.compile(r"<nowiki\s*/>", re.IGNORECASE)
PLACEHOLDER_RE = re.compile("\x00(\\d+)\x00")
BR_RE = re.compile(r"<br\s*/?\s*>", re.IGNORECASE)
REF_EMPTY_RE = re.compile(r"<ref(?:\s[^<>]*)?/>", re.IGNORECASE)
REF_RE = re.compile(r"<ref(?:\s[^<>]*)?(?<!/)>(.*?)</ref\s*>", re.IGNORECASE | re.DOTALL)
EXTERNAL_LINK_RE = re.compile(
    r"\[(?:(?:https?|ftps?|sftp|mailto|news|nntp|irc|ircs|gopher|telnet|ssh|svn|git|mms|worldwind):|//)"
    r"[^\s\[\]]*(?:[ \t]+([^\]\n]*))?\]",
    re.IGNORECASE,
)
EMPHASIS_RE = re.compile(r"'{5}|'{3}|'{2}")
TAG_RE = re.compile(r"</?[A-Za-z][\w-]*(?:\s[^<>]*)?/?>")
DIRECTIVE_RE = re.compile(r"__[A-Z]{2,}__")
RULE_RE = re.compile(r"^[ \t]*-{4,}[ \t]*$", re.MULTILINE)
ENTITY_RE = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")
INTERWIKI_RE = re.compile(r"^[a-z]{2,3}(?:-[a-z]+)?:")
NAMED_ARG_RE = re.compile(r"^\s*[\w\s-]+=")
FILE_OPTION_RE = re.compile(
    r"^\s*(?:thumb|thumbnail|frame|framed|frameless|border|left|right|center|centre|none"
    r"|baseline|middle|sub|super|top|text-top|bottom|text-bottom|upright(?:\s*=?\s*[\d.]+)?"
    r"|\d*x?\d+\s*px|(?:alt|link|page|lang|class|upright)\s*=.*)\s*$",
    re.IGNORECASE | re.DOTALL,
)

# Keep-argument templates whose text is the second positional argument.
SECOND_ARGUMENT_TEMPLATES = frozenset({"lang", "transl", "translit"})

DASHES = {"mdash": "—", "—": "—", "ndash": "–", "–": "–"}
SPACED_DASH = " – "

# cleanup
EMPTY_PARENS_RE = re.compile(r"\([ \t,;]*\)|（[ \t,;、]*）")
SPACE_RUN_RE = re.compile(r"(\S)[ \t]{2,}")
TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
RESIDUE_LINE_RE = re.compile(r"^[ \t]*(?:\[\[|\]\]|\{\{|\}\})[\[\]{}| \t]*$", re.MULTILINE)
BLANK_RUN_RE = re.compile(r"\n{3,}")


def cleanup(text: str) -> str:
    """Normalize whitespace and drop markup residue.

    Idempotent: ``cleanup(cleanup(x)) == cleanup(x)``.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    previous = None
    while previous != text:
        previous = text
        text = EMPTY_PARENS_RE.sub("", text)
    text = SPACE_RUN_RE.sub(r"\1 ", text)
    text = TRAILING_SPACE_RE.sub("", text)
    text = RESIDUE_LINE_RE.sub("", text)
    text = BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


class _Protected:
    """Placeholders for ``<nowiki>`` content, restored after rewriting."""

    def __init__(self) -> None:
        self.values: List[str] = []

    def escape(self, text: str) -> str:
        def stash(match: re.Match) -> str:
            self.values.append(match.group(1))
            return f"\x00{len(self.values) - 1}\x00"

        text = NOWIKI_EMPTY_RE.sub("", text)
        return NOWIKI_RE.sub(stash, text)

    def restore(self, text: str) -> str:
        if not self.values:
            return text
        return PLACEHOLDER_RE.sub(lambda m: self.values[int(m.group(1))], text)


class Renderer:
    """Turns wikitext fragments into plain text according to a :class:`RenderConfig`."""

    def __init__(self, config: Optional[RenderConfig] = None,
                 aliases: Optional[AliasTables] = None):
        self.config = config or RenderConfig()
        self.aliases = aliases or load_alias_tables(self.config.alias_dir)
        self.markers = MarkerRegistry(self.aliases)
        self.citations = CitationFormatter(self.aliases)
        self.expander = TemplateExpander()

        a = self.aliases
        media = a.namespace_aliases("File") + a.namespace_aliases("Media")
        self._file_re = re.compile(rf"^\s*:?\s*(?:{a.alternation(media)})\s*:", re.IGNORECASE)
        self._category_re = re.compile(
            rf"^\s*(?:{a.alternation(a.namespace_aliases('Category'))})\s*:", re.IGNORECASE)
        self._switch_re = re.compile(
            rf"__(?:{a.alternation(a.aliases_for('behavior_switches'))})__", re.IGNORECASE)
        self._magic_words = frozenset(
            w.lower() for w in a.aliases_for("defaultsort") + a.aliases_for("displaytitle"))
        self._refbegin = frozenset(a.template_names("refbegin"))
        self._refend = frozenset(a.template_names("refend"))
        self._dashes = frozenset(a.template_names("dash"))

        keep = a.template_names("keep_argument")
        self._keep_names = frozenset(n for n in keep if not n.endswith("*"))
        self._keep_prefixes = tuple(n[:-1] for n in keep if n.endswith("*"))

        refbegin = a.alternation(tuple(self._refbegin))
        refend = a.alternation(tuple(self._refend))
        self._refblock_re = re.compile(
            rf"\{{\{{\s*(?:{refbegin})\s*(?:\|[^{{}}]*)?\}}\}}(.*?)\{{\{{\s*(?:{refend})\s*\}}\}}",
            re.IGNORECASE | re.DOTALL,
        )

    # -- passes ---------------------------------------------------------

    def _ref_citations(self, content: str) -> str:
        """The citation templates of a reference, formatted; other content is dropped."""
        found = []
        for start, end in iter_balanced(content):
            inner = content[start + 2:end - 2]
            if self.citations.is_citation(template_name(inner)):
                found.append(self.citations.format(inner))
        text = " ".join(c for c in found if c)
        return f" {text}" if text else ""

    def _references(self, text: str) -> str:
        text = REF_EMPTY_RE.sub("", text)
        if self.config.keep_ref:
            text = REF_RE.sub(lambda m: f"[ref]{m.group(1)}[/ref]", text)
        elif self.config.extract_citations:
            text = REF_RE.sub(lambda m: self._ref_citations(m.group(1)), text)
        else:
            text = REF_RE.sub("", text)

        def refblock(match: re.Match) -> str:
            if self.config.extract_citations:
                return match.group(1)
            return self._references_token()

        return self._refblock_re.sub(refblock, text)

    def _references_token(self) -> str:
        if self.config.marker_enabled("references"):
            return self.markers.token("references")
        return ""

    def _link(self, content: str) -> str:
        parts = split_arguments(content)
        target = parts[0].strip()
        if self._file_re.match(target):
            if not self.config.file_captions:
                return ""
            captions = [p for p in parts[1:] if p.strip() and not FILE_OPTION_RE.match(p)]
            return captions[-1].strip() if captions else ""
        if self._category_re.match(target):
            return ""
        if len(parts) > 1:
            display = parts[-1].strip()
            if display:
                return display
            # pipe trick: [[Page (disambiguation)|]]
            return re.sub(r"\s*\([^()]*\)$", "", target.lstrip(":").split(":")[-1])
        if INTERWIKI_RE.match(target):
            return ""
        return target.lstrip(":").lstrip("#")

    def _links(self, text: str) -> str:
        text = replace_nested(text, LINK_OPEN, LINK_CLOSE, self._link)
        return EXTERNAL_LINK_RE.sub(lambda m: (m.group(1) or "").strip(), text)

    def _marker_template(self, content: str) -> str:
        family = self.markers.family_for_template(template_name(content))
        if family is None:
            return TEMPLATE_OPEN + content + TEMPLATE_CLOSE
        return family.token if self.config.marker_enabled(family.name) else ""

    def _markers(self, text: str) -> str:
        text = self.markers.replace_tags(text, self.config.marker_enabled)
        return replace_nested(text, TEMPLATE_OPEN, TEMPLATE_CLOSE, self._marker_template)

    def _keep_argument(self, name: str, content: str) -> str:
        args = split_arguments(content)[1:]
        positional = [a for a in args if not NAMED_ARG_RE.match(a)]
        position = 1 if name in SECOND_ARGUMENT_TEMPLATES else 0
        if len(positional) > position:
            return positional[position].strip()
        for arg in args:
            key, _, value = arg.partition("=")
            if key.strip().lower() == "text":
                return value.strip()
        return positional[-1].strip() if positional else ""

    def _template(self, content: str) -> str:
        name = template_name(content)
        if self.citations.is_citation(name):
            return self.citations.format(content) if self.config.extract_citations else ""
        if name in self._refbegin:
            return "" if self.config.extract_citations else self._references_token()
        if name in self._refend:
            return ""
        if name.startswith("#") or name.split(":", 1)[0] in self._magic_words:
            return ""
        if name in self._dashes:
            return DASHES.get(name, SPACED_DASH)
        if self.expander.handles(name):
            return self.expander.expand(name, content)
        if name in self._keep_names or name.startswith(self._keep_prefixes):
            return self._keep_argument(name, content)
        return ""

    def _templates(self, text: str) -> str:
        return replace_nested(text, TEMPLATE_OPEN, TEMPLATE_CLOSE, self._template)

    def decode_entities(self, text: str) -> str:
        """Decode numeric and named character references; invalid code points are dropped."""
        def decode(match: re.Match) -> str:
            ref = match.group(1)
            if ref[0] == "#":
                try:
                    code = int(ref[2:], 16) if ref[1] in "xX" else int(ref[1:])
                except ValueError:
                    return ""
                if code <= 0 or code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                    logger.debug("Dropping invalid character reference &%s;", ref)
                    return ""
                return chr(code)
            value = self.aliases.entity(ref)
            return match.group() if value is None else value

        return ENTITY_RE.sub(decode, text)

    # -- public ---------------------------------------------------------

    def render(self, text: str) -> str:
        """Render a wikitext fragment to cleaned plain text."""
        protected = _Protected()
        text = protected.escape(text)
        text = BR_RE.sub("\n", text)
        text = self._references(text)
        text = self._links(text)
        text = EMPHASIS_RE.sub("", text)
        text = self._markers(text)
        text = self._templates(text)
        text = TAG_RE.sub("", text)
        text = self._switch_re.sub("", text)
        text = DIRECTIVE_RE.sub("", text)
        text = RULE_RE.sub("", text)
        text = protected.restore(text)
        text = self.decode_entities(text)
        return cleanup(text)

    def render_inline(self, text: str) -> str:
        """Light rendering for blocks kept verbatim (tables, preformatted text).

        Links, emphasis, tags and entities are rewritten; templates and the
        line layout are left as they are.
        """
        protected = _Protected()
        text = protected.escape(text)
        text = self._links(text)
        text = EMPHASIS_RE.sub("", text)
        text = TAG_RE.sub("", text)
        text = protected.restore(text)
        text = self.decode_entities(text)
        return TRAILING_SPACE_RE.sub("", text).strip("\n")

    def render_title(self, title: str) -> str:
        """Decode entities and strip links from a page title."""
        text = self._links(title)
        return " ".join(self.decode_entities(text).split())
