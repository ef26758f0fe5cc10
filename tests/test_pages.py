"""Tests for page extraction."""

import io

from wp2text.stream.lines import ChunkedLineSource
from wp2text.stream.pages import (
    PageExtractor,
    PageReader,
    extract_page_fields,
    is_namespace_title,
    iter_page_records,
    strip_comments,
)


def _extractor(text: str, chunk_size: int = 1024) -> PageExtractor:
    return PageExtractor(ChunkedLineSource(io.BytesIO(text.encode("utf-8")), chunk_size=chunk_size))


def _page(title: str, text: str) -> str:
    return (
        "  <page>\n"
        f"    <title>{title}</title>\n"
        "    <ns>0</ns>\n"
        "    <revision>\n"
        f"      <text xml:space=\"preserve\">{text}</text>\n"
        "    </revision>\n"
        "  </page>\n"
    )


DUMP = (
    "<mediawiki>\n"
    "  <siteinfo><sitename>Wikipedia</sitename></siteinfo>\n"
    + _page("Alpha", "Alpha text.")
    + _page("Category:Things", "Meta.")
    + _page("Beta", "Beta &lt;b&gt;bold&lt;/b&gt; &amp; more.")
    + "</mediawiki>\n"
)


class TestPageExtractor:
    """Test PageExtractor boundary detection."""

    def test_pages_are_carved_out(self):
        """Each page includes both markers; lines outside pages are dropped."""
        pages = list(_extractor(DUMP))
        assert len(pages) == 3
        assert all(p.complete for p in pages)
        assert pages[0].text.lstrip().startswith("<page>")
        assert pages[0].text.rstrip().endswith("</page>")
        assert "siteinfo" not in pages[0].text

    def test_small_chunks_give_same_pages(self):
        """Chunk size does not affect the result."""
        assert [p.text for p in _extractor(DUMP, chunk_size=7)] == [p.text for p in _extractor(DUMP)]

    def test_truncated_page_is_returned(self):
        """A page still open at end of stream is returned as incomplete."""
        pages = list(_extractor("<page>\n<title>Cut</title>\n<text>abc"))
        assert len(pages) == 1
        assert not pages[0].complete
        assert pages[0].text.endswith("abc")

    def test_end_tag_in_middle_of_line_does_not_close(self):
        """Only a line ending with the end tag closes the page."""
        text = "<page>\nsee </page> here\nmore\n</page>\n"
        pages = list(_extractor(text))
        assert len(pages) == 1
        assert "more" in pages[0].text

    def test_single_line_page(self):
        """A page written on one line is recognized."""
        pages = list(_extractor("<page><title>T</title><text>x</text></page>\n"))
        assert len(pages) == 1
        assert pages[0].complete

    def test_start_with_attributes(self):
        """A start tag carrying attributes opens a page."""
        pages = list(_extractor('<page id="1">\n</page>\n'))
        assert len(pages) == 1

    def test_new_start_inside_open_page(self):
        """A start line inside an open page closes it and opens the next."""
        pages = list(_extractor("<page>\nfirst\n<page>\nsecond\n</page>\n"))
        assert [p.complete for p in pages] == [False, True]
        assert "second" in pages[1].text
        assert "second" not in pages[0].text

    def test_empty_stream(self):
        """No pages in an empty stream."""
        assert _extractor("").next_page() is None


def test_extract_page_fields_decodes_entities():
    """Title and text are read from the XML with entities decoded."""
    title, text = extract_page_fields(_page("Beta", "a &lt;ref&gt;x&lt;/ref&gt; &amp; b"))
    assert title == "Beta"
    assert text == "a <ref>x</ref> & b"


def test_extract_page_fields_missing_text():
    """Pages without a text element yield None."""
    assert extract_page_fields("<page><title>Only</title></page>") is None


def test_is_namespace_title():
    """Titles with a colon are namespace pages."""
    assert is_namespace_title("Category:Things")
    assert is_namespace_title("Template:Infobox")
    assert not is_namespace_title("Alpha")


def test_strip_comments_keeps_line_count():
    """Comments are replaced by the newlines they contained."""
    text = "a<!-- one\ntwo\nthree -->b\nc<!-- x -->d"
    assert strip_comments(text) == "a\n\nb\ncd"


def test_strip_comments_unterminated():
    """An unterminated comment stays literal."""
    assert strip_comments("a <!-- open") == "a <!-- open"


class TestPageReader:
    """Test PageReader."""

    def test_namespace_pages_skipped(self):
        """Namespace pages are counted but never yielded."""
        reader = PageReader(io.BytesIO(DUMP.encode("utf-8")))
        records = list(reader)
        assert [r.title for r in records] == ["Alpha", "Beta"]
        assert [r.index for r in records] == [0, 1]
        assert reader.pages_read == 3
        assert reader.skipped == 1
        assert not reader.failures

    def test_entities_decoded(self):
        """Record text is the decoded wikitext."""
        records = list(iter_page_records(io.BytesIO(DUMP.encode("utf-8"))))
        assert records[1].text == "Beta <b>bold</b> & more."

    def test_page_without_title_is_a_failure(self):
        """A page missing its title is recorded and skipped."""
        dump = "<page>\n<text>orphan</text>\n</page>\n" + _page("Gamma", "g")
        reader = PageReader(io.BytesIO(dump.encode("utf-8")))
        assert [r.title for r in reader] == ["Gamma"]
        assert len(reader.failures) == 1
        assert "missing" in reader.failures[0].reason
