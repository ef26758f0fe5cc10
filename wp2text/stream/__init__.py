"""Streaming input: chunked line reading and page extraction."""

from .lines import DEFAULT_CHUNK_SIZE, ChunkedLineSource
from .pages import (
    PageExtractor,
    PageReader,
    extract_page_fields,
    is_namespace_title,
    iter_page_records,
    strip_comments,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "ChunkedLineSource",
    "PageExtractor",
    "PageReader",
    "extract_page_fields",
    "is_namespace_title",
    "iter_page_records",
    "strip_comments",
]
