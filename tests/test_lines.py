"""Tests for the chunked line reader."""

import io

import pytest

from wp2text.core.errors import IoFailure
from wp2text.stream.lines import DEFAULT_CHUNK_SIZE, ChunkedLineSource


class FailingStream(io.RawIOBase):
    """Stream that returns one chunk and then fails."""

    def __init__(self, first: bytes):
        self.first = first
        self.calls = 0

    def readable(self):
        return True

    def read(self, size=-1):
        self.calls += 1
        if self.calls == 1:
            return self.first
        raise OSError("device went away")


class TestChunkedLineSource:
    """Test ChunkedLineSource."""

    def test_default_chunk_size(self):
        """The reference chunk size is 10 MiB."""
        assert DEFAULT_CHUNK_SIZE == 10_485_760

    def test_lines_keep_newlines(self):
        """Complete lines are returned with their trailing newline."""
        source = ChunkedLineSource(io.BytesIO(b"one\ntwo\nthree\n"))
        assert list(source) == ["one\n", "two\n", "three\n"]

    def test_final_fragment_without_newline(self):
        """The last partial line is returned without a newline, then None."""
        source = ChunkedLineSource(io.BytesIO(b"a\nb"))
        assert source.next_line() == "a\n"
        assert source.next_line() == "b"
        assert source.next_line() is None
        assert source.next_line() is None

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 64])
    def test_lines_coalesced_across_chunks(self, chunk_size):
        """Lines longer than a chunk are assembled from several reads."""
        data = b"first line\nsecond, much longer line\n\nlast"
        source = ChunkedLineSource(io.BytesIO(data), chunk_size=chunk_size)
        assert "".join(source) == data.decode()
        assert source.bytes_read == len(data)

    def test_multibyte_sequence_split_across_chunks(self):
        """A UTF-8 character split between two reads decodes intact."""
        data = "café 東京\n".encode("utf-8")
        source = ChunkedLineSource(io.BytesIO(data), chunk_size=4)
        assert source.next_line() == "café 東京\n"

    def test_invalid_bytes_replaced(self):
        """Undecodable bytes never abort the stream."""
        source = ChunkedLineSource(io.BytesIO(b"ok\xff\nnext\n"))
        assert source.next_line() == "ok�\n"
        assert source.next_line() == "next\n"

    def test_empty_stream(self):
        """An empty stream yields no lines."""
        source = ChunkedLineSource(io.BytesIO(b""))
        assert source.read_chunk() is None
        assert source.next_line() is None

    def test_read_chunk(self):
        """read_chunk returns raw chunks and None at end of stream."""
        source = ChunkedLineSource(io.BytesIO(b"abcdef"), chunk_size=4)
        assert source.read_chunk() == b"abcd"
        assert source.read_chunk() == b"ef"
        assert source.read_chunk() is None

    def test_counts_lines(self):
        """lines_read counts every returned line."""
        source = ChunkedLineSource(io.BytesIO(b"a\nb\nc"))
        list(source)
        assert source.lines_read == 3

    def test_read_error_raises_io_failure(self):
        """A failing read is reported, not mistaken for end of stream."""
        source = ChunkedLineSource(FailingStream(b"partial"), chunk_size=7)
        with pytest.raises(IoFailure) as excinfo:
            source.next_line()
        assert excinfo.value.bytes_read == 7

    def test_invalid_chunk_size(self):
        """Chunk size must be positive."""
        with pytest.raises(ValueError):
            ChunkedLineSource(io.BytesIO(b""), chunk_size=0)

    def test_many_lines_small_chunks(self):
        """The buffer is compacted without losing or reordering lines."""
        lines = [f"line {i}\n" for i in range(500)]
        source = ChunkedLineSource(io.BytesIO("".join(lines).encode()), chunk_size=13)
        assert list(source) == lines
