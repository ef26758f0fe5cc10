"""Bounded-memory line reader over a binary stream."""

import logging
from typing import BinaryIO, Iterator, Optional

from ..core.errors import IoFailure

logger = logging.getLogger(__name__)

# Bytes requested from the underlying stream per read (10 MiB)
DEFAULT_CHUNK_SIZE = 10_485_760

NEWLINE = 0x0A


class ChunkedLineSource:
    """Reads a byte stream in fixed-size chunks and hands out whole lines.

    The pending bytes live in one ``bytearray`` with a read cursor. Everything
    before the cursor has been consumed; after it there are zero or more
    complete lines followed by at most one partial line (the tail). The
    consumed prefix is dropped once it outgrows the unread part, so memory
    stays bounded by roughly one chunk plus the longest line.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 encoding: str = "utf-8"):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.stream = stream
        self.chunk_size = chunk_size
        self.encoding = encoding
        self._buffer = bytearray()
        self._cursor = 0
        self._exhausted = False
        self.bytes_read = 0
        self.lines_read = 0

    def read_chunk(self) -> Optional[bytes]:
        """Read one chunk from the stream; ``None`` at end of stream.

        Raises:
            IoFailure: if the underlying read fails.
        """
        if self._exhausted:
            return None
        try:
            chunk = self.stream.read(self.chunk_size)
        except (OSError, EOFError) as e:
            self._exhausted = True
            raise IoFailure(f"Read failed after {self.bytes_read} bytes: {e}",
                            bytes_read=self.bytes_read) from e
        if not chunk:
            self._exhausted = True
            return None
        if isinstance(chunk, str):
            chunk = chunk.encode(self.encoding)
        self.bytes_read += len(chunk)
        return chunk

    def _compact(self) -> None:
        if self._cursor and self._cursor * 2 >= len(self._buffer):
            del self._buffer[:self._cursor]
            self._cursor = 0

    def next_line(self) -> Optional[str]:
        """Next line including its trailing newline.

        The final fragment of a stream that does not end with a newline is
        returned without one. Returns ``None`` once everything is consumed.
        """
        newline_at = self._buffer.find(NEWLINE, self._cursor)
        while newline_at < 0:
            chunk = self.read_chunk()
            if chunk is None:
                break
            self._compact()
            # only the newly appended bytes can hold a newline
            start = len(self._buffer)
            self._buffer += chunk
            newline_at = self._buffer.find(NEWLINE, start)

        if newline_at < 0:
            if self._cursor >= len(self._buffer):
                return None
            end = len(self._buffer)
        else:
            end = newline_at + 1

        raw = bytes(self._buffer[self._cursor:end])
        self._cursor = end
        self._compact()
        self.lines_read += 1
        return raw.decode(self.encoding, errors="replace")

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line
