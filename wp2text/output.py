"""Size-rotated output files."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .core.errors import OutputFailure
from .models import OutputFile

logger = logging.getLogger(__name__)

# Rotate once a file reaches 10 MiB
DEFAULT_FILE_SIZE = 10 * 1024 * 1024
TMP_SUFFIX = ".tmp"


class OutputWriter:
    """Writes records to ``<base>-<index>.<ext>`` files, rotating by size.

    A file is written under a ``.tmp`` name and renamed when it is closed.
    Rotation happens only between :meth:`write` calls, so a record (one
    page) never straddles two files. ``file_size_limit=0`` writes a single
    ``<base>.<ext>`` file. Files that received no records are deleted.

    ``header`` and ``footer`` are written at the start and end of every file.
    """

    def __init__(self, output_dir: Union[str, Path], base_name: str, extension: str = "txt",
                 file_size_limit: int = DEFAULT_FILE_SIZE, header: str = "", footer: str = ""):
        if file_size_limit < 0:
            raise ValueError("file_size_limit must not be negative")
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        self.extension = extension.lstrip(".")
        self.file_size_limit = file_size_limit
        self.header = header.encode("utf-8")
        self.footer = footer.encode("utf-8")
        self.paths: List[Path] = []
        self._current: Optional[OutputFile] = None
        self._handle = None
        self._records = 0
        self._index = 0

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputFailure(f"Cannot create output directory {self.output_dir}: {e}") from e

    def path_for(self, index: int) -> Path:
        """Final path of output file number ``index`` (1-based)."""
        if self.file_size_limit == 0:
            return self.output_dir / f"{self.base_name}.{self.extension}"
        return self.output_dir / f"{self.base_name}-{index}.{self.extension}"

    @staticmethod
    def tmp_path(path: Path) -> Path:
        return path.with_name(path.name + TMP_SUFFIX)

    def _open_next(self) -> None:
        self._index += 1
        path = self.path_for(self._index)
        try:
            self._handle = open(self.tmp_path(path), "wb")
            self._handle.write(self.header)
        except OSError as e:
            raise OutputFailure(f"Cannot open {path}: {e}") from e
        self._current = OutputFile(index=self._index, path=path, size=len(self.header))
        self._records = 0
        logger.debug("Opened output file %s", path)

    def _finish(self) -> None:
        current, handle = self._current, self._handle
        self._current, self._handle = None, None
        if current is None:
            return
        tmp = self.tmp_path(current.path)
        try:
            if self._records:
                handle.write(self.footer)
            handle.close()
            if self._records:
                tmp.replace(current.path)
                self.paths.append(current.path)
                logger.info("Wrote %s (%d bytes)", current.path, current.size + len(self.footer))
            else:
                tmp.unlink()
        except OSError as e:
            raise OutputFailure(f"Cannot finish {current.path}: {e}") from e

    def write(self, text: str) -> None:
        """Append one record, rotating first if the current file is full."""
        data = text.encode("utf-8")
        if not data:
            return
        if self._current is None:
            self._open_next()
        elif self.file_size_limit and self._current.size >= self.file_size_limit:
            self._finish()
            self._open_next()
        try:
            self._handle.write(data)
        except OSError as e:
            raise OutputFailure(f"Write to {self._current.path} failed: {e}") from e
        self._current.size += len(data)
        self._records += 1

    def close(self) -> List[Path]:
        """Finish the open file and return every path written, in order."""
        self._finish()
        return list(self.paths)

    def __enter__(self) -> "OutputWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
