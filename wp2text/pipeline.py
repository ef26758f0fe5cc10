"""Read, parse, render and write a dump, optionally across worker processes."""

import bz2
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from functools import lru_cache
from itertools import islice
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Iterator, List, Optional, Tuple, Union

from .core.config import RenderConfig
from .core.errors import IoFailure, PageProcessingError
from .models import Article, PageFailure, PageRecord, RunStats
from .output import DEFAULT_FILE_SIZE, OutputWriter
from .parse import WikitextParser
from .renderers import build_handler
from .stream.lines import DEFAULT_CHUNK_SIZE, ChunkedLineSource
from .stream.pages import PageExtractor, PageReader

logger = logging.getLogger(__name__)

MAX_WORKERS = 8
DUMP_SUFFIXES = (".bz2", ".xml")

Handler = Callable[[Article], Optional[str]]
PageResult = Tuple[int, Optional[str]]


def optimal_workers(cpu_count: Optional[int] = None) -> int:
    """Worker processes for ``cpu_count`` cores, leaving headroom on larger machines."""
    cores = cpu_count if cpu_count is not None else (os.cpu_count() or 1)
    if cores <= 4:
        workers = cores
    elif cores <= 8:
        workers = cores - 1
    else:
        workers = int(cores * 0.8)
    return max(1, min(workers, MAX_WORKERS))


@lru_cache(maxsize=None)
def _default_parser() -> WikitextParser:
    return WikitextParser()


def process_record(handler: Handler, record: PageRecord) -> PageResult:
    """Parse and render one page.

    Handlers with a ``parse(text, title)`` method parse the page themselves;
    plain callables get the default parser.

    Raises:
        PageProcessingError: if parsing or rendering raised.
    """
    try:
        parse = getattr(handler, "parse", None)
        if parse is not None:
            article = parse(record.text, record.title)
        else:
            article = _default_parser().parse(record.text, record.title)
        return record.index, handler(article)
    except Exception as e:
        raise PageProcessingError(record.title, f"{type(e).__name__}: {e}", index=record.index) from e


# handler installed once per worker process
_worker_handler: Optional[Handler] = None


def _init_worker(handler: Handler) -> None:
    global _worker_handler
    _worker_handler = handler


def _process_in_worker(record: PageRecord) -> PageResult:
    return process_record(_worker_handler, record)


def batched(records: Iterable[PageRecord], size: int) -> Iterator[List[PageRecord]]:
    iterator = iter(records)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def dump_base_name(path: Union[str, Path]) -> str:
    """``enwiki-latest-pages.xml.bz2`` -> ``enwiki-latest-pages``."""
    name = Path(path).name
    for suffix in DUMP_SUFFIXES:
        if name.endswith(suffix):
            name = name[:-len(suffix)]
    return name or "output"


def open_input(path: Union[str, Path]) -> BinaryIO:
    """Open a dump for binary reading, decompressing ``.bz2`` files."""
    path = Path(path)
    try:
        if path.suffix == ".bz2":
            return bz2.open(path, "rb")
        return open(path, "rb")
    except OSError as e:
        raise IoFailure(f"Cannot open {path}: {e}") from e


class Orchestrator:
    """Drives pages from a dump stream through a handler into rotated files.

    With one worker pages are handled in the calling process. With more, a
    batch of pages is submitted to a process pool, each task tagged with its
    position in the batch; results land in a fixed-size table and are written
    in that order, so output is identical to a sequential run.
    """

    def __init__(self, handler: Optional[Handler] = None,
                 file_size_limit: int = DEFAULT_FILE_SIZE,
                 worker_count: Optional[int] = None,
                 batch_size: Optional[int] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 extension: Optional[str] = None):
        self.handler = handler if handler is not None else build_handler()
        self.file_size_limit = file_size_limit
        self.worker_count = worker_count if worker_count else optimal_workers()
        self.batch_size = batch_size or self.worker_count
        self.chunk_size = chunk_size
        if extension is None:
            config = getattr(self.handler, "config", None)
            extension = "jsonl" if config is not None and config.format == "json" else "txt"
        self.extension = extension

    def run(self, stream: BinaryIO, output_dir: Union[str, Path], base_name: str) -> RunStats:
        """Process every page of ``stream``; returns the run counters."""
        reader = PageReader(stream, chunk_size=self.chunk_size)
        stats = RunStats()
        failures: List[PageFailure] = []

        logger.info("Processing %s with %d worker(s)", base_name, self.worker_count)
        writer = OutputWriter(output_dir, base_name, extension=self.extension,
                              file_size_limit=self.file_size_limit)
        with writer:
            if self.worker_count == 1:
                results = self._run_sequential(reader, failures)
            else:
                results = self._run_parallel(reader, failures)
            for _, text in results:
                if text:
                    writer.write(text)
                    stats.processed += 1
                else:
                    stats.skipped += 1

        stats.output_files = list(writer.paths)
        stats.pages_read = reader.pages_read
        stats.skipped += reader.skipped
        stats.failed = reader.failures + failures
        logger.info(
            "Done: %d pages read, %d processed, %d skipped, %d failed",
            stats.pages_read, stats.processed, stats.skipped, len(stats.failed),
        )
        return stats

    def _failed(self, error: PageProcessingError, failures: List[PageFailure]) -> None:
        logger.warning("Failed to process %r: %s", error.title, error.reason)
        failures.append(PageFailure(error.title, error.reason))

    def _run_sequential(self, records: Iterable[PageRecord],
                        failures: List[PageFailure]) -> Iterator[PageResult]:
        for record in records:
            try:
                result = process_record(self.handler, record)
            except PageProcessingError as e:
                self._failed(e, failures)
                continue
            yield result

    def _run_parallel(self, records: Iterable[PageRecord],
                      failures: List[PageFailure]) -> Iterator[PageResult]:
        with ProcessPoolExecutor(max_workers=self.worker_count, initializer=_init_worker,
                                 initargs=(self.handler,)) as pool:
            for batch in batched(records, self.batch_size):
                slots = {pool.submit(_process_in_worker, record): slot
                         for slot, record in enumerate(batch)}
                completed: List[Optional[PageResult]] = [None] * len(batch)
                errors: List[Optional[PageProcessingError]] = [None] * len(batch)
                for future in as_completed(slots):
                    slot = slots[future]
                    try:
                        completed[slot] = future.result()
                    except PageProcessingError as e:
                        errors[slot] = e
                for result, error in zip(completed, errors):
                    if error is not None:
                        self._failed(error, failures)
                    else:
                        yield result


def process(input: Union[str, Path], output_dir: Union[str, Path],
            file_size_limit_bytes: int = DEFAULT_FILE_SIZE,
            worker_count: Optional[int] = None,
            config: Optional[RenderConfig] = None) -> List[Path]:
    """Convert the dump at ``input`` into text files under ``output_dir``.

    Returns:
        The output file paths, in order
    """
    orchestrator = Orchestrator(build_handler(config), file_size_limit=file_size_limit_bytes,
                                worker_count=worker_count)
    with open_input(input) as stream:
        stats = orchestrator.run(stream, output_dir, dump_base_name(input))
    return stats.output_files


def split_dump(stream: BinaryIO, output_dir: Union[str, Path], base_name: str,
               file_size_limit: int = DEFAULT_FILE_SIZE,
               chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[Path]:
    """Split a dump into smaller XML files, cutting only between pages.

    Every file repeats the dump's header (everything before the first page)
    and is closed with ``</mediawiki>`` when the header opened it.
    """
    source = ChunkedLineSource(stream, chunk_size=chunk_size)
    extractor = PageExtractor(source)
    header: List[str] = []
    for line in source:
        if extractor.is_start(line):
            extractor.unread(line)
            break
        header.append(line)
    header_text = "".join(header)
    footer = "</mediawiki>\n" if "<mediawiki" in header_text else ""

    writer = OutputWriter(output_dir, base_name, extension="xml",
                          file_size_limit=file_size_limit, header=header_text, footer=footer)
    pages = 0
    with writer:
        for page in extractor:
            text = page.text if page.text.endswith("\n") else page.text + "\n"
            writer.write(text)
            pages += 1
    logger.info("Split %d pages into %d file(s)", pages, len(writer.paths))
    return list(writer.paths)
