"""Tests for the end-to-end pipeline."""

import bz2
import io

import pytest

from wp2text.core.config import RenderConfig
from wp2text.pipeline import (
    Orchestrator,
    dump_base_name,
    optimal_workers,
    process,
    split_dump,
)
from wp2text.renderers import build_handler

HEADER = "<mediawiki>\n  <siteinfo>\n    <sitename>Wikipedia</sitename>\n  </siteinfo>\n"


def _page(title, text):
    return (
        "  <page>\n"
        f"    <title>{title}</title>\n"
        "    <revision>\n"
        f"      <text xml:space=\"preserve\">{text}</text>\n"
        "    </revision>\n"
        "  </page>\n"
    )


def _dump(count=12):
    pages = [_page("Template:Box", "{{{1}}}")]
    for i in range(count):
        pages.append(_page(
            f"Page {i}",
            f"Page {i} is an article.\n\n== Details ==\n'''Bold''' fact {i}.\n\n[[Category:Numbers]]",
        ))
    return (HEADER + "".join(pages) + "</mediawiki>\n").encode("utf-8")


def _read_all(paths):
    return "".join(p.read_text(encoding="utf-8") for p in paths)


def failing_handler(article):
    if article.title == "Page 1":
        raise ValueError("boom")
    return article.title + "\n"


def test_optimal_workers():
    assert optimal_workers(1) == 1
    assert optimal_workers(4) == 4
    assert optimal_workers(6) == 5
    assert optimal_workers(10) == 8
    assert optimal_workers(64) == 8
    assert optimal_workers(0) == 1


def test_dump_base_name():
    assert dump_base_name("/data/enwiki-latest-pages-articles.xml.bz2") == "enwiki-latest-pages-articles"
    assert dump_base_name("small.xml") == "small"


class TestOrchestrator:
    """Test Orchestrator."""

    def test_sequential_run(self, tmp_path):
        """Articles are rendered in order; namespace pages are skipped."""
        orchestrator = Orchestrator(build_handler(), worker_count=1)
        stats = orchestrator.run(io.BytesIO(_dump(3)), tmp_path, "dump")

        assert stats.pages_read == 4
        assert stats.processed == 3
        assert stats.skipped == 1
        assert not stats.failed
        text = _read_all(stats.output_files)
        assert text.startswith(
            "[[Page 0]]\n\nPage 0 is an article.\n\nDetails\n\nBold fact 0.\n\nCATEGORIES: Numbers\n\n"
        )
        assert "Template:Box" not in text
        assert text.index("[[Page 1]]") < text.index("[[Page 2]]")

    def test_pages_never_split_across_files(self, tmp_path):
        orchestrator = Orchestrator(build_handler(), file_size_limit=150, worker_count=1)
        stats = orchestrator.run(io.BytesIO(_dump()), tmp_path, "dump")

        assert len(stats.output_files) > 1
        for path in stats.output_files:
            content = path.read_text(encoding="utf-8")
            assert content.startswith("[[Page ")
            assert content.endswith("CATEGORIES: Numbers\n\n")

        single = Orchestrator(build_handler(), file_size_limit=0, worker_count=1)
        whole = single.run(io.BytesIO(_dump()), tmp_path / "single", "dump")
        assert _read_all(stats.output_files) == _read_all(whole.output_files)

    def test_parallel_matches_sequential(self, tmp_path):
        """Output does not depend on the number of workers."""
        sequential = Orchestrator(build_handler(), worker_count=1).run(
            io.BytesIO(_dump()), tmp_path / "seq", "dump")
        parallel = Orchestrator(build_handler(), worker_count=3, batch_size=5).run(
            io.BytesIO(_dump()), tmp_path / "par", "dump")
        assert _read_all(parallel.output_files) == _read_all(sequential.output_files)
        assert parallel.processed == sequential.processed == 12

    def test_failed_page_does_not_stop_the_run(self, tmp_path):
        orchestrator = Orchestrator(failing_handler, worker_count=1)
        stats = orchestrator.run(io.BytesIO(_dump(3)), tmp_path, "dump")

        assert [f.title for f in stats.failed] == ["Page 1"]
        assert "ValueError: boom" in stats.failed[0].reason
        assert _read_all(stats.output_files) == "Page 0\nPage 2\n"

    def test_failed_page_in_worker(self, tmp_path):
        """Failures raised in worker processes are reported like sequential ones."""
        sequential = Orchestrator(failing_handler, worker_count=1).run(
            io.BytesIO(_dump(5)), tmp_path / "seq", "dump")
        parallel = Orchestrator(failing_handler, worker_count=2, batch_size=2).run(
            io.BytesIO(_dump(5)), tmp_path / "par", "dump")

        assert parallel.failed == sequential.failed
        assert [f.title for f in parallel.failed] == ["Page 1"]
        assert parallel.processed == sequential.processed == 4
        assert _read_all(parallel.output_files) == _read_all(sequential.output_files) == \
            "Page 0\nPage 2\nPage 3\nPage 4\n"

    def test_empty_articles_are_skipped(self, tmp_path):
        orchestrator = Orchestrator(lambda article: None, worker_count=1)
        stats = orchestrator.run(io.BytesIO(_dump(2)), tmp_path, "dump")
        assert stats.processed == 0
        assert stats.skipped == 3
        assert stats.output_files == []

    def test_json_extension(self, tmp_path):
        handler = build_handler(RenderConfig(format="json"))
        stats = Orchestrator(handler, worker_count=1).run(io.BytesIO(_dump(1)), tmp_path, "dump")
        assert [p.name for p in stats.output_files] == ["dump-1.jsonl"]


@pytest.mark.parametrize("compress", [False, True])
def test_process(tmp_path, compress):
    """process() reads plain and bz2-compressed dumps."""
    data = _dump(2)
    name = "wiki.xml.bz2" if compress else "wiki.xml"
    path = tmp_path / name
    path.write_bytes(bz2.compress(data) if compress else data)

    paths = process(path, tmp_path / "out", worker_count=1)
    assert [p.name for p in paths] == ["wiki-1.txt"]
    assert "[[Page 1]]" in paths[0].read_text(encoding="utf-8")


def test_split_dump(tmp_path):
    """Each part is a well-formed dump holding whole pages."""
    paths = split_dump(io.BytesIO(_dump(6)), tmp_path, "wiki", file_size_limit=400)
    assert len(paths) > 1
    pages = 0
    for path in paths:
        content = path.read_text(encoding="utf-8")
        assert content.startswith(HEADER)
        assert content.endswith("  </page>\n</mediawiki>\n")
        assert content.count("<page>") == content.count("</page>")
        pages += content.count("<page>")
    assert pages == 7
