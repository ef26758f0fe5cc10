"""Tests for rotated output files."""

import pytest

from wp2text.output import OutputWriter


def test_rotation_between_records(tmp_path):
    """A new file starts once the current one reaches the limit."""
    with OutputWriter(tmp_path, "dump", file_size_limit=10) as writer:
        writer.write("aaaaaa\n")   # 7 bytes
        writer.write("bbbbbb\n")   # 14 bytes, limit reached
        writer.write("cc\n")
    assert [p.name for p in writer.paths] == ["dump-1.txt", "dump-2.txt"]
    assert (tmp_path / "dump-1.txt").read_text() == "aaaaaa\nbbbbbb\n"
    assert (tmp_path / "dump-2.txt").read_text() == "cc\n"


def test_record_larger_than_limit_is_not_split(tmp_path):
    writer = OutputWriter(tmp_path, "dump", file_size_limit=4)
    writer.write("x" * 20 + "\n")
    writer.write("y\n")
    paths = writer.close()
    assert (tmp_path / "dump-1.txt").read_text() == "x" * 20 + "\n"
    assert paths[1].read_text() == "y\n"


def test_single_file_when_limit_is_zero(tmp_path):
    with OutputWriter(tmp_path, "dump", file_size_limit=0) as writer:
        for i in range(100):
            writer.write(f"record {i}\n")
    assert writer.paths == [tmp_path / "dump.txt"]


def test_no_records_no_files(tmp_path):
    """Empty files are never left behind."""
    writer = OutputWriter(tmp_path / "out", "dump")
    writer.write("")
    assert writer.close() == []
    assert list((tmp_path / "out").iterdir()) == []


def test_tmp_name_until_closed(tmp_path):
    """A file carries the .tmp suffix while it is being written."""
    writer = OutputWriter(tmp_path, "dump", extension="jsonl")
    writer.write("{}\n")
    assert (tmp_path / "dump-1.jsonl.tmp").exists()
    assert not (tmp_path / "dump-1.jsonl").exists()
    writer.close()
    assert (tmp_path / "dump-1.jsonl").exists()
    assert not (tmp_path / "dump-1.jsonl.tmp").exists()


def test_header_and_footer_in_every_file(tmp_path):
    with OutputWriter(tmp_path, "dump", extension="xml", file_size_limit=1,
                      header="<mediawiki>\n", footer="</mediawiki>\n") as writer:
        writer.write("<page>a</page>\n")
        writer.write("<page>b</page>\n")
    texts = [p.read_text() for p in writer.paths]
    assert texts == [
        "<mediawiki>\n<page>a</page>\n</mediawiki>\n",
        "<mediawiki>\n<page>b</page>\n</mediawiki>\n",
    ]


def test_utf8_sizes(tmp_path):
    """The limit counts encoded bytes."""
    with OutputWriter(tmp_path, "dump", file_size_limit=6) as writer:
        writer.write("東京\n")  # 7 bytes
        writer.write("x\n")
    assert len(writer.paths) == 2


def test_negative_limit():
    with pytest.raises(ValueError):
        OutputWriter(".", "dump", file_size_limit=-1)
