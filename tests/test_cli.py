"""Tests for the command line interface."""

from click.testing import CliRunner

from wp2text.cli import cli

DUMP = """<mediawiki>
  <page>
    <title>Test</title>
    <text xml:space="preserve">Test is a '''test'''.
[[Category:Tests]]</text>
  </page>
  <page>
    <title>Category:Tests</title>
    <text xml:space="preserve">Meta.</text>
  </page>
</mediawiki>
"""


def _write_dump(tmp_path):
    path = tmp_path / "wiki.xml"
    path.write_text(DUMP, encoding="utf-8")
    return path


def test_extract_command(tmp_path):
    """Extract writes the rendered article and reports counts."""
    dump = _write_dump(tmp_path)
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(cli, ["extract", str(dump), "--out", str(out_dir), "--workers", "1"])

    assert result.exit_code == 0, result.output
    assert "1 articles written to 1 file(s)" in result.output
    assert "2 pages read, 1 skipped" in result.output
    assert (out_dir / "wiki-1.txt").read_text(encoding="utf-8") == \
        "[[Test]]\n\nTest is a test.\n\nCATEGORIES: Tests\n\n"


def test_extract_with_options(tmp_path):
    dump = _write_dump(tmp_path)
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(cli, [
        "extract", str(dump), "--out", str(out_dir), "--workers", "1",
        "--file-size", "0", "--no-title", "--no-category", "--format", "json",
    ])

    assert result.exit_code == 0, result.output
    assert (out_dir / "wiki.jsonl").read_text(encoding="utf-8").startswith('{"title": "Test"')


def test_extract_with_config_file(tmp_path):
    dump = _write_dump(tmp_path)
    config = tmp_path / "config.yaml"
    config.write_text("mode: category_only\n", encoding="utf-8")
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(cli, [
        "extract", str(dump), "--out", str(out_dir), "--workers", "1", "--config", str(config),
    ])

    assert result.exit_code == 0, result.output
    assert (out_dir / "wiki-1.txt").read_text(encoding="utf-8") == "Test\tTests\n"


def test_extract_bad_markers(tmp_path):
    dump = _write_dump(tmp_path)
    result = CliRunner().invoke(cli, [
        "extract", str(dump), "--out", str(tmp_path / "out"), "--markers", "sparkles",
    ])
    assert result.exit_code != 0
    assert "Unknown marker" in result.output


def test_extract_missing_input(tmp_path):
    result = CliRunner().invoke(cli, ["extract", str(tmp_path / "none.xml"), "--out", str(tmp_path)])
    assert result.exit_code != 0


def test_split_command(tmp_path):
    dump = _write_dump(tmp_path)
    result = CliRunner().invoke(cli, ["split", str(dump), "--out", str(tmp_path / "parts")])

    assert result.exit_code == 0, result.output
    assert "Wrote 1 file(s)" in result.output
    content = (tmp_path / "parts" / "wiki-1.xml").read_text(encoding="utf-8")
    assert content.startswith("<mediawiki>\n  <page>")
    assert content.endswith("</mediawiki>\n")


def test_render_command():
    result = CliRunner().invoke(cli, ["render", "<math>E=mc^2</math> <code>x=1</code>"])
    assert result.exit_code == 0
    assert result.output == "[MATH] [CODE]\n"


def test_render_from_stdin():
    result = CliRunner().invoke(cli, ["render", "--title", "Page", "--markers", "none"],
                                input="'''Bold''' {{cite web|title=T}} text<math>x</math>\n")
    assert result.exit_code == 0
    assert result.output == "[[Page]]\n\nBold text\n"


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
