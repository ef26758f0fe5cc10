"""Command line interface for wp2text."""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .core.config import FORMATS, MODES, RenderConfig
from .core.errors import Wp2TextError
from .pipeline import Orchestrator, dump_base_name, open_input, optimal_workers, split_dump
from .renderers import build_handler

MEGABYTE = 1024 * 1024


def _setup_logging(verbose: int) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_config(config_file: Optional[str], overrides: Dict[str, Any]) -> RenderConfig:
    config = RenderConfig.from_file(Path(config_file)) if config_file else RenderConfig()
    return config.merged(**overrides)


@click.group()
@click.version_option()
def cli() -> None:
    """Convert Wikipedia XML dumps to plain text."""
    pass


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option("--out", required=True, type=click.Path(file_okay=False), help="Output directory")
@click.option("--file-size", default=10, show_default=True, type=click.IntRange(min=0),
              help="Rotate output files at this size in MB (0 = single file)")
@click.option("--workers", type=click.IntRange(min=1), help="Worker processes (default: from CPU count)")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="YAML file with rendering options")
@click.option("--format", "output_format", type=click.Choice(FORMATS), help="Output format")
@click.option("--mode", type=click.Choice(MODES), help="What to extract from each article")
@click.option("--markers", help="Marker families to keep: all, none or a comma-separated list")
@click.option("--sections", help="Comma-separated section names to extract (summary = lead)")
@click.option("--extract-citations/--no-extract-citations", default=None,
              help="Format citation templates instead of removing them")
@click.option("--title/--no-title", "keep_title", default=None, help="Emit [[Title]] headers")
@click.option("--heading/--no-heading", "keep_heading", default=None, help="Emit section headings")
@click.option("--list/--no-list", "keep_list", default=None, help="Emit list items")
@click.option("--table/--no-table", "keep_table", default=None, help="Emit table markup instead of [TABLE]")
@click.option("--pre/--no-pre", "keep_pre", default=None, help="Emit preformatted blocks")
@click.option("--redirect/--no-redirect", "keep_redirect", default=None, help="Emit REDIRECT lines")
@click.option("--multiline/--no-multiline", "keep_multiline_template", default=None,
              help="Emit the text of block templates")
@click.option("--category/--no-category", "keep_category", default=None, help="Emit category footers")
@click.option("--ref/--no-ref", "keep_ref", default=None, help="Keep <ref> content as [ref]...[/ref]")
@click.option("--strip-markers/--no-strip-markers", "strip_list_markers", default=None,
              help="Strip list and preformatting markers")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug output)")
def extract(input_path: str, out: str, file_size: int, workers: Optional[int],
            config_file: Optional[str], output_format: Optional[str], mode: Optional[str],
            markers: Optional[str], sections: Optional[str], verbose: int, **flags: Any) -> None:
    """Extract plain text from a (optionally .bz2 compressed) dump."""
    _setup_logging(verbose)
    overrides = dict(flags, format=output_format, mode=mode, markers=markers)
    if sections:
        overrides["sections"] = [s.strip() for s in sections.split(",")]

    try:
        config = _load_config(config_file, overrides)
    except Wp2TextError as e:
        raise click.BadParameter(str(e))

    worker_count = workers or optimal_workers()
    click.echo(f"Extracting {input_path} with {worker_count} worker(s)")
    orchestrator = Orchestrator(build_handler(config), file_size_limit=file_size * MEGABYTE,
                                worker_count=worker_count)
    try:
        with open_input(input_path) as stream:
            stats = orchestrator.run(stream, out, dump_base_name(input_path))
    except Wp2TextError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    click.echo(f"✓ {stats.processed} articles written to {len(stats.output_files)} file(s) in {out}")
    click.echo(f"✓ {stats.pages_read} pages read, {stats.skipped} skipped")
    if stats.failed:
        click.echo(f"⚠ {len(stats.failed)} page(s) failed:")
        for failure in stats.failed:
            click.echo(f"  {failure.title}: {failure.reason}")


@cli.command()
@click.argument("input_path", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option("--out", required=True, type=click.Path(file_okay=False), help="Output directory")
@click.option("--file-size", default=10, show_default=True, type=click.IntRange(min=0),
              help="Size of each XML file in MB (0 = single file)")
@click.option("-v", "--verbose", count=True, help="Log progress")
def split(input_path: str, out: str, file_size: int, verbose: int) -> None:
    """Split a dump into smaller XML files at page boundaries."""
    _setup_logging(verbose)
    try:
        with open_input(input_path) as stream:
            paths = split_dump(stream, out, dump_base_name(input_path),
                               file_size_limit=file_size * MEGABYTE)
    except Wp2TextError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()
    click.echo(f"✓ Wrote {len(paths)} file(s) to {out}")


@cli.command()
@click.argument("text", required=False)
@click.option("--title", default="", help="Page title used for the [[Title]] header")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False),
              help="YAML file with rendering options")
@click.option("--format", "output_format", type=click.Choice(FORMATS), help="Output format")
@click.option("--markers", help="Marker families to keep: all, none or a comma-separated list")
@click.option("--extract-citations/--no-extract-citations", default=None,
              help="Format citation templates instead of removing them")
def render(text: Optional[str], title: str, config_file: Optional[str],
           output_format: Optional[str], markers: Optional[str],
           extract_citations: Optional[bool]) -> None:
    """Render a wikitext fragment (argument or stdin) to plain text."""
    if text is None or text == "-":
        text = sys.stdin.read()
    overrides = {
        "format": output_format,
        "markers": markers,
        "extract_citations": extract_citations,
        "keep_title": bool(title),
    }
    try:
        config = _load_config(config_file, overrides)
    except Wp2TextError as e:
        raise click.BadParameter(str(e))

    handler = build_handler(config)
    output = handler(handler.parse(text, title))
    click.echo((output or "").rstrip("\n"))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
