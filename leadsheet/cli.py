"""leadsheet CLI entry point."""

import sys
from pathlib import Path

import click

from leadsheet import __version__
from leadsheet.anchors import AnchorSet
from leadsheet.config import (
    DEFAULT_BARS_PER_SYSTEM,
    DEFAULT_BEATS_PER_BAR,
    DEFAULT_SUBDIVISION,
    validate_config,
)
from leadsheet.engine import SUPPORTED_SPACES, LayoutRequest, layout_lead_sheet
from leadsheet.exceptions import LeadSheetError
from leadsheet.log import setup_logging
from leadsheet.renderers import JsonLayoutRenderer, LayoutRenderer, TextPreviewRenderer
from leadsheet.systems import GridConfig
from leadsheet.tokenizer import tokenize


def _parse_anchors(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[int, int]]:
    """Parse repeated ``CHAR:CELL`` options into integer pairs."""
    pairs: list[tuple[int, int]] = []
    for value in values:
        char_text, sep, cell_text = value.partition(":")
        try:
            if not sep:
                raise ValueError
            pairs.append((int(char_text), int(cell_text)))
        except ValueError:
            raise click.BadParameter(f"expected CHAR:CELL, got '{value}'", ctx=ctx, param=param)
    return pairs


def _get_renderer(output_format: str) -> LayoutRenderer:
    if output_format == "json":
        return JsonLayoutRenderer()
    return TextPreviewRenderer()


def _read_lyrics(lyrics_file: str) -> str:
    return Path(lyrics_file).read_text(encoding="utf-8")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="leadsheet")
def main() -> None:
    """leadsheet: align lyrics to a chord timeline and lay them out in systems."""


# ── tokens subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("lyrics_file", type=click.Path(exists=True, dir_okay=False, readable=True))
def tokens(lyrics_file: str) -> None:
    """
    List the word and hyphen tokens of a lyrics file.

    LYRICS_FILE is a plain UTF-8 text file; line breaks count as spaces.
    """
    try:
        lyrics = _read_lyrics(lyrics_file)
    except (OSError, UnicodeDecodeError) as exc:
        click.echo(f"  ERROR: Could not read lyrics file: {exc}", err=True)
        sys.exit(1)

    for idx, token in enumerate(tokenize(lyrics)):
        click.echo(f"{idx:4d}  {token.kind:<6}  @{token.char_index:<5d}  {token.text}")


# ── layout subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("lyrics_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--anchor",
    "-a",
    "anchor_specs",
    multiple=True,
    callback=_parse_anchors,
    metavar="CHAR:CELL",
    help="Pin the word starting at character CHAR to absolute cell CELL. Repeatable.",
)
@click.option(
    "--bars",
    type=click.IntRange(1, None),
    default=None,
    help="Bars in the section. Defaults to the bars needed for the latest anchor.",
)
@click.option(
    "--beats-per-bar",
    type=click.IntRange(1, None),
    default=DEFAULT_BEATS_PER_BAR,
    show_default=True,
)
@click.option(
    "--subdivision",
    type=click.IntRange(1, None),
    default=DEFAULT_SUBDIVISION,
    show_default=True,
    help="Cells per beat (1 = beats, 2 = eighths in 4/4).",
)
@click.option(
    "--bars-per-system",
    type=click.IntRange(1, None),
    default=DEFAULT_BARS_PER_SYSTEM,
    show_default=True,
)
@click.option(
    "--space",
    type=click.Choice(list(SUPPORTED_SPACES), case_sensitive=False),
    default="pixel",
    show_default=True,
    help="Position units: editor pixels (even spread) or print cells (packed).",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Text preview or JSON position dump.",
)
@click.option(
    "--title",
    default=None,
    metavar="TEXT",
    help="Title shown in the output. Defaults to the lyrics filename stem.",
)
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination file. Defaults to standard output.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def layout(
    lyrics_file: str,
    anchor_specs: list[tuple[int, int]],
    bars: int | None,
    beats_per_bar: int,
    subdivision: int,
    bars_per_system: int,
    space: str,
    output_format: str,
    title: str | None,
    output: str | None,
    verbose: bool,
) -> None:
    """
    Lay out the lyrics of LYRICS_FILE across systems of bars.

    \b
    Examples:
      leadsheet layout verse.txt --bars 6
      leadsheet layout verse.txt -a 0:0 -a 12:8 --subdivision 2
      leadsheet layout verse.txt --space cell --format json -o verse.json
    """
    setup_logging(level="DEBUG" if verbose else "WARNING", verbose=verbose)

    try:
        lyrics = _read_lyrics(lyrics_file)
    except (OSError, UnicodeDecodeError) as exc:
        click.echo(f"  ERROR: Could not read lyrics file: {exc}", err=True)
        sys.exit(1)
    resolved_title = title if title is not None else Path(lyrics_file).stem.replace("_", " ")
    renderer = _get_renderer(output_format.lower())

    try:
        validate_config()
        anchors = AnchorSet()
        for n, (char_index, cell) in enumerate(anchor_specs, start=1):
            anchors = anchors.add(char_index, cell, lyrics_length=len(lyrics), anchor_id=f"a{n}")

        config = GridConfig(
            beats_per_bar=beats_per_bar,
            subdivision=subdivision,
            bars_per_system=bars_per_system,
        )
        request = LayoutRequest(
            lyrics=lyrics,
            anchors=anchors,
            config=config,
            total_bars=bars,
            space=space.lower(),
        )
        layouts = layout_lead_sheet(request)
    except LeadSheetError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    content = renderer.render(
        title=resolved_title, layouts=layouts, config=config, space=request.space
    )

    if output is None:
        click.echo(content, nl=False)
        return

    try:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(content)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write output file: {exc}", err=True)
        sys.exit(1)

    overflowing = sum(1 for system in layouts if system.overflowing)
    click.echo(f"Done!  {len(layouts)} system(s) written to '{output}'.")
    if overflowing:
        click.echo(f"  WARNING: {overflowing} system(s) overflow their width.", err=True)
