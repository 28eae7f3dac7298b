"""Command-line interface for binquadkey."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator, NoReturn

import click
from tqdm import tqdm

from binquadkey import config
from binquadkey.config import MAX_RADIX, MIN_RADIX
from binquadkey.core.batch import as_packed_array, decode_quadkeys, encode_quadkeys
from binquadkey.core.errors import QuadkeyError
from binquadkey.core.quadkey import Quadkey

logger = logging.getLogger(__name__)

_RADIX = click.IntRange(MIN_RADIX, MAX_RADIX)


def _fail(error: Exception) -> NoReturn:
    """Report a codec error and exit with status 1."""
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    sys.exit(1)


def _convert_chunk(lines: list[str], to: str) -> list[str]:
    """Convert one chunk of input lines through the numpy batch codec."""
    if to == "packed":
        return [str(value) for value in encode_quadkeys(lines).tolist()]

    values = [Quadkey.from_radix_string(line).packed for line in lines]
    return decode_quadkeys(as_packed_array(values))


def _read_chunks(
    path: Path, size: int, errors: list[tuple[int, str]]
) -> Iterator[list[tuple[int, str]]]:
    """Yield non-blank ``(line_number, text)`` pairs in chunks of ``size``.

    Lines that are not valid UTF-8 are recorded in ``errors`` and skipped.
    """
    chunk: list[tuple[int, str]] = []
    with open(path, "rb") as f:
        for number, raw in enumerate(f, start=1):
            try:
                text = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                logger.error("Line %d: not valid UTF-8: %s", number, e)
                errors.append((number, f"Line is not valid UTF-8: {e}"))
                continue
            if not text:
                continue
            chunk.append((number, text))
            if len(chunk) >= size:
                yield chunk
                chunk = []
    if chunk:
        yield chunk


def _convert_file(
    input_path: Path, output_path: Path, to: str
) -> tuple[int, list[tuple[int, str]]]:
    """Convert a file chunk by chunk.

    A chunk that fails as a whole is retried line by line so that one bad
    line only drops itself.

    Returns:
        Tuple of (converted_count, errors) where errors are (line_number, message)
    """
    converted = 0
    errors: list[tuple[int, str]] = []

    with open(output_path, "w", encoding="utf-8") as out, tqdm(
        desc="Converting", unit="keys"
    ) as pbar:
        for chunk in _read_chunks(input_path, config.BATCH_SIZE, errors):
            try:
                results = _convert_chunk([text for _, text in chunk], to)
            except QuadkeyError:
                results = []
                for number, text in chunk:
                    try:
                        results.extend(_convert_chunk([text], to))
                    except QuadkeyError as e:
                        logger.error("Line %d: %s", number, e)
                        errors.append((number, str(e)))

            for result in results:
                out.write(result + "\n")
            converted += len(results)
            pbar.update(len(chunk))

    return converted, sorted(errors)


def _print_summary(converted: int, errors: list[tuple[int, str]]) -> None:
    """Print the colored conversion summary and exit with error if any failures."""
    click.echo(click.style("=" * 40, fg="cyan"), err=True)

    parts = [click.style(f"{converted} converted", fg="green")]
    if errors:
        parts.append(click.style(f"{len(errors)} failed", fg="red"))
    click.echo(click.style("Completed: ", bold=True) + ", ".join(parts), err=True)

    if errors:
        click.echo(click.style("Failed lines:", fg="red"), err=True)
        for number, message in errors:
            click.echo(f"  {number}: {message}", err=True)
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Encode and decode map tile quadkeys as 64-bit integers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("x", type=int)
@click.argument("y", type=int)
@click.argument("zoom", type=int)
@click.option(
    "--radix",
    "-r",
    type=_RADIX,
    default=lambda: config.DEFAULT_RADIX,
    help="Output radix (2-36)",
)
def encode(x: int, y: int, zoom: int, radix: int) -> None:
    """Pack tile X Y at ZOOM into a 64-bit key."""
    try:
        key = Quadkey.from_tile_xy(x, y, zoom)
    except QuadkeyError as e:
        _fail(e)
    click.echo(key.to_radix_string(radix))


@main.command()
@click.argument("quadkey")
@click.option(
    "--radix",
    "-r",
    type=_RADIX,
    default=lambda: config.DEFAULT_RADIX,
    help="Output radix (2-36)",
)
def parse(quadkey: str, radix: int) -> None:
    """Pack a QUADKEY string such as 1202102332221212."""
    try:
        key = Quadkey.from_quadkey(quadkey)
    except QuadkeyError as e:
        _fail(e)
    click.echo(key.to_radix_string(radix))


@main.command()
@click.argument("value")
@click.option(
    "--radix",
    "-r",
    type=_RADIX,
    default=lambda: config.DEFAULT_RADIX,
    help="Radix of VALUE (2-36)",
)
def decode(value: str, radix: int) -> None:
    """Unpack a packed key VALUE into its quadkey and tile coordinates."""
    try:
        key = Quadkey.from_radix_string(value, radix)
    except QuadkeyError as e:
        _fail(e)
    tile = key.tile()
    click.echo(f"quadkey: {key.to_quadkey()}")
    click.echo(f"zoom: {tile.zoom}")
    click.echo(f"x: {tile.x}")
    click.echo(f"y: {tile.y}")


@main.command("ancestor")
@click.argument("ancestor")
@click.argument("descendant")
def is_ancestor(ancestor: str, descendant: str) -> None:
    """Exit 0 if quadkey ANCESTOR contains quadkey DESCENDANT, else 1."""
    try:
        result = Quadkey.from_quadkey(ancestor).is_ancestor_of(
            Quadkey.from_quadkey(descendant)
        )
    except QuadkeyError as e:
        _fail(e)
    click.echo("true" if result else "false")
    sys.exit(0 if result else 1)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_path", type=click.Path(dir_okay=False))
@click.option(
    "--to",
    type=click.Choice(["packed", "quadkey"]),
    default="packed",
    help="Convert quadkey strings to packed keys (default) or back",
)
def convert(input_path: str, output_path: str, to: str) -> None:
    """Convert a file of keys, one per line.

    Blank lines are skipped and lines that fail are listed in the summary.
    Packed keys are read and written in decimal. OUTPUT_PATH must not be
    INPUT_PATH.

    Examples:

        # Quadkey strings to packed integers
        python -m binquadkey convert tiles.txt tiles.packed

        # And back
        python -m binquadkey convert tiles.packed tiles.txt --to quadkey
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    if output_path.resolve() == input_path.resolve():
        raise click.UsageError("OUTPUT_PATH must differ from INPUT_PATH")
    logger.info("Converting %s -> %s (%s)", input_path, output_path, to)

    converted, errors = _convert_file(input_path, output_path, to)
    _print_summary(converted, errors)
