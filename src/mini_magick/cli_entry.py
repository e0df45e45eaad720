"""Click CLI wiring and entry points for mini_magick."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.config_loader import ConfigError, load_config, normalize_timeout
from src.datatypes import MagickConfig
from src.mini_magick.composite import composite as _composite
from src.mini_magick.errors import InvalidImageError, MagickCommandError
from src.mini_magick.flags import FlagBuilder
from src.mini_magick.image import Image

DEFAULT_ATTRIBUTES: Tuple[str, ...] = ("format", "width", "height", "size")

INVALID_INPUT_EXIT_CODE = 2


class CLIAppError(click.ClickException):
    """Raised when the CLI cannot complete its work."""

    def __init__(self, message: str, *, code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = code


@dataclass
class _CliState:
    config: MagickConfig
    console: Console


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _parse_pairs(values: Iterable[str], *, option: str) -> List[Tuple[str, str]]:
    """Split ``NAME=VALUE`` items; a bare ``NAME`` maps to an empty value."""

    pairs: List[Tuple[str, str]] = []
    for item in values:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not name:
            raise click.BadParameter(f"expected NAME=VALUE, got {item!r}", param_hint=option)
        pairs.append((name, value if sep else ""))
    return pairs


def _translate_error(exc: Exception) -> CLIAppError:
    if isinstance(exc, InvalidImageError):
        return CLIAppError(f"Not a decodable image: {exc}", code=INVALID_INPUT_EXIT_CODE)
    return CLIAppError(str(exc))


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to a TOML configuration file.",
)
@click.option("--processor", default=None, help="Command prefix such as 'magick' or 'gm'.")
@click.option("--timeout", type=float, default=None, help="Per-command timeout in seconds (0 disables).")
@click.option("--verbose", is_flag=True, help="Log every command that is executed.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    processor: Optional[str],
    timeout: Optional[float],
    verbose: bool,
) -> None:
    """Inspect, convert and composite images through ImageMagick."""

    _configure_logging(verbose)
    try:
        config = load_config(config_path) if config_path else MagickConfig()
        if processor is not None:
            config.command.processor = processor.strip()
        if timeout is not None:
            config.command.timeout_seconds = normalize_timeout(timeout)
    except ConfigError as exc:
        raise CLIAppError(f"Config error: {exc}") from exc
    ctx.obj = _CliState(config=config, console=Console())


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-a", "--attribute", "attributes", multiple=True, help="Attribute to query (repeatable).")
@click.pass_obj
def info(state: _CliState, path: str, attributes: Tuple[str, ...]) -> None:
    """Print attributes of the image at PATH."""

    names = attributes or DEFAULT_ATTRIBUTES
    table = Table(title=click.format_filename(path))
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")
    try:
        with Image.open(path, config=state.config) as image:
            for name in names:
                value = image[name]
                table.add_row(name, "" if value is None else str(value))
    except MagickCommandError as exc:
        raise _translate_error(exc) from exc
    state.console.print(table)


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.argument("dest", type=click.Path(dir_okay=False))
@click.option("--format", "extension", default=None, help="Target format extension, e.g. png.")
@click.option("--page", type=int, default=0, show_default=True, help="Page kept when a multi-frame source is split.")
@click.option("--flag", "flags", multiple=True, help="Option applied as -NAME VALUE (repeatable, in order).")
@click.option("--collapse", is_flag=True, help="Keep only the first frame of animated sources.")
@click.pass_obj
def convert(
    state: _CliState,
    source: str,
    dest: str,
    extension: Optional[str],
    page: int,
    flags: Tuple[str, ...],
    collapse: bool,
) -> None:
    """Transform SOURCE and write the result to DEST."""

    builder = FlagBuilder()
    for name, value in _parse_pairs(flags, option="--flag"):
        if value:
            builder.flag(name, value)
        else:
            builder.flag(name)
    try:
        with Image.open(source, config=state.config) as image:
            if collapse:
                image.collapse()
            if len(builder):
                image.combine_options(builder)
            if extension:
                image.format(extension, page)
            image.write(dest)
    except MagickCommandError as exc:
        raise _translate_error(exc) from exc
    state.console.print(f"[green]Wrote[/green] {click.format_filename(dest)}")


@cli.command("composite")
@click.argument("top", type=click.Path(exists=True, dir_okay=False))
@click.argument("bottom", type=click.Path(exists=True, dir_okay=False))
@click.argument("dest", type=click.Path(dir_okay=False))
@click.option("--option", "options", multiple=True, help="composite option as KEY=VALUE (repeatable).")
@click.pass_obj
def composite_command(
    state: _CliState,
    top: str,
    bottom: str,
    dest: str,
    options: Tuple[str, ...],
) -> None:
    """Lay TOP over BOTTOM and write the result to DEST."""

    parsed = {name: (value or None) for name, value in _parse_pairs(options, option="--option")}
    extension = os.path.splitext(dest)[1].lstrip(".") or "jpg"
    try:
        with Image.open(top, config=state.config) as top_image, Image.open(
            bottom, config=state.config
        ) as bottom_image:
            with _composite(top_image, bottom_image, extension, parsed, config=state.config) as result:
                result.write(dest)
    except MagickCommandError as exc:
        raise _translate_error(exc) from exc
    state.console.print(f"[green]Wrote[/green] {click.format_filename(dest)}")


def main() -> None:
    cli(prog_name="mini-magick")


__all__ = ["CLIAppError", "cli", "main"]
