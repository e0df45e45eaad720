"""Two-image compositing through ImageMagick's ``composite`` tool."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from src.datatypes import MagickConfig
from src.mini_magick import subproc as _subproc
from src.mini_magick.command_line import build_command_line
from src.mini_magick.errors import error_for_result
from src.mini_magick.image import Image
from src.mini_magick.subproc import CommandRunner
from src.mini_magick.tempfiles import TempResource

logger = logging.getLogger(__name__)

__all__ = ["COMPOSITE", "composite", "composite_args"]

COMPOSITE = "composite"


def composite_args(
    top: Image,
    bottom: Image,
    output_path: str,
    options: Optional[Mapping[str, Any]] = None,
) -> List[str]:
    """Return the ``composite`` argument list: options, top, bottom, output."""

    args: List[str] = []
    for key, value in (options or {}).items():
        args.append(f"-{key}")
        if value is not None:
            args.append(str(value))
    args.extend([top.path, bottom.path, output_path])
    return args


def composite(
    top: Image,
    bottom: Image,
    output_extension: str = "jpg",
    options: Optional[Mapping[str, Any]] = None,
    *,
    config: Optional[MagickConfig] = None,
    runner: Optional[CommandRunner] = None,
) -> Image:
    """
    Lay ``top`` over ``bottom`` and return the result as a new Image.

    Example:
        output = composite(foreground, background, "png", {"gravity": "NorthEast"})

    The returned Image owns the output temp file. Neither input is modified.
    """

    top.ensure_alive()
    bottom.ensure_alive()
    cfg = config or top.config
    run: CommandRunner = runner or _subproc.run_command_line
    temp = TempResource.create(
        output_extension or "jpg",
        directory=cfg.temp.directory or None,
        prefix=cfg.temp.prefix,
    )
    output_path = str(temp.path)
    command_line = build_command_line(
        COMPOSITE,
        composite_args(top, bottom, output_path, options),
        processor=cfg.command.processor,
    )
    result = run(command_line, timeout=cfg.timeout)
    if not result.ok:
        temp.delete()
        raise error_for_result(result)

    logger.debug("Composited %s over %s into %s", top.path, bottom.path, output_path)
    return Image(output_path, temp, config=cfg, runner=runner)
