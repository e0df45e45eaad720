"""Public shim exposing the mini_magick CLI and library surface."""

from __future__ import annotations

from typing import Callable, cast

import src.mini_magick.cli_entry as _cli_entry
from src.config_loader import ConfigError, load_config
from src.datatypes import CommandConfig, MagickConfig, TempConfig
from src.mini_magick import (
    CommandResult,
    DestroyedImageError,
    ErrorKind,
    FlagBuilder,
    Image,
    InvalidImageError,
    MagickCommandError,
    MagickError,
    TempResource,
    build_command_line,
    classify_failure,
    composite,
    escape_argument,
    run_command_line,
)

# Kept for callers that used the exception names of older releases.
Invalid = InvalidImageError
Error = MagickError

__all__ = (
    "CommandConfig",
    "CommandResult",
    "ConfigError",
    "DestroyedImageError",
    "Error",
    "ErrorKind",
    "FlagBuilder",
    "Image",
    "Invalid",
    "InvalidImageError",
    "MagickCommandError",
    "MagickConfig",
    "MagickError",
    "TempConfig",
    "TempResource",
    "build_command_line",
    "classify_failure",
    "cli",
    "composite",
    "escape_argument",
    "load_config",
    "main",
    "run_command_line",
)

main = _cli_entry.main
cli = _cli_entry.cli


if __name__ == "__main__":
    _entry_point = cast(Callable[[], None], main)
    _entry_point()
