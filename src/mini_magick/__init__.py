"""Subprocess-backed image handles built on the ImageMagick command-line tools."""

from __future__ import annotations

from src.config_loader import ConfigError, load_config
from src.datatypes import CommandConfig, MagickConfig, TempConfig
from src.mini_magick.command_line import build_command_line, escape_argument
from src.mini_magick.composite import composite
from src.mini_magick.errors import (
    DestroyedImageError,
    ErrorKind,
    InvalidImageError,
    MagickCommandError,
    MagickError,
    classify_failure,
    error_for_result,
)
from src.mini_magick.flags import FlagBuilder
from src.mini_magick.image import Image
from src.mini_magick.subproc import CommandResult, CommandRunner, run_command_line
from src.mini_magick.tempfiles import TempResource

__all__ = [
    "CommandConfig",
    "CommandResult",
    "CommandRunner",
    "ConfigError",
    "DestroyedImageError",
    "ErrorKind",
    "FlagBuilder",
    "Image",
    "InvalidImageError",
    "MagickCommandError",
    "MagickConfig",
    "MagickError",
    "TempConfig",
    "TempResource",
    "build_command_line",
    "classify_failure",
    "composite",
    "error_for_result",
    "escape_argument",
    "load_config",
    "run_command_line",
]
