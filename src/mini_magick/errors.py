"""Failure classification and exception types for tool invocations."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from src.mini_magick.subproc import CommandResult

__all__ = [
    "DestroyedImageError",
    "ErrorKind",
    "InvalidImageError",
    "MagickCommandError",
    "MagickError",
    "classify_failure",
    "error_for_result",
]

_INVALID_SIGNATURES = re.compile(r"no decode delegate|did not return an image", re.IGNORECASE)


class ErrorKind(str, Enum):
    """Categories a failed command is sorted into."""

    INVALID = "invalid"
    ERROR = "error"


class MagickCommandError(RuntimeError):
    """Base class for failures surfaced by the image wrappers."""

    kind: ErrorKind = ErrorKind.ERROR

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        exit_status: Optional[int] = None,
        output: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.output = output
        self.timed_out = timed_out


class MagickError(MagickCommandError):
    """Raised for tool crashes, bad arguments, timeouts and post-processing failures."""

    kind = ErrorKind.ERROR


class InvalidImageError(MagickCommandError):
    """Raised when the tool reports that the input bytes are not a decodable image."""

    kind = ErrorKind.INVALID


class DestroyedImageError(MagickError):
    """Raised when an operation is attempted on an Image that was already destroyed."""


def classify_failure(result: CommandResult) -> ErrorKind:
    """Decide whether a failed ``result`` points at bad input or a broken tool run."""

    if result.timed_out:
        return ErrorKind.ERROR
    if _INVALID_SIGNATURES.search(result.output or ""):
        return ErrorKind.INVALID
    return ErrorKind.ERROR


def error_for_result(result: CommandResult) -> MagickCommandError:
    """Build the exception matching the classification of ``result``."""

    kind = classify_failure(result)
    details = {
        "command": result.command,
        "exit_status": result.exit_status,
        "output": result.output,
        "timed_out": result.timed_out,
    }
    if kind is ErrorKind.INVALID:
        return InvalidImageError(result.output.strip() or "Input is not a decodable image", **details)
    reason = "timed out" if result.timed_out else "failed"
    message = (
        f"Command ({result.command!r}) {reason}: "
        f"{{'status_code': {result.exit_status!r}, 'output': {result.output!r}}}"
    )
    return MagickError(message, **details)
