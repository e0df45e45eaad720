"""Bounded subprocess execution for tool invocations."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

__all__ = [
    "CommandResult",
    "CommandRunner",
    "resolve_timeout",
    "run_command_line",
]


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a single command invocation.

    Attributes:
        command (str): The exact command line handed to the shell.
        exit_status (int | None): Process exit status; ``None`` when unknown.
        output (str): Combined stdout and stderr text.
        timed_out (bool): Whether the run was killed after exceeding its timeout.
    """

    command: str
    exit_status: Optional[int]
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_status == 0 and not self.timed_out


CommandRunner = Callable[..., CommandResult]


def resolve_timeout(timeout: float | None) -> float | None:
    """Return ``timeout`` as seconds, or ``None`` when unbounded."""

    if timeout is None:
        return None
    try:
        value = float(timeout)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    return value


def _kill(process: subprocess.Popen[bytes]) -> None:
    if os.name != "nt":
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        return
    process.kill()


def _decode(raw: bytes | None) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", "replace")


def run_command_line(command_line: str, *, timeout: float | None = None) -> CommandResult:
    """
    Execute ``command_line`` through the shell and capture its output.

    Parameters:
        command_line (str): Fully escaped command line.
        timeout (float | None): Seconds before the process is killed; ``None``
            or a non-positive value waits indefinitely.

    Returns:
        CommandResult: Exit status and combined output. Timeouts are reported
        through ``timed_out`` rather than raised.
    """

    timeout_seconds = resolve_timeout(timeout)
    logger.debug("Running command: %s (timeout=%s)", command_line, timeout_seconds)
    process = subprocess.Popen(
        command_line,
        shell=True,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        start_new_session=os.name != "nt",
    )
    try:
        stdout, _ = process.communicate(timeout=timeout_seconds)
    except subprocess.TimeoutExpired:
        _kill(process)
        stdout, _ = process.communicate()
        logger.warning(
            "Command timed out after %.1fs: %s",
            timeout_seconds or 0.0,
            command_line,
        )
        return CommandResult(
            command=command_line,
            exit_status=process.returncode,
            output=_decode(stdout),
            timed_out=True,
        )
    return CommandResult(
        command=command_line,
        exit_status=process.returncode,
        output=_decode(stdout),
    )
