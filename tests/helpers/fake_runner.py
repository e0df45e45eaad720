"""Test doubles for the command runner and tiny in-memory images."""

from __future__ import annotations

import struct
import zlib
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional

from src.mini_magick.subproc import CommandResult


@dataclass
class _Response:
    output: str = ""
    status: Optional[int] = 0
    timed_out: bool = False
    effect: Optional[Callable[[str], None]] = None


@dataclass
class FakeRunner:
    """Record command lines and replay queued responses (success when the queue is empty)."""

    calls: List[str] = field(default_factory=list)
    timeouts: List[Optional[float]] = field(default_factory=list)
    _responses: Deque[_Response] = field(default_factory=deque)

    def queue(
        self,
        output: str = "",
        *,
        status: Optional[int] = 0,
        timed_out: bool = False,
        effect: Optional[Callable[[str], None]] = None,
    ) -> "FakeRunner":
        self._responses.append(_Response(output, status, timed_out, effect))
        return self

    def fail(self, output: str = "boom", *, status: int = 1) -> "FakeRunner":
        return self.queue(output, status=status)

    def __call__(self, command_line: str, *, timeout: Optional[float] = None) -> CommandResult:
        self.calls.append(command_line)
        self.timeouts.append(timeout)
        response = self._responses.popleft() if self._responses else _Response()
        if response.effect is not None:
            response.effect(command_line)
        return CommandResult(
            command=command_line,
            exit_status=response.status,
            output=response.output,
            timed_out=response.timed_out,
        )


def make_png(width: int, height: int, rgb: tuple[int, int, int] = (255, 0, 0)) -> bytes:
    """Return a valid, uncompressed-filter RGB PNG of the given size."""

    def _chunk(tag: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(tag + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", crc)

    row = b"\x00" + bytes(rgb) * width
    raw = row * height
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", zlib.compress(raw))
        + _chunk(b"IEND", b"")
    )
