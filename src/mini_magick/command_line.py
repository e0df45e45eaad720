"""Shell command-line assembly for the ImageMagick tools."""

from __future__ import annotations

import os
import re
from typing import Iterable

__all__ = [
    "build_command_line",
    "escape_argument",
    "is_switch",
]

# Characters that keep their special meaning inside POSIX double quotes.
_POSIX_DQUOTE_SPECIALS = re.compile(r'([\\"$`])')


def is_switch(token: str) -> bool:
    """Return True for tool switches such as ``-resize`` or ``+profile``."""

    return token.startswith(("-", "+"))


def escape_argument(token: object) -> str:
    """
    Quote a single argument for the shell.

    Switches are passed through untouched so the tool still recognises them.
    Everything else (paths, geometry, format strings) is wrapped in double
    quotes. On POSIX the characters the shell still expands inside double
    quotes are backslash-escaped; cmd.exe has no equivalent so the value is
    only wrapped there.
    """

    text = str(token)
    if is_switch(text):
        return text
    if os.name != "nt":
        text = _POSIX_DQUOTE_SPECIALS.sub(r"\\\1", text)
    return f'"{text}"'


def build_command_line(command: str, args: Iterable[object], *, processor: str = "") -> str:
    """Join ``processor``, ``command`` and the escaped ``args`` into one line."""

    escaped = " ".join(escape_argument(arg) for arg in args)
    return f"{processor} {command} {escaped}".strip()
