"""Uniquely named temporary files backing in-memory images."""

from __future__ import annotations

import itertools
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_PREFIX",
    "TempResource",
    "normalise_extension",
]

DEFAULT_PREFIX = "mini_magick"

_COUNTER = itertools.count()
_COUNTER_LOCK = threading.Lock()


def _next_sequence() -> int:
    with _COUNTER_LOCK:
        return next(_COUNTER)


def normalise_extension(extension: Optional[str]) -> str:
    """Return ``extension`` as a ``.ext`` suffix, or an empty string."""

    if not extension:
        return ""
    text = str(extension).strip()
    if not text or text == ".":
        return ""
    return text if text.startswith(".") else f".{text}"


class TempResource:
    """
    Owns exactly one file on disk.

    Files are named ``<prefix><pid>-<sequence><ext>`` so concurrent processes
    never collide, and they are deleted at most once.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._deleted = False

    @classmethod
    def create(
        cls,
        extension: Optional[str] = None,
        data: bytes = b"",
        *,
        directory: str | os.PathLike[str] | None = None,
        prefix: str = DEFAULT_PREFIX,
    ) -> "TempResource":
        """Create a new file, write ``data`` and close it before returning."""

        base_dir = Path(directory) if directory else Path(tempfile.gettempdir())
        suffix = normalise_extension(extension)
        pid = os.getpid()
        while True:
            candidate = base_dir / f"{prefix}{pid}-{_next_sequence()}{suffix}"
            try:
                fd = os.open(candidate, os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0), 0o600)
            except FileExistsError:
                continue
            break
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        except BaseException:
            candidate.unlink(missing_ok=True)
            raise
        logger.debug("Created temp file %s (%d bytes)", candidate, len(data))
        return cls(candidate)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def deleted(self) -> bool:
        return self._deleted

    def relocate(self, new_path: str | os.PathLike[str]) -> None:
        """Follow the owned file after it has been renamed by a conversion."""

        self._path = Path(new_path)

    def delete(self) -> None:
        if self._deleted:
            return
        self._deleted = True
        try:
            self._path.unlink()
        except FileNotFoundError:
            logger.debug("Temp file %s already removed", self._path)
            return
        logger.debug("Deleted temp file %s", self._path)

    def __repr__(self) -> str:
        state = "deleted" if self._deleted else "live"
        return f"TempResource({str(self._path)!r}, {state})"
