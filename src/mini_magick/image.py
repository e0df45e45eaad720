"""Image handle that delegates every operation to the ImageMagick tools."""

from __future__ import annotations

import contextlib
import datetime as _dt
import glob
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple, Union

from src.datatypes import MagickConfig
from src.mini_magick import subproc as _subproc
from src.mini_magick.command_line import build_command_line
from src.mini_magick.errors import DestroyedImageError, MagickError, error_for_result
from src.mini_magick.flags import FlagBuilder
from src.mini_magick.subproc import CommandRunner
from src.mini_magick.tempfiles import TempResource

logger = logging.getLogger(__name__)

__all__ = ["FORMAT_NEWLINE", "Image", "format_option"]

IDENTIFY = "identify"
MOGRIFY = "mogrify"

# Escaping is applied by command_line, so the same text works on every platform.
FORMAT_NEWLINE = "\\n"

_EXTENSION_RE = re.compile(r"(\.\w*)?$")
_TIMESTAMP_SPLIT_RE = re.compile(r":|\s+")

PathLike = Union[str, "os.PathLike[str]"]
OptionsBlock = Union[FlagBuilder, Callable[[FlagBuilder], Any]]


def format_option(fmt: str) -> str:
    """Terminate an identify format string so each frame prints on its own line."""

    return f"{fmt}{FORMAT_NEWLINE}"


def _first_line(output: str) -> str:
    lines = output.splitlines()
    return lines[0] if lines else ""


def _replace_extension(path: str, extension: str) -> str:
    return _EXTENSION_RE.sub(f".{extension}", path, count=1)


def _parse_exif_timestamp(value: str) -> Optional[_dt.datetime]:
    parts = [part for part in _TIMESTAMP_SPLIT_RE.split(value.strip()) if part]
    if not parts:
        return None
    try:
        return _dt.datetime(*(int(part) for part in parts))
    except (TypeError, ValueError):
        return None


class Image:
    """
    A raster image living in a file that the external tools operate on.

    Images built with :meth:`from_blob` or :meth:`open` own a temporary copy
    and delete it in :meth:`destroy`; images built directly from a path work
    on that file in place. Any failed tool invocation destroys the image
    before the error is raised.
    """

    def __init__(
        self,
        path: PathLike,
        temp: Optional[TempResource] = None,
        *,
        config: Optional[MagickConfig] = None,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        self._path = os.fspath(path)
        self._temp = temp
        self._config = config or MagickConfig()
        self._runner: CommandRunner = runner or _subproc.run_command_line
        self._destroyed = False

        self._run(IDENTIFY, self._path)

    # Construction
    # ------------

    @classmethod
    def from_blob(
        cls,
        blob: bytes,
        extension: Optional[str] = None,
        *,
        config: Optional[MagickConfig] = None,
        runner: Optional[CommandRunner] = None,
    ) -> "Image":
        """Materialise ``blob`` in a new temp file and validate it."""

        cfg = config or MagickConfig()
        temp = TempResource.create(
            extension,
            bytes(blob),
            directory=cfg.temp.directory or None,
            prefix=cfg.temp.prefix,
        )
        try:
            return cls(temp.path, temp, config=cfg, runner=runner)
        except BaseException:
            temp.delete()
            raise

    @classmethod
    def open(
        cls,
        path: PathLike,
        *,
        config: Optional[MagickConfig] = None,
        runner: Optional[CommandRunner] = None,
    ) -> "Image":
        """Copy the file at ``path`` into a temp file so the original is never modified."""

        source = Path(path)
        with source.open("rb") as handle:
            data = handle.read()
        return cls.from_blob(data, source.suffix, config=config, runner=runner)

    from_file = open

    # State
    # -----

    @property
    def path(self) -> str:
        return self._path

    @property
    def temp(self) -> Optional[TempResource]:
        return self._temp

    @property
    def config(self) -> MagickConfig:
        return self._config

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def ensure_alive(self) -> None:
        """Raise ``DestroyedImageError`` if the image can no longer be used."""

        if self._destroyed:
            raise DestroyedImageError(f"Image at {self._path!r} has been destroyed")

    # Command execution
    # -----------------

    def run_command(self, command: str, *args: object) -> str:
        """
        Run one of the external tools and return its output.

        On failure the image is destroyed first, then the classified error
        (``InvalidImageError`` or ``MagickError``) is raised.
        """

        self.ensure_alive()
        command_line = build_command_line(command, args, processor=self._config.command.processor)
        result = self._runner(command_line, timeout=self._config.timeout)
        if result.ok:
            return result.output

        error = error_for_result(result)
        logger.debug(
            "Command failed (kind=%s, status=%s, timed_out=%s): %s",
            error.kind.value,
            result.exit_status,
            result.timed_out,
            command_line,
        )
        self.destroy()
        raise error

    _run = run_command

    # Queries
    # -------

    def __getitem__(self, name: str) -> Any:
        return self.attribute(name)

    def attribute(self, name: str) -> Any:
        """
        Resolve an attribute through ``identify``.

        ``format``, ``width``, ``height`` and ``dimensions`` use tailored
        format strings, ``size`` reads the file size from disk,
        ``original_at`` parses the EXIF capture time, ``EXIF:*`` keys are
        passed to ``%[...]`` and anything else is used as the format string.
        """

        key = str(name)
        if key == "format":
            return _first_line(self._run(IDENTIFY, "-format", format_option("%m"), self._path))
        if key == "height":
            return int(_first_line(self._run(IDENTIFY, "-format", format_option("%h"), self._path)))
        if key == "width":
            return int(_first_line(self._run(IDENTIFY, "-format", format_option("%w"), self._path)))
        if key == "dimensions":
            line = _first_line(self._run(IDENTIFY, "-format", format_option("%w %h"), self._path))
            width, height = (int(value) for value in line.split()[:2])
            return (width, height)
        if key == "size":
            # identify's %b fails on animated files, so read the size from disk.
            self.ensure_alive()
            return os.path.getsize(self._path)
        if key == "original_at":
            return _parse_exif_timestamp(self.attribute("EXIF:DateTimeOriginal"))
        if key[:5].lower() == "exif:":
            return self._run(IDENTIFY, "-format", f"%[{key}]", self._path).rstrip("\r\n")
        return _first_line(self._run(IDENTIFY, "-format", key, self._path))

    def dimensions(self) -> Tuple[int, int]:
        return self.attribute("dimensions")

    # Mutation
    # --------

    def run_raw(self, *tokens: object) -> str:
        """Send raw tokens to ``mogrify``; the image path is appended automatically."""

        return self._run(MOGRIFY, *tokens, self._path)

    def __lshift__(self, tokens: Union[str, Sequence[object]]) -> "Image":
        if isinstance(tokens, bytes):
            tokens = tokens.decode("utf-8")
        if isinstance(tokens, str):
            self.run_raw(tokens)
        else:
            self.run_raw(*tokens)
        return self

    def apply_flag(self, name: str, *args: object) -> "Image":
        """Run ``mogrify -<name> args... <path>`` and return the image."""

        self._run(MOGRIFY, f"-{name}", *args, self._path)
        return self

    def resize(self, geometry: str) -> "Image":
        return self.apply_flag("resize", geometry)

    def rotate(self, degrees: Union[int, float, str]) -> "Image":
        return self.apply_flag("rotate", degrees)

    def crop(self, geometry: str) -> "Image":
        return self.apply_flag("crop", geometry)

    def quality(self, value: Union[int, str]) -> "Image":
        return self.apply_flag("quality", value)

    def strip(self) -> "Image":
        return self.apply_flag("strip")

    def combine_options(self, options: OptionsBlock) -> "Image":
        """
        Apply several options in a single ``mogrify`` run.

        ``options`` is either a populated :class:`FlagBuilder` or a callable
        that receives a fresh builder to fill in.
        """

        if isinstance(options, FlagBuilder):
            builder = options
        else:
            builder = FlagBuilder()
            options(builder)
        self._run(MOGRIFY, *builder.args, self._path)
        return self

    @contextlib.contextmanager
    def options(self) -> Iterator[FlagBuilder]:
        """Yield a builder whose options are applied when the block exits cleanly."""

        builder = FlagBuilder()
        yield builder
        self.combine_options(builder)

    def collapse(self) -> "Image":
        """Reduce a multi-frame image to its first frame at full quality."""

        self._run(MOGRIFY, "-quality", "100", f"{self._path}[0]")
        return self

    # Conversion
    # ----------

    def format(self, extension: str, page: int = 0) -> "Image":
        """
        Convert the image to ``extension`` and point :attr:`path` at the result.

        Converting a multi-frame source to a single-frame format makes the
        tool write numbered page files (``stem-0.ext``, ``stem-1.ext``...).
        ``page`` picks which of those becomes the image; every page file is
        removed afterwards, whether or not the conversion succeeded.
        """

        self.ensure_alive()
        new_path = _replace_extension(self._path, extension)
        try:
            self._run(MOGRIFY, "-format", extension, self._path)

            old_path = self._path
            self._path = new_path
            if self._temp is not None:
                self._temp.relocate(new_path)
            if old_path != new_path:
                os.remove(old_path)

            if not os.path.exists(new_path):
                page_path = self._page_path(new_path, extension, page)
                try:
                    shutil.copyfile(page_path, new_path)
                except OSError as exc:
                    if not os.path.exists(new_path):
                        self.destroy()
                        raise MagickError(f"Unable to format to {extension}; {exc}") from exc
        finally:
            self._sweep_pages(new_path, extension)
        return self

    @staticmethod
    def _page_path(path: str, extension: str, page: int) -> str:
        return _EXTENSION_RE.sub(f"-{int(page)}.{extension}", path, count=1)

    @staticmethod
    def _sweep_pages(path: str, extension: str) -> None:
        pattern = _EXTENSION_RE.sub(f"-[0-9]*.{glob.escape(extension)}", glob.escape(path), count=1)
        for page_file in glob.glob(pattern):
            logger.debug("Removing page file %s", page_file)
            os.remove(page_file)

    # Output
    # ------

    def write(self, output_path: PathLike) -> None:
        """Copy the current file to ``output_path`` and verify the copy."""

        self.ensure_alive()
        destination = os.fspath(output_path)
        shutil.copyfile(self._path, destination)
        self._run(IDENTIFY, destination)

    def to_blob(self) -> bytes:
        self.ensure_alive()
        with open(self._path, "rb") as handle:
            return handle.read()

    # Destruction
    # -----------

    def destroy(self) -> None:
        """Delete the owned temp file, if any, and mark the image unusable."""

        self._destroyed = True
        if self._temp is None:
            return
        self._temp.delete()
        self._temp = None

    def __enter__(self) -> "Image":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else ("owned" if self._temp else "borrowed")
        return f"Image({self._path!r}, {state})"
