from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.mini_magick.command_line import build_command_line, escape_argument, is_switch

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX shell quoting")


@pytest.mark.parametrize("token", ["-resize", "+profile", "-90", "+repage"])
def test_switches_are_never_quoted(token: str) -> None:
    assert is_switch(token)
    assert escape_argument(token) == token


@pytest.mark.parametrize("value", ["50%", "a b", "x;rm -rf /", "photo (1).jpg", "100x100>"])
def test_values_are_wrapped_in_double_quotes(value: str) -> None:
    assert escape_argument(value) == f'"{value}"'


def test_non_string_arguments_are_stringified() -> None:
    assert escape_argument(100) == '"100"'
    assert escape_argument(Path("dir") / "file.png") == f'"{Path("dir") / "file.png"}"'


@posix_only
def test_posix_specials_inside_quotes_are_escaped() -> None:
    assert escape_argument('say "hi"') == '"say \\"hi\\""'
    assert escape_argument("$HOME") == '"\\$HOME"'
    assert escape_argument("`id`") == '"\\`id\\`"'
    assert escape_argument("%m\\n") == '"%m\\\\n"'


def test_build_command_line_joins_processor_command_and_args() -> None:
    line = build_command_line("mogrify", ["-resize", "50%", "in.png"], processor="gm")
    assert line == 'gm mogrify -resize "50%" "in.png"'


def test_build_command_line_without_processor_has_no_leading_space() -> None:
    assert build_command_line("identify", ["a.png"]) == 'identify "a.png"'
    assert build_command_line("identify", []) == "identify"
