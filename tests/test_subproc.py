from __future__ import annotations

import os
import time

import pytest

from src.mini_magick.command_line import build_command_line
from src.mini_magick.subproc import CommandResult, resolve_timeout, run_command_line

pytestmark = pytest.mark.skipif(os.name == "nt", reason="uses POSIX shell builtins")


def test_run_captures_stdout() -> None:
    result = run_command_line("echo hello")
    assert result.ok
    assert result.exit_status == 0
    assert result.output == "hello\n"
    assert result.command == "echo hello"


def test_run_merges_stderr_and_reports_exit_status() -> None:
    result = run_command_line("echo oops 1>&2; exit 3")
    assert not result.ok
    assert result.exit_status == 3
    assert "oops" in result.output
    assert result.timed_out is False


def test_run_kills_process_after_timeout() -> None:
    started = time.monotonic()
    result = run_command_line("sleep 5", timeout=0.2)
    elapsed = time.monotonic() - started

    assert result.timed_out is True
    assert not result.ok
    assert elapsed < 4


def test_zero_timeout_means_unbounded() -> None:
    result = run_command_line("echo done", timeout=0)
    assert result.ok
    assert result.timed_out is False


def test_quoted_values_reach_the_program_as_single_tokens() -> None:
    line = build_command_line("printf", ["%s|", "a b;echo INJECTED", "$HOME"])
    result = run_command_line(line)

    assert result.ok
    assert result.output == "a b;echo INJECTED|$HOME|"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        (0, None),
        (-1, None),
        ("bad", None),
        (2, 2.0),
        ("1.5", 1.5),
    ],
)
def test_resolve_timeout(value: object, expected: float | None) -> None:
    assert resolve_timeout(value) == expected  # type: ignore[arg-type]


def test_result_ok_requires_zero_status_without_timeout() -> None:
    assert CommandResult("x", 0, "").ok
    assert not CommandResult("x", 0, "", timed_out=True).ok
    assert not CommandResult("x", None, "").ok
