from __future__ import annotations

from pathlib import Path

import pytest

from src.config_loader import ConfigError, load_config, normalize_timeout
from src.datatypes import CommandConfig, MagickConfig


def _write(tmp_path: Path, text: str, *, bom: bool = False) -> str:
    path = tmp_path / "magick.toml"
    data = text.encode("utf-8")
    if bom:
        data = b"\xef\xbb\xbf" + data
    path.write_bytes(data)
    return str(path)


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write(tmp_path, ""))

    assert cfg == MagickConfig()
    assert cfg.command.processor == ""
    assert cfg.timeout is None
    assert cfg.temp.prefix == "mini_magick"


def test_sections_are_loaded_and_normalised(tmp_path: Path) -> None:
    text = """
[command]
processor = " gm "
timeout_seconds = 30

[temp]
directory = "/var/tmp/images"
prefix = "thumbs_"
"""
    cfg = load_config(_write(tmp_path, text, bom=True))

    assert cfg.command.processor == "gm"
    assert cfg.command.timeout_seconds == 30.0
    assert cfg.timeout == 30.0
    assert cfg.temp.directory == "/var/tmp/images"
    assert cfg.temp.prefix == "thumbs_"


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("[command]\nbogus = 1\n", "Invalid keys in [command]"),
        ("command = 3\n", "[command] must be a table"),
        ("[command]\ntimeout_seconds = -1\n", "must be >= 0"),
        ("[command]\ntimeout_seconds = nan\n", "finite"),
        ('[command]\ntimeout_seconds = "soon"\n', "must be a number"),
        ("[command]\ntimeout_seconds = true\n", "must be a number"),
        ('[temp]\nprefix = "a/b"\n', "path separators"),
        ('[temp]\nprefix = "  "\n', "non-empty"),
        ("[unknown]\n", "Unknown configuration sections"),
        ("[command\n", "Failed to parse TOML"),
    ],
)
def test_invalid_configuration_raises(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message.replace("[", r"\[").replace("]", r"\]")):
        load_config(_write(tmp_path, text))


def test_non_utf8_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "magick.toml"
    path.write_bytes(b"[command]\nprocessor = \"\xff\"\n")
    with pytest.raises(ConfigError, match="UTF-8"):
        load_config(str(path))


def test_normalize_timeout_accepts_numeric_strings() -> None:
    assert normalize_timeout("2.5") == 2.5
    assert normalize_timeout(0) == 0.0


def test_zero_timeout_disables_the_bound() -> None:
    assert MagickConfig(command=CommandConfig(timeout_seconds=0)).timeout is None
