from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from src.datatypes import MagickConfig, TempConfig
from tests.helpers.fake_runner import FakeRunner, make_png

IMAGEMAGICK_TOOLS = ("identify", "mogrify", "composite")


@pytest.fixture
def runner() -> CliRunner:
    """Provide a Click runner configured for CLI smoke tests."""

    return CliRunner()


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Provide a runner double that records every command line."""

    return FakeRunner()


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Directory used for image temp files, kept apart from test inputs."""

    directory = tmp_path / "magick-temp"
    directory.mkdir()
    return directory


@pytest.fixture
def config(temp_dir: Path) -> MagickConfig:
    """Configuration pointing temp files at ``temp_dir``."""

    return MagickConfig(temp=TempConfig(directory=str(temp_dir), prefix="mm_test"))


@pytest.fixture
def png_bytes() -> bytes:
    return make_png(5, 3)


@pytest.fixture
def imagemagick() -> None:
    """Skip the test when the ImageMagick command-line tools are not installed."""

    missing = [tool for tool in IMAGEMAGICK_TOOLS if shutil.which(tool) is None]
    if missing:
        pytest.skip(f"ImageMagick tools not available: {', '.join(missing)}")
