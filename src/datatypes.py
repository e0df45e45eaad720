"""Configuration dataclasses for the ImageMagick wrappers."""
from dataclasses import dataclass, field


@dataclass
class CommandConfig:
    """How the external tools are invoked."""

    processor: str = ""
    timeout_seconds: float = 0.0


@dataclass
class TempConfig:
    """Where image bytes are materialised and how the files are named."""

    directory: str = ""
    prefix: str = "mini_magick"


@dataclass
class MagickConfig:
    """Aggregated configuration handed to images and composites."""

    command: CommandConfig = field(default_factory=CommandConfig)
    temp: TempConfig = field(default_factory=TempConfig)

    @property
    def timeout(self) -> float | None:
        """Return the command timeout in seconds, or ``None`` when unbounded."""

        value = float(self.command.timeout_seconds)
        return value if value > 0 else None
