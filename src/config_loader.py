"""Configuration loader that parses and validates user-provided TOML."""

from __future__ import annotations

import math
import tomllib
from dataclasses import fields
from typing import Any, Dict

from .datatypes import CommandConfig, MagickConfig, TempConfig


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


_TIMEOUT_NOT_NUMBER_MSG = "command.timeout_seconds must be a number"
_TIMEOUT_NOT_FINITE_MSG = "command.timeout_seconds must be a finite number"
_TIMEOUT_NEGATIVE_MSG = "command.timeout_seconds must be >= 0"

_KNOWN_SECTIONS = {"command", "temp"}


def _sanitize_section(raw: Any, name: str, cls):
    """
    Coerce a raw TOML table into an instance of ``cls``.

    Parameters:
        raw (Any): Raw TOML section data.
        name (str): Section name used when reporting validation errors.
        cls: Dataclass type used to construct the section object.

    Returns:
        Any: Instantiated dataclass populated with values from ``raw``.

    Raises:
        ConfigError: If the section is not a table or contains unknown keys.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    known = {field.name for field in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Invalid keys in [{name}]: {', '.join(unknown)}")
    cleaned: Dict[str, Any] = dict(raw)
    return cls(**cleaned)


def normalize_timeout(value: Any) -> float:
    """Return ``value`` as a finite, non-negative number of seconds."""

    if isinstance(value, bool):
        raise ConfigError(_TIMEOUT_NOT_NUMBER_MSG)
    try:
        timeout_value = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(_TIMEOUT_NOT_NUMBER_MSG) from exc
    if not math.isfinite(timeout_value):
        raise ConfigError(_TIMEOUT_NOT_FINITE_MSG)
    if timeout_value < 0:
        raise ConfigError(_TIMEOUT_NEGATIVE_MSG)
    return timeout_value


def validate_config(config: MagickConfig) -> MagickConfig:
    """Normalise ``config`` in place and return it."""

    if not isinstance(config.command.processor, str):
        raise ConfigError("command.processor must be a string")
    config.command.processor = config.command.processor.strip()
    config.command.timeout_seconds = normalize_timeout(config.command.timeout_seconds)

    if not isinstance(config.temp.directory, str):
        raise ConfigError("temp.directory must be a string")
    config.temp.directory = config.temp.directory.strip()
    prefix = config.temp.prefix
    if not isinstance(prefix, str) or not prefix.strip():
        raise ConfigError("temp.prefix must be a non-empty string")
    prefix = prefix.strip()
    if "/" in prefix or "\\" in prefix:
        raise ConfigError("temp.prefix may not contain path separators")
    config.temp.prefix = prefix
    return config


def load_config(path: str) -> MagickConfig:
    """
    Load and validate a configuration from a TOML file.

    Reads the file at ``path`` as UTF-8 TOML (a BOM is accepted), builds the
    ``[command]`` and ``[temp]`` sections and validates them.

    Returns:
        MagickConfig: The validated configuration.

    Raises:
        ConfigError: If the file is not UTF-8, TOML parsing fails, or any validation rule is violated.
    """

    with open(path, "rb") as handle:
        raw_bytes = handle.read()
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        raw = tomllib.loads(raw_bytes.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc

    unknown_sections = sorted(set(raw) - _KNOWN_SECTIONS)
    if unknown_sections:
        raise ConfigError(f"Unknown configuration sections: {', '.join(unknown_sections)}")

    config = MagickConfig(
        command=_sanitize_section(raw.get("command", {}), "command", CommandConfig),
        temp=_sanitize_section(raw.get("temp", {}), "temp", TempConfig),
    )
    return validate_config(config)
