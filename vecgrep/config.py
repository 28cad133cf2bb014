"""Configuration models and config-file discovery.

This module centralizes:
  - Scan options (threshold, context sizes, output mode flags)
  - Config file discovery and loading (``config.json``)
  - Model path resolution

Precedence for the model path: CLI flag > ``VECGREP_MODEL`` > config file.

Config file format (JSON)::

    {"model_path": "/path/to/model.bin", "threshold": 0.7}
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import ConfigError, ModelIOError

CONFIG_FILE_NAME = "config.json"
ENV_MODEL = "VECGREP_MODEL"
ENV_CONFIG = "VECGREP_CONFIG"

DEFAULT_THRESHOLD = 0.7


def get_xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME directory, defaulting to ~/.config."""
    xdg_config = os.getenv("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


@dataclass
class ScanOptions:
    """Options for one scan.

    Attributes:
        threshold: A token matches when its score is strictly greater.
        context_before: Non-matching lines printed before a match.
        context_after: Lines printed verbatim after a match.
        ignore_case: Lower-case queries and tokens before lookup.
        line_numbers: Prefix printed lines with their 1-based number.
        only_matching: Print only the matched token of each matching line.
        only_lines: Print matching lines without scores or context.
        color: Highlight matches and line numbers with ANSI colors.
    """

    threshold: float = DEFAULT_THRESHOLD
    context_before: int = 0
    context_after: int = 0
    ignore_case: bool = False
    line_numbers: bool = False
    only_matching: bool = False
    only_lines: bool = False
    color: bool = False

    def validate(self) -> "ScanOptions":
        """Check option ranges and combinations.

        Returns:
            self, for chaining.

        Raises:
            ConfigError: On negative context sizes or conflicting modes.
        """
        if self.context_before < 0 or self.context_after < 0:
            raise ConfigError("context line counts must be >= 0")
        if self.only_matching and self.only_lines:
            raise ConfigError("--only-matching and --only-lines are mutually exclusive")
        return self


@dataclass
class AppConfig:
    """Values read from a config file."""

    model_path: Optional[str] = None
    threshold: Optional[float] = None
    source: Optional[Path] = None


def config_search_paths(cwd: Optional[Path] = None) -> List[Path]:
    """Locations checked for a config file, in priority order."""
    base = cwd if cwd is not None else Path.cwd()
    return [
        base / CONFIG_FILE_NAME,
        get_xdg_config_home() / "vecgrep" / CONFIG_FILE_NAME,
        Path("/etc/vecgrep") / CONFIG_FILE_NAME,
    ]


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the first existing config file, honoring ``VECGREP_CONFIG``.

    Args:
        cwd: Directory treated as the current one (defaults to Path.cwd()).

    Returns:
        Path to the config file, or None if none exists.
    """
    explicit = os.getenv(ENV_CONFIG)
    if explicit:
        return Path(explicit).expanduser()
    for candidate in config_search_paths(cwd):
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path) -> AppConfig:
    """Load a JSON config file.

    Args:
        path: Config file path.

    Returns:
        AppConfig populated from the file.

    Raises:
        ModelIOError: If the file cannot be read.
        ConfigError: If the JSON is malformed or values have the wrong type.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ModelIOError(f"cannot read config file {path}: {e}") from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in config file {path}: {e}") from e
    if not isinstance(payload, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")

    cfg = AppConfig(source=path)

    model_path = payload.get("model_path")
    if model_path is not None:
        if not isinstance(model_path, str):
            raise ConfigError(f"model_path in {path} must be a string")
        cfg.model_path = str(Path(model_path).expanduser())

    threshold = payload.get("threshold")
    if threshold is not None:
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigError(f"threshold in {path} must be a number")
        cfg.threshold = float(threshold)

    return cfg


def resolve_model_path(cli_value: Optional[str], config: Optional[AppConfig]) -> Optional[str]:
    """Pick the model path from CLI flag, environment, then config file."""
    if cli_value:
        return cli_value
    env_value = os.getenv(ENV_MODEL)
    if env_value:
        return env_value
    if config is not None and config.model_path:
        return config.model_path
    return None
