"""Config file I/O: merge a JSON config file with environment overrides."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import SettingsConfigDict

from habitlens.config.schema import HabitLensConfig
from habitlens.errors import ConfigError

_DEFAULT_CONFIG_DIR = Path.home() / ".habitlens"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "config.json"


def get_state_dir(config: HabitLensConfig | None = None) -> Path:
    if config is None:
        return _DEFAULT_CONFIG_DIR / "state"
    return config.storage.state_dir.expanduser().resolve()


def get_log_dir(config: HabitLensConfig | None = None) -> Path:
    """Log files live next to the state directory."""
    return get_state_dir(config).parent / "logs"


def load_config(path: Path | None = None) -> HabitLensConfig:
    """Load config from a JSON file, falling back to defaults if it is missing.

    Only the given file is read (``~/.habitlens/config.json`` when no path is
    passed). Environment variables with HABITLENS_ prefix override file
    values. Nested keys use __ as delimiter
    (e.g. HABITLENS_HABITS__WINDOW_SIZE_DAYS).

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails validation.
    """
    config_path = (path or _DEFAULT_CONFIG_FILE).expanduser().resolve()

    class _FileConfig(HabitLensConfig):
        model_config = SettingsConfigDict(json_file=config_path)

    try:
        return _FileConfig()
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid config file {config_path}: {exc}") from exc
