"""Platform path helpers for promptsmith configuration and exports."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir


def get_config_dir() -> Path:
    """Directory holding config.toml."""
    override = os.environ.get("PROMPTSMITH_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(user_config_dir("promptsmith"))


def get_data_dir() -> Path:
    """Directory for history and debug-log exports."""
    override = os.environ.get("PROMPTSMITH_DATA_DIR")
    if override:
        return Path(override)
    return Path(user_data_dir("promptsmith"))


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def get_debug_log_path() -> Path:
    return get_data_dir() / "debug.log"
