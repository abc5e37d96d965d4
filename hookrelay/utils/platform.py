"""Per-platform config and data directories."""

from __future__ import annotations

import os
import sys
from pathlib import Path

APP_NAME = "hookrelay"


def _windows_dir(env_var: str, fallback: Path) -> Path:
    return Path(os.environ.get(env_var, fallback)) / APP_NAME


def get_config_dir() -> Path:
    env = os.environ.get("HOOKRELAY_CONFIG_DIR")
    if env:
        return Path(env)
    if sys.platform == "win32":
        return _windows_dir("APPDATA", Path.home() / "AppData" / "Roaming")
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg) / APP_NAME


def get_data_dir() -> Path:
    env = os.environ.get("HOOKRELAY_DATA_DIR")
    if env:
        return Path(env)
    if sys.platform == "win32":
        return _windows_dir("LOCALAPPDATA", Path.home() / "AppData" / "Local")
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    return Path(xdg) / APP_NAME
