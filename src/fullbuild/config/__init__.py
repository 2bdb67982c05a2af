"""Configuration management for fullbuild."""
from __future__ import annotations

from fullbuild.config.paths import FullbuildPaths, get_paths, reset_paths
from fullbuild.config.settings import (
    DEFAULT_EXECUTABLE,
    Settings,
    get_settings_path,
    load_settings,
    validate_executable,
)

__all__ = [
    "DEFAULT_EXECUTABLE",
    "FullbuildPaths",
    "Settings",
    "get_paths",
    "get_settings_path",
    "load_settings",
    "reset_paths",
    "validate_executable",
]
