"""Server-wide settings persistence.

Settings are loaded once at startup and handed to the components that need
them; nothing in the checkout path reads them from module state.
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any

from fullbuild.config.paths import get_paths

logger = logging.getLogger(__name__)

DISPLAY_NAME = "FullBuild"

# Name of the helper tool when no executable is configured.
DEFAULT_EXECUTABLE = "fullbuild.exe" if os.name == "nt" else "fullbuild"

DEFAULT_TERMINATE_GRACE_SECONDS = 10.0


def get_settings_path() -> Path:
    """Get the path to the settings file."""
    return get_paths().global_settings


def validate_executable(value: str) -> str | None:
    """Check that a path names an existing executable file.

    Bare names are looked up on PATH.

    Returns:
        An error message, or None when the executable is usable.
    """
    value = value.strip()
    if not value:
        return "Executable path is empty"

    candidate = Path(value).expanduser()
    if candidate.parent == Path(".") and not value.startswith("."):
        found = shutil.which(value)
        if found is None:
            return f"There's no such executable {value} in PATH"
        return None

    if not candidate.exists():
        return f"There's no such file: {candidate}"
    if not candidate.is_file():
        return f"Not a file: {candidate}"
    if not os.access(candidate, os.X_OK):
        return f"{candidate} is not executable"
    return None


class Settings:
    """Persistent server-wide settings for fullbuild."""

    _defaults: dict[str, Any] = {
        "executable": None,
        "strict_expansion": False,
        "terminate_grace_seconds": DEFAULT_TERMINATE_GRACE_SECONDS,
        "stage_timeouts": {},
    }

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        """Location of the settings file."""
        return self._path or get_settings_path()

    def _load(self) -> None:
        """Load settings from disk."""
        path = self.path
        if path.exists():
            try:
                self._data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable settings file %s: %s", path, e)
                self._data = {}
        else:
            self._data = {}

    def _save(self) -> None:
        """Save settings to disk."""
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            logger.info("Saved settings to %s: %s", path, self._data)
        except OSError as e:
            logger.error("Failed to save settings: %s", e)

    def get(self, key: str) -> Any:
        """Get a setting value, falling back to default."""
        return self._data.get(key, self._defaults.get(key))

    def set(self, key: str, value: Any) -> None:
        """Set a setting value and persist to disk."""
        self._data[key] = value
        self._save()

    def unset(self, key: str) -> None:
        """Drop a stored value so the default applies again."""
        if key in self._data:
            del self._data[key]
            self._save()

    @property
    def executable(self) -> str:
        """Command used to run the helper tool.

        Blank values fall back to DEFAULT_EXECUTABLE.
        """
        saved = self._data.get("executable")
        if isinstance(saved, str) and saved.strip():
            return saved.strip()
        return DEFAULT_EXECUTABLE

    @executable.setter
    def executable(self, value: str | None) -> None:
        cleaned = value.strip() if value else ""
        if cleaned:
            self.set("executable", cleaned)
        else:
            self.unset("executable")

    @property
    def strict_expansion(self) -> bool:
        """Reject unresolved variable references instead of passing them on."""
        return bool(self.get("strict_expansion"))

    @strict_expansion.setter
    def strict_expansion(self, value: bool) -> None:
        self.set("strict_expansion", bool(value))

    @property
    def terminate_grace_seconds(self) -> float:
        """Seconds between SIGTERM and SIGKILL when stopping a stage."""
        return float(self.get("terminate_grace_seconds"))

    @property
    def stage_timeouts(self) -> dict[str, float]:
        """Per-stage timeouts in seconds; stages not listed never time out."""
        raw = self.get("stage_timeouts") or {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed stage_timeouts: %r", raw)
            return {}
        timeouts: dict[str, float] = {}
        for stage, seconds in raw.items():
            try:
                timeouts[str(stage)] = float(seconds)
            except (TypeError, ValueError):
                logger.warning("Ignoring timeout %r for stage %s", seconds, stage)
        return timeouts

    def to_dict(self) -> dict[str, Any]:
        """Effective settings, defaults included."""
        return {
            "executable": self.executable,
            "strict_expansion": self.strict_expansion,
            "terminate_grace_seconds": self.terminate_grace_seconds,
            "stage_timeouts": self.stage_timeouts,
        }


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk (default location when path is None)."""
    return Settings(path)
