"""Filesystem locations used by fullbuild.

Settings live under $XDG_CONFIG_HOME/fullbuild and the debug log under
$XDG_STATE_HOME/fullbuild. Relative job, workspace and changelog paths given
on the command line resolve against the working directory.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def _xdg_state_home() -> Path:
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


@dataclass
class FullbuildPaths:
    """Config, state and workspace-relative paths for one process."""

    workspace: Path

    # Read from the environment once, when the instance is created
    _config_home: Path = field(default_factory=_xdg_config_home)
    _state_home: Path = field(default_factory=_xdg_state_home)

    @property
    def global_config_dir(self) -> Path:
        return self._config_home / "fullbuild"

    @property
    def global_settings(self) -> Path:
        """Server-wide settings.json."""
        return self.global_config_dir / "settings.json"

    @property
    def global_state_dir(self) -> Path:
        return self._state_home / "fullbuild"

    @property
    def debug_log(self) -> Path:
        return self.global_state_dir / "debug.log"

    def resolve(self, name: str | Path) -> Path:
        """Resolve a user-supplied path against the workspace.

        Used for job files as well as workspace and changelog locations.
        Absolute paths and ``~`` paths are returned as given.
        """
        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        return (self.workspace / path).resolve()


_paths: FullbuildPaths | None = None


def get_paths(workspace: Path | None = None) -> FullbuildPaths:
    """Return the process-wide paths object.

    ``workspace`` only takes effect on the first call; later calls return
    the existing instance unchanged.
    """
    global _paths
    if _paths is None:
        _paths = FullbuildPaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Forget the current paths object (tests use this between cases)."""
    global _paths
    _paths = None
