"""SCM configuration record.

Holds what a user sets up once per job: the manifest repository, the
protocol, an optional branch, the shallow flag, and the projects to ignore.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL = "gerrit"

# Accepted spellings for each serialized key.
_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "repo_url": ("repo_url", "repoUrl"),
    "protocol": ("protocol",),
    "branch": ("branch",),
    "shallow": ("shallow",),
    "ignore_projects": ("ignore_projects", "ignoreProjects"),
}


def parse_ignore_projects(text: str | None) -> tuple[str, ...]:
    """Split a whitespace-delimited list into unique tokens.

    First occurrence wins, so the original order survives for display.
    """
    if not text:
        return ()
    return tuple(dict.fromkeys(text.split()))


def render_ignore_projects(projects: Iterable[str]) -> str:
    """Render ignore-list entries one per line."""
    return "\n".join(projects)


@dataclass(frozen=True, slots=True)
class ScmConfig:
    """Checkout settings for one job."""

    repo_url: str
    protocol: str = DEFAULT_PROTOCOL
    branch: str | None = None  # None: let the tool pick its default
    shallow: bool = True
    ignore_projects: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.repo_url, str) or not self.repo_url.strip():
            raise ValueError("repo_url is required")
        normalized = tuple(
            dict.fromkeys(p.strip() for p in self.ignore_projects if p.strip())
        )
        object.__setattr__(self, "ignore_projects", normalized)

    @classmethod
    def create(
        cls,
        repo_url: str,
        *,
        protocol: str | None = None,
        branch: str | None = None,
        shallow: bool | None = None,
        ignore_projects: str | None = None,
    ) -> "ScmConfig":
        """Build a config from user input, applying defaults for unset fields."""
        return cls(
            repo_url=repo_url,
            protocol=protocol or DEFAULT_PROTOCOL,
            branch=branch or None,
            shallow=True if shallow is None else bool(shallow),
            ignore_projects=parse_ignore_projects(ignore_projects),
        )

    @property
    def ignore_projects_text(self) -> str:
        """Ignore-list as a newline-joined string."""
        return render_ignore_projects(self.ignore_projects)

    @property
    def key(self) -> str:
        """Stable identifier for this checkout source."""
        return f"full-build {self.repo_url}"

    def with_ignore_projects(self, text: str | None) -> "ScmConfig":
        """Return a copy with the ignore-list parsed from ``text``."""
        return dataclasses.replace(self, ignore_projects=parse_ignore_projects(text))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "repo_url": self.repo_url,
            "protocol": self.protocol,
            "shallow": self.shallow,
            "ignore_projects": self.ignore_projects_text,
        }
        if self.branch is not None:
            data["branch"] = self.branch
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScmConfig":
        """Create from dictionary.

        Raises:
            ValueError: If repo_url is missing or a field has the wrong type.
        """
        values = {field: _lookup(data, field) for field in _KEY_ALIASES}

        repo_url = values["repo_url"]
        if not isinstance(repo_url, str):
            raise ValueError("repo_url is required")

        shallow = values["shallow"]
        if shallow is not None and not isinstance(shallow, bool):
            raise ValueError(f"shallow must be a boolean, got {shallow!r}")

        ignore = values["ignore_projects"]
        if isinstance(ignore, list):
            if not all(isinstance(item, str) for item in ignore):
                raise ValueError("ignore_projects must contain strings")
            ignore = " ".join(ignore)
        elif ignore is not None and not isinstance(ignore, str):
            raise ValueError("ignore_projects must be a string or list of strings")

        for name in ("protocol", "branch"):
            if values[name] is not None and not isinstance(values[name], str):
                raise ValueError(f"{name} must be a string")

        return cls.create(
            repo_url,
            protocol=values["protocol"],
            branch=values["branch"],
            shallow=shallow,
            ignore_projects=ignore,
        )


def _lookup(data: Mapping[str, Any], field: str) -> Any:
    for key in _KEY_ALIASES[field]:
        if key in data:
            return data[key]
    return None
