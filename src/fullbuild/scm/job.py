"""Job definition files.

A job file is YAML with two sections:

    scm:
      repo_url: https://gerrit.example.com/manifest
      protocol: gerrit
      shallow: true
      ignore_projects: |
        legacy-tools
        docs
    parameters:
      TARGET: release
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from fullbuild.scm.config import ScmConfig

logger = logging.getLogger(__name__)


class JobDefinitionError(ValueError):
    """Raised when a job file is missing, unreadable, or malformed."""


@dataclass(slots=True)
class JobDefinition:
    """SCM settings plus the job's declared string parameters."""

    scm: ScmConfig
    # Declared parameter name -> default value (None: no default)
    parameters: dict[str, str | None] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "JobDefinition":
        """Load a job definition from a YAML file.

        Raises:
            JobDefinitionError: If the file cannot be read or is invalid.
        """
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise JobDefinitionError(f"Cannot read job file {path}: {e}") from e

        if not isinstance(raw_data, dict):
            raise JobDefinitionError(f"Job file {path} must contain a mapping")

        scm_raw = raw_data.get("scm")
        if not isinstance(scm_raw, dict):
            raise JobDefinitionError(f"Job file {path} has no 'scm' mapping")
        try:
            scm = ScmConfig.from_dict(scm_raw)
        except ValueError as e:
            raise JobDefinitionError(f"Invalid scm section in {path}: {e}") from e

        params_raw = raw_data.get("parameters") or {}
        if not isinstance(params_raw, dict):
            raise JobDefinitionError(f"'parameters' in {path} must be a mapping")
        parameters: dict[str, str | None] = {}
        for name, default in params_raw.items():
            if default is not None and not isinstance(default, (str, int, float, bool)):
                raise JobDefinitionError(
                    f"Parameter {name!r} in {path} must have a scalar default"
                )
            parameters[str(name)] = None if default is None else str(default)

        logger.debug(
            "Loaded job %s: %s, %d parameters", path, scm.key, len(parameters)
        )
        return cls(scm=scm, parameters=parameters)

    def save(self, path: Path) -> None:
        """Save the job definition as YAML."""
        data: dict[str, object] = {"scm": self.scm.to_dict()}
        if self.parameters:
            data["parameters"] = dict(self.parameters)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = yaml.dump(data, default_flow_style=False, sort_keys=False)
        path.write_text(content, encoding="utf-8")
        logger.info("Saved job definition to %s", path)
