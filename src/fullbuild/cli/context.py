"""Shared context helpers for CLI command modules."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from fullbuild.config.paths import get_paths
from fullbuild.config.settings import Settings
from fullbuild.runtime.command_runner import CommandRunner
from fullbuild.runtime.timeout_policy import TimeoutPolicyRegistry
from fullbuild.scm.commands import CommandBuilder
from fullbuild.scm.environment import build_environment
from fullbuild.scm.job import JobDefinition, JobDefinitionError


def parse_params(pairs: Sequence[str]) -> dict[str, str] | None:
    """Parse NAME=VALUE pairs, printing an error and returning None on bad input."""
    params: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            print(f"Error: Invalid parameter '{pair}' (expected NAME=VALUE)", file=sys.stderr)
            return None
        params[name] = value
    return params


def load_job_or_error(path: Path) -> JobDefinition | None:
    """Load a job definition or print a user-facing error and return None."""
    job_path = get_paths().resolve(path)
    if not job_path.exists():
        print(f"Error: Job file '{path}' not found", file=sys.stderr)
        print(f"  Looked in: {job_path.parent}", file=sys.stderr)
        return None

    try:
        return JobDefinition.load(job_path)
    except JobDefinitionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


def checkout_environment(
    job: JobDefinition,
    params: Mapping[str, str],
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment for a checkout: defaults < process env < CLI params."""
    build_env = dict(os.environ if base_env is None else base_env)
    build_env.update(params)
    return build_environment(job.parameters, build_env)


def builder_from_settings(settings: Settings) -> CommandBuilder:
    return CommandBuilder(settings.executable, strict=settings.strict_expansion)


def runner_from_settings(settings: Settings) -> CommandRunner:
    registry = TimeoutPolicyRegistry.from_timeouts(
        settings.stage_timeouts,
        terminate_grace_seconds=settings.terminate_grace_seconds,
    )
    return CommandRunner(policy_registry=registry)
