"""Plan command: show the commands a checkout would run."""

from __future__ import annotations

import argparse
import shlex
import sys

from fullbuild.cli.context import (
    builder_from_settings,
    checkout_environment,
    load_job_or_error,
    parse_params,
)
from fullbuild.config.paths import get_paths
from fullbuild.config.settings import Settings
from fullbuild.scm.errors import ExpansionError


def cmd_plan(args: argparse.Namespace, settings: Settings) -> int:
    """Print each stage's command line without running anything."""
    params = parse_params(args.param)
    if params is None:
        return 1

    job = load_job_or_error(args.job)
    if job is None:
        return 1

    workspace = get_paths().resolve(args.workspace)
    env = checkout_environment(job, params)
    builder = builder_from_settings(settings)

    try:
        plan = builder.plan(job.scm, env, workspace)
    except ExpansionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Checkout: {job.scm.key}")
    if job.scm.branch:
        print(f"Branch: {job.scm.branch} (not passed to the tool)")
    for stage, argv in plan.items():
        print(f"  {stage.value:<8} {shlex.join(argv)}")
    return 0
