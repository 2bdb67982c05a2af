"""Checkout command: run the full stage sequence for a job."""

from __future__ import annotations

import argparse
import logging
import sys
import threading

from fullbuild.cli.context import (
    builder_from_settings,
    checkout_environment,
    load_job_or_error,
    parse_params,
    runner_from_settings,
)
from fullbuild.config.paths import get_paths
from fullbuild.config.settings import Settings
from fullbuild.runtime.sinks import StreamSink
from fullbuild.scm.errors import ChangelogWriteError, CheckoutError
from fullbuild.scm.pipeline import CheckoutPipeline, CheckoutRequest

logger = logging.getLogger(__name__)

EXIT_CHECKOUT_FAILED = 1
EXIT_CHANGELOG_FAILED = 2
EXIT_INTERRUPTED = 130


def cmd_checkout(
    args: argparse.Namespace,
    settings: Settings,
    *,
    cancel_event: threading.Event | None = None,
) -> int:
    """Check out sources for a job and record its changelog."""
    params = parse_params(args.param)
    if params is None:
        return 1

    job = load_job_or_error(args.job)
    if job is None:
        return 1

    paths = get_paths()
    workspace = paths.resolve(args.workspace)
    changelog_path = paths.resolve(args.changelog)
    try:
        workspace.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error: Cannot create workspace '{workspace}': {e}", file=sys.stderr)
        return EXIT_CHECKOUT_FAILED

    env = checkout_environment(job, params)
    pipeline = CheckoutPipeline(
        job.scm,
        builder_from_settings(settings),
        runner_from_settings(settings),
    )
    request = CheckoutRequest(
        workspace=workspace,
        changelog_path=changelog_path,
        environment=env,
        log=StreamSink(sys.stdout),
    )

    print(f"Checkout: {job.scm.key}")
    print(f"Workspace: {workspace}")
    sys.stdout.flush()

    try:
        result = pipeline.run(request, cancel_event=cancel_event)
    except ChangelogWriteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CHANGELOG_FAILED
    except CheckoutError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CHECKOUT_FAILED
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED

    print()
    print(f"Changelog: {result.changelog_path} ({result.changelog_bytes} bytes)")
    return 0
