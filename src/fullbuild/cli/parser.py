"""Argument parser construction for the fullbuild CLI."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def _add_job_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "job",
        type=Path,
        help="Path to the job definition (YAML)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        required=True,
        help="Directory to check sources out into",
    )
    parser.add_argument(
        "-p",
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Build variable; overrides parameter defaults and the process "
        "environment (repeatable)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        description="fullbuild - multi-repository checkout for CI builds"
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Working directory for relative paths (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Checkout command
    checkout_parser = subparsers.add_parser(
        "checkout",
        help="Run init, install, clone and history for a job",
    )
    _add_job_arguments(checkout_parser)
    checkout_parser.add_argument(
        "--changelog",
        type=Path,
        required=True,
        help="File receiving the history output",
    )

    # Plan command (dry run)
    plan_parser = subparsers.add_parser(
        "plan",
        help="Print the commands a checkout would run",
    )
    _add_job_arguments(plan_parser)

    # Settings command
    settings_parser = subparsers.add_parser(
        "settings",
        help="Show or change server-wide settings",
    )
    settings_subparsers = settings_parser.add_subparsers(
        dest="settings_action",
        help="Settings actions",
    )
    settings_subparsers.add_parser("show", help="Print effective settings")
    set_exe_parser = settings_subparsers.add_parser(
        "set-executable",
        help="Use a specific helper tool executable",
    )
    set_exe_parser.add_argument("path", help="Executable path or name on PATH")
    settings_subparsers.add_parser(
        "clear-executable",
        help="Revert to the default executable name",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted)."""
    parser = build_parser()
    if argv is None:
        return parser.parse_args()
    return parser.parse_args(list(argv))
