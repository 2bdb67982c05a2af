"""CLI orchestration and command routing."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from fullbuild.cli.commands import cmd_checkout, cmd_plan, cmd_settings
from fullbuild.cli.parser import build_parser, parse_args
from fullbuild.config.paths import get_paths
from fullbuild.config.settings import Settings, load_settings

logger = logging.getLogger(__name__)

Handler = Callable[[argparse.Namespace, Settings], int]


def dispatch(args: argparse.Namespace, settings: Settings) -> int:
    """Route parsed args to the correct command handler."""
    command_handlers: dict[str, Handler] = {
        "checkout": cmd_checkout,
        "plan": cmd_plan,
        "settings": cmd_settings,
    }

    handler = command_handlers.get(args.command) if args.command else None
    if handler is None:
        build_parser().print_help(sys.stderr)
        return 1

    return handler(args, settings)


def run(
    argv: Sequence[str] | None = None,
    *,
    configure_logging: Callable[[], None] | None = None,
    settings: Settings | None = None,
) -> int:
    """Parse args, apply shared CLI setup, and execute command."""
    args = parse_args(argv)

    if args.workdir:
        workdir = args.workdir.resolve()
        workdir.mkdir(parents=True, exist_ok=True)
        os.chdir(workdir)

    get_paths(Path.cwd())

    if configure_logging is not None:
        configure_logging()

    logger.info("Working directory: %s", Path.cwd())
    if settings is None:
        settings = load_settings()
    logger.info("Helper executable: %s", settings.executable)
    return dispatch(args, settings)
