"""Settings command handlers."""

from __future__ import annotations

import argparse
import json
import sys

from fullbuild.config.settings import DISPLAY_NAME, Settings, validate_executable


def cmd_settings(args: argparse.Namespace, settings: Settings) -> int:
    """Show or update server-wide settings."""
    action = args.settings_action or "show"

    if action == "show":
        print(f"{DISPLAY_NAME} settings ({settings.path})")
        print(json.dumps(settings.to_dict(), indent=2))
        return 0

    if action == "set-executable":
        error = validate_executable(args.path)
        if error is not None:
            print(f"Error: {error}", file=sys.stderr)
            return 1
        settings.executable = args.path
        print(f"Executable: {settings.executable}")
        return 0

    if action == "clear-executable":
        settings.executable = None
        print(f"Executable: {settings.executable} (default)")
        return 0

    print(f"Error: Unknown settings action '{action}'", file=sys.stderr)
    return 1
