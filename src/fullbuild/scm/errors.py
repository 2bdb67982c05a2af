"""Checkout failure types.

Every failure aborts the remaining stages and reaches the caller as a
CheckoutError subclass naming the stage it happened in.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fullbuild.scm.state import Stage


class CheckoutError(Exception):
    """Base class for checkout failures."""

    def __init__(self, stage: "Stage | None", message: str) -> None:
        self.stage = stage
        super().__init__(message)


class CommandFailedError(CheckoutError):
    """A stage command exited with a non-zero status."""

    def __init__(self, stage: "Stage", exit_code: int, *, timed_out: bool = False) -> None:
        self.exit_code = exit_code
        self.timed_out = timed_out
        reason = "timed out" if timed_out else f"exit={exit_code}"
        super().__init__(stage, f"Stage '{stage.value}' failed ({reason})")


class ExpansionError(CheckoutError):
    """A variable reference could not be resolved against the environment."""

    def __init__(self, stage: "Stage | None", value: str, missing: Sequence[str]) -> None:
        self.value = value
        self.missing = tuple(missing)
        where = f"stage '{stage.value}'" if stage is not None else "expansion"
        super().__init__(
            stage,
            f"Unresolved variable(s) {', '.join(self.missing)} in {value!r} ({where})",
        )


class ToolLaunchError(CheckoutError):
    """The helper tool could not be started."""

    def __init__(self, stage: "Stage", command: str, cause: OSError) -> None:
        self.command = command
        self.cause = cause
        super().__init__(stage, f"Stage '{stage.value}' could not start {command}: {cause}")


class ChangelogWriteError(CheckoutError):
    """All commands succeeded but the changelog could not be written."""

    def __init__(self, stage: "Stage", path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(stage, f"Could not write changelog {path}: {cause}")


class CheckoutCancelledError(CheckoutError):
    """The caller cancelled the checkout while a stage was running."""

    def __init__(self, stage: "Stage") -> None:
        super().__init__(stage, f"Checkout cancelled during stage '{stage.value}'")
