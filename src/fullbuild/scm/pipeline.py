"""Checkout pipeline: init, install, clone, history.

Each stage runs only if the previous one exited with 0. The first three
stream their output to the caller's log; the history stage is captured and
written to the changelog file once it succeeds.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from fullbuild.runtime.command_runner import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    ProcessCancelledError,
    ProcessLaunchError,
    get_command_runner,
)
from fullbuild.runtime.sinks import BufferSink, OutputSink
from fullbuild.scm.commands import CommandBuilder, CommandInvocation
from fullbuild.scm.config import ScmConfig
from fullbuild.scm.errors import (
    ChangelogWriteError,
    CheckoutCancelledError,
    CheckoutError,
    CommandFailedError,
    ToolLaunchError,
)
from fullbuild.scm.state import CheckoutState, CheckoutStateMachine, Stage

logger = logging.getLogger(__name__)

STAGE_MESSAGES: dict[Stage, str] = {
    Stage.INIT: "Initializing workspace in: %s",
    Stage.INSTALL: "Installing packages",
    Stage.CLONE: "Cloning repositories",
    Stage.HISTORY: "Getting changes",
}


@dataclass(frozen=True, slots=True)
class CheckoutRequest:
    """Inputs for one checkout run."""

    workspace: Path
    changelog_path: Path
    environment: Mapping[str, str]
    log: OutputSink


@dataclass(slots=True)
class CheckoutResult:
    """Outcome of a successful checkout."""

    state: CheckoutState
    changelog_path: Path
    changelog_bytes: int
    stage_results: dict[Stage, CommandResult] = field(default_factory=dict)


class CheckoutPipeline:
    """Runs the four checkout stages for one SCM configuration.

    A pipeline object carries no per-run state; ``run`` may be called from
    several threads for different workspaces at once.
    """

    def __init__(
        self,
        config: ScmConfig,
        builder: CommandBuilder,
        runner: CommandRunner | None = None,
        *,
        on_event: Callable[[CommandEvent], None] | None = None,
    ) -> None:
        self.config = config
        self.builder = builder
        self.runner = runner or get_command_runner()
        self.on_event = on_event

    def run(
        self,
        request: CheckoutRequest,
        *,
        cancel_event: threading.Event | None = None,
        machine: CheckoutStateMachine | None = None,
    ) -> CheckoutResult:
        """Check out sources into ``request.workspace``.

        Raises:
            CheckoutError: On the first failing stage; no later stage runs
                and the changelog is left untouched.
        """
        machine = machine or CheckoutStateMachine()
        results: dict[Stage, CommandResult] = {}
        changelog = BufferSink()

        try:
            while not machine.is_terminal:
                stage = machine.stage
                assert stage is not None

                if stage is Stage.INIT:
                    logger.info(STAGE_MESSAGES[stage], request.workspace.name)
                else:
                    logger.info(STAGE_MESSAGES[stage])

                sink = changelog if stage is Stage.HISTORY else request.log
                try:
                    invocation = self.builder.invocation(
                        stage,
                        self.config,
                        request.environment,
                        request.workspace,
                        sink,
                    )
                    result = self._run_stage(invocation, request, cancel_event)
                except (CheckoutError, KeyboardInterrupt):
                    machine.fail()
                    raise
                results[stage] = result

                if not result.succeeded:
                    machine.fail()
                    logger.error(
                        "Stage %s failed with exit code %s",
                        stage.value,
                        result.effective_exit_code,
                    )
                    raise CommandFailedError(
                        stage,
                        result.effective_exit_code,
                        timed_out=result.timed_out,
                    )

                if stage is Stage.HISTORY:
                    try:
                        written = self._write_changelog(
                            changelog, request.changelog_path
                        )
                    except ChangelogWriteError:
                        machine.fail()
                        raise
                    machine.advance(0)
                    return CheckoutResult(
                        state=machine.state,
                        changelog_path=request.changelog_path,
                        changelog_bytes=written,
                        stage_results=results,
                    )

                machine.advance(0)
        finally:
            changelog.close()

        raise CheckoutError(machine.failed_stage, f"Checkout ended in {machine.state.value}")

    def _run_stage(
        self,
        invocation: CommandInvocation,
        request: CheckoutRequest,
        cancel_event: threading.Event | None,
    ) -> CommandResult:
        # Buffered stages still show their diagnostics in the live log.
        stderr = request.log if invocation.sink is not request.log else None
        try:
            return self.runner.run(
                command=invocation.argv,
                stdout=invocation.sink,
                stderr=stderr,
                domain=invocation.stage.value,
                cwd=invocation.cwd,
                env=invocation.env,
                cancel_event=cancel_event,
                on_event=self.on_event,
            )
        except ProcessLaunchError as e:
            raise ToolLaunchError(invocation.stage, e.command, e.cause) from e
        except ProcessCancelledError as e:
            logger.warning("Stage %s cancelled", invocation.stage.value)
            raise CheckoutCancelledError(invocation.stage) from e

    def _write_changelog(self, changelog: BufferSink, path: Path) -> int:
        try:
            return changelog.write_to(path)
        except OSError as e:
            logger.error("Could not write changelog %s: %s", path, e)
            raise ChangelogWriteError(Stage.HISTORY, path, e) from e
