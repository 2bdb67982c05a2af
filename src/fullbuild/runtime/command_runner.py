"""Subprocess runner that streams output into sinks.

One call runs one command to completion. Output is pumped into the given
sinks while the process runs; the caller gets the exit status back. The
runner never retries.
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from fullbuild.runtime.sinks import OutputSink
from fullbuild.runtime.timeout_policy import (
    TimeoutPolicyRegistry,
    get_timeout_policy_registry,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
POLL_INTERVAL_SECONDS = 0.05
TIMEOUT_EXIT_CODE = 124


class ProcessLaunchError(OSError):
    """Raised when a command cannot be started at all."""

    def __init__(self, command: str, cause: OSError) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f"Could not start {command}: {cause.strerror or cause}")


class ProcessCancelledError(Exception):
    """Raised when a running command was stopped because the caller cancelled."""

    def __init__(self, command: str, signal_sequence: tuple[str, ...] = ()) -> None:
        self.command = command
        self.signal_sequence = signal_sequence
        super().__init__(f"Cancelled: {command}")


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """Lifecycle event emitted while running a command."""

    event_type: str
    domain: str
    command: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one command run."""

    domain: str
    command: str
    exit_code: int | None
    duration_seconds: float
    timed_out: bool = False
    signal_sequence: tuple[str, ...] = ()

    @property
    def effective_exit_code(self) -> int:
        """Exit code with timeouts and signal deaths mapped to failures."""
        if self.timed_out:
            return TIMEOUT_EXIT_CODE
        if self.exit_code is None:
            return 1
        if self.exit_code < 0:
            # Killed by signal -N; report the shell convention.
            return 128 - self.exit_code
        return self.exit_code

    @property
    def succeeded(self) -> bool:
        return not self.timed_out and self.exit_code == 0


class _StreamPump(threading.Thread):
    """Copies one pipe into a sink until EOF."""

    def __init__(self, pipe: IO[bytes], sink: OutputSink, name: str) -> None:
        super().__init__(name=name, daemon=True)
        self._pipe = pipe
        self._sink = sink
        self.error: BaseException | None = None

    def run(self) -> None:
        read = getattr(self._pipe, "read1", self._pipe.read)
        try:
            while True:
                chunk = read(CHUNK_SIZE)
                if not chunk:
                    break
                self._sink.write(chunk)
            self._sink.flush()
        except Exception as e:  # surfaced by the runner after join
            self.error = e
        finally:
            self._pipe.close()


class CommandRunner:
    """Runs tool commands with streaming output and cooperative cancellation."""

    def __init__(self, *, policy_registry: TimeoutPolicyRegistry | None = None) -> None:
        self._policy_registry = policy_registry or get_timeout_policy_registry()

    def run(
        self,
        *,
        command: Sequence[str],
        stdout: OutputSink,
        stderr: OutputSink | None = None,
        domain: str = "command",
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        cancel_event: threading.Event | None = None,
        on_event: Callable[[CommandEvent], None] | None = None,
    ) -> CommandResult:
        """Run ``command`` and wait for it to finish.

        Args:
            command: Argument vector; never interpreted by a shell.
            stdout: Sink receiving standard output as it is produced.
            stderr: Sink for standard error. When None, standard error is
                merged into ``stdout`` at the OS level.
            domain: Policy domain used to look up timeout and signal rules.
            cwd: Working directory for the child.
            env: Complete environment for the child.
            cancel_event: When set during the run, the child is terminated
                and ProcessCancelledError is raised.
            on_event: Optional lifecycle callback.

        Raises:
            ProcessLaunchError: If the process cannot be spawned.
            ProcessCancelledError: If ``cancel_event`` was set mid-run.
            KeyboardInterrupt: Re-raised after the child has been stopped.
        """
        policy = self._policy_registry.policy_for(domain)
        command_text = _format_command(command)
        resolved_cwd = Path(cwd).resolve() if cwd is not None else None
        use_process_group = policy.signal.use_process_group and os.name != "nt"

        logger.debug("Running [%s] in %s: %s", domain, resolved_cwd, command_text)
        started_at = time.perf_counter()
        try:
            process = subprocess.Popen(
                list(command),
                cwd=str(resolved_cwd) if resolved_cwd is not None else None,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE if stderr is not None else subprocess.STDOUT,
                start_new_session=use_process_group,
            )
        except OSError as e:
            logger.error("Failed to launch %s: %s", command_text, e)
            raise ProcessLaunchError(command_text, e) from e

        _emit_event(on_event, CommandEvent("start", domain, command_text))

        assert process.stdout is not None
        pumps = [_StreamPump(process.stdout, stdout, f"{domain}-stdout")]
        if stderr is not None:
            assert process.stderr is not None
            pumps.append(_StreamPump(process.stderr, stderr, f"{domain}-stderr"))
        for pump in pumps:
            pump.start()

        deadline = (
            started_at + policy.timeout_seconds
            if policy.timeout_seconds is not None
            else None
        )
        timed_out = False
        cancelled = False
        signals: list[str] = []

        try:
            while True:
                try:
                    process.wait(timeout=POLL_INTERVAL_SECONDS)
                    break
                except subprocess.TimeoutExpired:
                    pass

                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    _emit_event(
                        on_event,
                        CommandEvent("cancel", domain, command_text, "Cancellation requested"),
                    )
                elif deadline is not None and time.perf_counter() >= deadline:
                    timed_out = True
                    _emit_event(
                        on_event,
                        CommandEvent(
                            "timeout",
                            domain,
                            command_text,
                            f"Exceeded {policy.timeout_seconds}s",
                        ),
                    )
                else:
                    continue

                signals.extend(
                    self._terminate_process(
                        process=process,
                        use_process_group=use_process_group,
                        terminate_grace_seconds=policy.signal.terminate_grace_seconds,
                        domain=domain,
                        command=command_text,
                        on_event=on_event,
                    )
                )
                break
        except KeyboardInterrupt:
            logger.warning("Interrupted while running %s; stopping it", command_text)
            self._terminate_process(
                process=process,
                use_process_group=use_process_group,
                terminate_grace_seconds=policy.signal.terminate_grace_seconds,
                domain=domain,
                command=command_text,
                on_event=on_event,
            )
            raise
        finally:
            for pump in pumps:
                pump.join()

        for pump in pumps:
            if pump.error is not None:
                raise pump.error

        duration_seconds = time.perf_counter() - started_at

        if cancelled:
            raise ProcessCancelledError(command_text, tuple(signals))

        result = CommandResult(
            domain=domain,
            command=command_text,
            exit_code=process.returncode,
            duration_seconds=duration_seconds,
            timed_out=timed_out,
            signal_sequence=tuple(signals),
        )
        _emit_event(
            on_event,
            CommandEvent("exit", domain, command_text, f"exit={result.effective_exit_code}"),
        )
        logger.debug(
            "Finished [%s] exit=%s in %.2fs",
            domain,
            process.returncode,
            duration_seconds,
        )
        return result

    def _terminate_process(
        self,
        *,
        process: subprocess.Popen[bytes],
        use_process_group: bool,
        terminate_grace_seconds: float,
        domain: str,
        command: str,
        on_event: Callable[[CommandEvent], None] | None,
    ) -> list[str]:
        signals: list[str] = []

        def _send(sig: int, label: str) -> bool:
            if process.poll() is not None:
                return False
            try:
                if use_process_group:
                    os.killpg(process.pid, sig)
                else:
                    process.send_signal(sig)
                signals.append(label)
                return True
            except ProcessLookupError:
                return False

        if _send(signal.SIGTERM, "SIGTERM"):
            _emit_event(
                on_event,
                CommandEvent("terminate", domain, command, "Sent SIGTERM"),
            )

        try:
            process.wait(timeout=terminate_grace_seconds)
            return signals
        except subprocess.TimeoutExpired:
            pass

        kill_signal = getattr(signal, "SIGKILL", signal.SIGTERM)
        if _send(kill_signal, "SIGKILL"):
            _emit_event(
                on_event,
                CommandEvent(
                    "kill",
                    domain,
                    command,
                    "Sent SIGKILL after terminate grace period",
                ),
            )

        process.wait()
        return signals


def _format_command(command: Sequence[str]) -> str:
    return shlex.join([str(part) for part in command])


def _emit_event(
    on_event: Callable[[CommandEvent], None] | None,
    event: CommandEvent,
) -> None:
    if on_event is None:
        return
    on_event(event)


_DEFAULT_COMMAND_RUNNER = CommandRunner()


def get_command_runner() -> CommandRunner:
    """Return shared command runner instance."""
    return _DEFAULT_COMMAND_RUNNER
