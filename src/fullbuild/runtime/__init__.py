"""Runtime primitives for running the helper tool."""

from fullbuild.runtime.command_runner import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    ProcessCancelledError,
    ProcessLaunchError,
    get_command_runner,
)
from fullbuild.runtime.sinks import BufferSink, OutputSink, StreamSink
from fullbuild.runtime.timeout_policy import (
    SignalPolicy,
    TimeoutPolicy,
    TimeoutPolicyRegistry,
    get_timeout_policy_registry,
)

__all__ = [
    "BufferSink",
    "CommandEvent",
    "CommandResult",
    "CommandRunner",
    "OutputSink",
    "ProcessCancelledError",
    "ProcessLaunchError",
    "SignalPolicy",
    "StreamSink",
    "TimeoutPolicy",
    "TimeoutPolicyRegistry",
    "get_command_runner",
    "get_timeout_policy_registry",
]
