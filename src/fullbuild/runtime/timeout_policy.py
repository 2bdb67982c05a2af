"""Timeout and termination policy for spawned tool processes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SignalPolicy:
    """Process signaling behavior when a run is stopped early."""

    terminate_grace_seconds: float
    use_process_group: bool = True


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Resolved policy for one command domain.

    A ``timeout_seconds`` of None means the command may run indefinitely.
    """

    domain: str
    timeout_seconds: float | None
    signal: SignalPolicy


DEFAULT_SIGNAL_POLICY = SignalPolicy(terminate_grace_seconds=10.0)


class TimeoutPolicyRegistry:
    """Registry that resolves policies by domain name."""

    def __init__(
        self,
        policies: Mapping[str, TimeoutPolicy] | None = None,
        *,
        default_signal: SignalPolicy = DEFAULT_SIGNAL_POLICY,
    ) -> None:
        self._policies = dict(policies or {})
        self._default_signal = default_signal

    @classmethod
    def from_timeouts(
        cls,
        timeouts: Mapping[str, float],
        *,
        terminate_grace_seconds: float = DEFAULT_SIGNAL_POLICY.terminate_grace_seconds,
    ) -> "TimeoutPolicyRegistry":
        """Build a registry from a plain ``{domain: seconds}`` mapping."""
        signal_policy = SignalPolicy(terminate_grace_seconds=terminate_grace_seconds)
        policies = {
            domain: TimeoutPolicy(
                domain=domain,
                timeout_seconds=seconds if seconds > 0 else None,
                signal=signal_policy,
            )
            for domain, seconds in timeouts.items()
        }
        return cls(policies, default_signal=signal_policy)

    def policy_for(self, domain: str) -> TimeoutPolicy:
        """Return policy for a domain; unknown domains never time out."""
        policy = self._policies.get(domain)
        if policy is not None:
            return policy
        return TimeoutPolicy(
            domain=domain,
            timeout_seconds=None,
            signal=self._default_signal,
        )


_DEFAULT_TIMEOUT_POLICY_REGISTRY = TimeoutPolicyRegistry()


def get_timeout_policy_registry() -> TimeoutPolicyRegistry:
    """Return shared timeout policy registry (no timeouts)."""
    return _DEFAULT_TIMEOUT_POLICY_REGISTRY
