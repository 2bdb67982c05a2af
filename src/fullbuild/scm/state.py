"""Checkout state machine.

Stages run in a fixed order and each one is gated on the exit code of the
one before it. Any running state may drop into FAILED; DONE and FAILED are
terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    """Helper tool subcommands, in execution order."""

    INIT = "init"
    INSTALL = "install"
    CLONE = "clone"
    HISTORY = "history"


class CheckoutState(Enum):
    """All possible states of one checkout run."""

    INIT = "init"
    INSTALL = "install"
    CLONE = "clone"
    HISTORY = "history"
    DONE = "done"
    FAILED = "failed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, current: CheckoutState, target: CheckoutState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid transition from {current.value} to {target.value}")


VALID_TRANSITIONS: dict[CheckoutState, set[CheckoutState]] = {
    CheckoutState.INIT: {CheckoutState.INSTALL, CheckoutState.FAILED},
    CheckoutState.INSTALL: {CheckoutState.CLONE, CheckoutState.FAILED},
    CheckoutState.CLONE: {CheckoutState.HISTORY, CheckoutState.FAILED},
    CheckoutState.HISTORY: {CheckoutState.DONE, CheckoutState.FAILED},
    CheckoutState.DONE: set(),
    CheckoutState.FAILED: set(),
}

# Successor of each running state when its stage exits with 0.
NEXT_ON_SUCCESS: dict[CheckoutState, CheckoutState] = {
    CheckoutState.INIT: CheckoutState.INSTALL,
    CheckoutState.INSTALL: CheckoutState.CLONE,
    CheckoutState.CLONE: CheckoutState.HISTORY,
    CheckoutState.HISTORY: CheckoutState.DONE,
}

STATE_TO_STAGE: dict[CheckoutState, Stage] = {
    CheckoutState.INIT: Stage.INIT,
    CheckoutState.INSTALL: Stage.INSTALL,
    CheckoutState.CLONE: Stage.CLONE,
    CheckoutState.HISTORY: Stage.HISTORY,
}

TERMINAL_STATES: frozenset[CheckoutState] = frozenset(
    {CheckoutState.DONE, CheckoutState.FAILED}
)


@dataclass
class CheckoutStateMachine:
    """Tracks progress of one checkout.

    Knows nothing about processes: callers feed it exit codes and it decides
    where the run goes next.
    """

    state: CheckoutState = CheckoutState.INIT
    history: list[tuple[CheckoutState, CheckoutState]] = field(default_factory=list)
    failed_stage: Stage | None = None

    @property
    def stage(self) -> Stage | None:
        """Stage to run in the current state, or None once terminal."""
        return STATE_TO_STAGE.get(self.state)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def can_transition(self, target: CheckoutState) -> bool:
        """Check if transition to target state is valid."""
        return target in VALID_TRANSITIONS.get(self.state, set())

    def transition(self, target: CheckoutState) -> CheckoutState:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.state, target)
        self.history.append((self.state, target))
        self.state = target
        return target

    def advance(self, exit_code: int) -> CheckoutState:
        """Apply a stage's exit code: 0 moves forward, anything else fails."""
        if self.is_terminal:
            raise InvalidTransitionError(self.state, self.state)
        if exit_code == 0:
            return self.transition(NEXT_ON_SUCCESS[self.state])
        return self.fail()

    def fail(self) -> CheckoutState:
        """Abort the run from the current running state."""
        self.failed_stage = self.stage
        return self.transition(CheckoutState.FAILED)
