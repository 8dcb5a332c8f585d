"""Canonical state transition helpers for workflow executions."""

from __future__ import annotations

from leadflow.models.enums import ExecutionStatus


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Simple in-memory state machine keyed by status value."""

    def __init__(self, transitions: dict[str, set[str]]) -> None:
        self._transitions = transitions

    def can_transition(self, current: str, target: str) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")


# completed and failed are terminal; a stuck running row is only ever reaped to failed.
EXECUTION_TRANSITIONS: dict[str, set[str]] = {
    ExecutionStatus.RUNNING.value: {ExecutionStatus.COMPLETED.value, ExecutionStatus.FAILED.value},
    ExecutionStatus.COMPLETED.value: set(),
    ExecutionStatus.FAILED.value: set(),
}

execution_state_machine = StateMachine(EXECUTION_TRANSITIONS)
