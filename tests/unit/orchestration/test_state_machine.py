from __future__ import annotations

import pytest

from leadflow.models import ExecutionStatus
from leadflow.orchestration.state_machine import InvalidTransitionError, StateMachine, execution_state_machine


def test_running_execution_can_complete_or_fail():
    assert execution_state_machine.can_transition(ExecutionStatus.RUNNING.value, ExecutionStatus.COMPLETED.value)
    assert execution_state_machine.can_transition(ExecutionStatus.RUNNING.value, ExecutionStatus.FAILED.value)


@pytest.mark.parametrize("terminal", [ExecutionStatus.COMPLETED.value, ExecutionStatus.FAILED.value])
def test_terminal_execution_states_reject_transitions(terminal):
    with pytest.raises(InvalidTransitionError):
        execution_state_machine.assert_transition(terminal, ExecutionStatus.RUNNING.value)


def test_unknown_state_has_no_transitions():
    machine = StateMachine({"a": {"b"}})
    assert machine.can_transition("a", "b") is True
    assert machine.can_transition("z", "b") is False
