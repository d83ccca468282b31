"""
State transition validation for the workflow driver.

INVARIANT: Terminal states (COMPLETED, DONE, ABORTED) are immutable.
LOCKED is only reachable from IDLE, and only once the lock is held.
"""

import logging
from typing import FrozenSet, List, Set, Tuple

from .errors import InvalidStateTransitionError
from .models import WorkflowState

logger = logging.getLogger(__name__)

TERMINAL_STATES: FrozenSet[WorkflowState] = frozenset({
    WorkflowState.COMPLETED,
    WorkflowState.DONE,
    WorkflowState.ABORTED,
})

_TRANSITIONS: Set[Tuple[WorkflowState, WorkflowState]] = {
    # Lock taken
    (WorkflowState.IDLE, WorkflowState.LOCKED),

    # Analysis
    (WorkflowState.LOCKED, WorkflowState.WAITING_ACQUISITION),
    (WorkflowState.WAITING_ACQUISITION, WorkflowState.WAITING_RUN_SUMMARY),
    (WorkflowState.WAITING_ACQUISITION, WorkflowState.PREPARING),
    (WorkflowState.WAITING_RUN_SUMMARY, WorkflowState.PREPARING),
    (WorkflowState.PREPARING, WorkflowState.EXECUTING),
    (WorkflowState.EXECUTING, WorkflowState.COMPLETED),

    # Delivery
    (WorkflowState.LOCKED, WorkflowState.SEARCHING),
    (WorkflowState.SEARCHING, WorkflowState.COPYING),
    (WorkflowState.SEARCHING, WorkflowState.DONE),
    (WorkflowState.COPYING, WorkflowState.COPYING),
    (WorkflowState.COPYING, WorkflowState.DONE),
}


def is_terminal(state: WorkflowState) -> bool:
    return state in TERMINAL_STATES


def can_transition(from_state: WorkflowState, to_state: WorkflowState) -> bool:
    """
    Check if a transition is legal.

    Any non-terminal state may abort. Terminal states never move.
    """
    if is_terminal(from_state):
        return False
    if to_state == WorkflowState.ABORTED:
        return True
    return (from_state, to_state) in _TRANSITIONS


class WorkflowStateMachine:
    """Tracks and validates the driver's state for one invocation."""

    def __init__(self) -> None:
        self.state = WorkflowState.IDLE
        self.history: List[WorkflowState] = [WorkflowState.IDLE]

    def advance(self, to_state: WorkflowState) -> None:
        """
        Move to a new state.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        if not can_transition(self.state, to_state):
            raise InvalidStateTransitionError(self.state.value, to_state.value)
        logger.debug(f"Workflow state {self.state.value} -> {to_state.value}")
        self.state = to_state
        self.history.append(to_state)

    @property
    def terminal(self) -> bool:
        return is_terminal(self.state)
