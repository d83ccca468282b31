"""
Workflow driver.

Public API:
    WorkflowDriver — Runs scan / run / deliver to a WorkflowOutcome
    WorkflowContext, build_context — Per-invocation collaborators
    WorkflowAction, WorkflowState, WorkflowOutcome — Closed enums
    WorkflowStateMachine — Validated state transitions
"""

from .errors import InvalidStateTransitionError
from .models import WorkflowAction, WorkflowState, WorkflowOutcome
from .state import (
    TERMINAL_STATES,
    is_terminal,
    can_transition,
    WorkflowStateMachine,
)
from .context import WorkflowContext, build_context
from .driver import WorkflowDriver

__all__ = [
    # Errors
    "InvalidStateTransitionError",
    # Models
    "WorkflowAction",
    "WorkflowState",
    "WorkflowOutcome",
    # State
    "TERMINAL_STATES",
    "is_terminal",
    "can_transition",
    "WorkflowStateMachine",
    # Core
    "WorkflowContext",
    "build_context",
    "WorkflowDriver",
]
