"""
Workflow driver errors.
"""

from ..errors import WorkflowError


class InvalidStateTransitionError(WorkflowError):
    """Raised when the driver attempts an illegal state transition."""

    def __init__(self, current_state: str, target_state: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid workflow state transition: {current_state} -> {target_state}"
        )
