"""
Execution errors.

A non-zero exit status is NOT an error: it is a normal ProcessResult the
workflow branches on. Only a command that could not be started at all
raises SpawnError.
"""

from typing import List

from ..errors import WorkflowError


class ExecutionError(WorkflowError):
    """Base exception for execution failures."""

    pass


class SpawnError(ExecutionError):
    """
    The external command could not be started.

    Raised when:
    - Executable missing
    - Permission denied
    - Working directory unusable
    """

    def __init__(self, command: List[str], reason: str):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"Could not start {command[0] if command else '<empty>'}: {reason}")
