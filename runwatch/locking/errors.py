"""
Lock error hierarchy.

LockBusyError is an expected outcome: another invocation is already working
the run folder. It is logged and skipped, never reported as a failure.
"""

from ..errors import SetupError, WorkflowError


class LockError(WorkflowError):
    """Base exception for lock failures."""

    pass


class LockBusyError(LockError):
    """Another process holds the lock on this run folder."""

    def __init__(self, lock_path: str):
        self.lock_path = lock_path
        super().__init__(f"Lock is held by another process: {lock_path}")


class LockSetupError(LockError, SetupError):
    """The lock file cannot be created or opened."""

    def __init__(self, lock_path: str, reason: str):
        self.lock_path = lock_path
        self.reason = reason
        super().__init__(f"Cannot open lock file {lock_path}: {reason}")
