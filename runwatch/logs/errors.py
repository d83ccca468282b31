"""
Log recorder errors.
"""

from ..errors import SetupError


class LogOpenError(SetupError):
    """The workflow log file cannot be created."""

    def __init__(self, log_path: str, reason: str):
        self.log_path = log_path
        self.reason = reason
        super().__init__(f"Cannot open log file {log_path}: {reason}")
