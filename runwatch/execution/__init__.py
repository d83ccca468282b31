"""
External command execution.

Public API:
    ProcessRunner — Run a command, stream its output into the log
    ProcessResult — Exit status and timing of one run
    SpawnError — The command could not be started
"""

from .errors import ExecutionError, SpawnError
from .results import ProcessResult
from .runner import ProcessRunner

__all__ = [
    # Errors
    "ExecutionError",
    "SpawnError",
    # Results
    "ProcessResult",
    # Runner
    "ProcessRunner",
]
