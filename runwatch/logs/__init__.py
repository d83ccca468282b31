"""
Workflow log recorder.

The operator-facing narrative of one invocation: every message goes to
standard output and to the run folder's log file (or to an in-memory
buffer until the file is opened).

Public API:
    LogRecorder — Dual-sink, rotating, always-flushed log
    LogOpenError — Log file could not be created
"""

from .errors import LogOpenError
from .recorder import LogRecorder

__all__ = [
    "LogOpenError",
    "LogRecorder",
]
