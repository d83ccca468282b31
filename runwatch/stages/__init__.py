"""
Stage detection and completion waiting.

Public API:
    classify — Decide whether a run folder is eligible, complete or locked
    find_candidate — First eligible run folder in a search directory
    CompletionWaiter — Bounded polling for marker files
    read_run_summary — Status check of the instrument's run summary
    write_completion_marker — Mark a run folder as finished running
"""

from .errors import (
    StageError,
    CompletionTimeoutError,
    MissingInputError,
    RunSummaryError,
)
from .models import StageStatus, StageClassification, WaitOutcome, RunSummary
from .markers import (
    marker_exists,
    write_completion_marker,
    extract_field,
    read_run_summary,
    missing_inputs,
)
from .detector import classify, find_candidate
from .waiter import CompletionWaiter

__all__ = [
    # Errors
    "StageError",
    "CompletionTimeoutError",
    "MissingInputError",
    "RunSummaryError",
    # Models
    "StageStatus",
    "StageClassification",
    "WaitOutcome",
    "RunSummary",
    # Markers
    "marker_exists",
    "write_completion_marker",
    "extract_field",
    "read_run_summary",
    "missing_inputs",
    # Core
    "classify",
    "find_candidate",
    "CompletionWaiter",
]
