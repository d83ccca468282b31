"""
Stage detection and waiting errors.

None of these write the completion marker: the invocation aborts and a
later invocation starts over from the beginning.
"""

from typing import Optional

from ..errors import WorkflowError


class StageError(WorkflowError):
    """Base exception for stage gating failures."""

    pass


class CompletionTimeoutError(StageError):
    """A completion marker did not appear within its budget."""

    def __init__(self, marker_path: str, max_minutes: int):
        self.marker_path = marker_path
        self.max_minutes = max_minutes
        super().__init__(
            f"{marker_path} did not appear within {max_minutes} minute(s)"
        )


class MissingInputError(StageError):
    """A file the analysis step requires is missing from the run folder."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Required input file is missing: {path}")


class RunSummaryError(StageError):
    """The instrument's run summary does not report a successful run."""

    def __init__(self, path: str, status: Optional[str]):
        self.path = path
        self.status = status
        shown = status if status is not None else "<missing>"
        super().__init__(f"Run summary {path} reports status {shown}")
