"""
Stage detection models.

A run folder is classified before anything touches it. Only an ELIGIBLE
classification carries a lock; the caller owns that lock from then on.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..locking import LockHandle


class StageStatus(str, Enum):
    """
    Where a run folder stands.

    ELIGIBLE: Untouched or interrupted; lock taken, ready to process
    ALREADY_COMPLETE: Workflow-complete marker present; nothing to do
    ALREADY_LOCKED: Another invocation holds the lock
    """

    ELIGIBLE = "eligible"
    ALREADY_COMPLETE = "already_complete"
    ALREADY_LOCKED = "already_locked"


class WaitOutcome(str, Enum):
    """Result of waiting for a completion marker."""

    FOUND = "found"
    TIMED_OUT = "timed_out"


@dataclass
class StageClassification:
    """
    Classification of one candidate run folder.

    Attributes:
        run_folder: Absolute path of the candidate
        status: Classification result
        lock: Held lock when status is ELIGIBLE, else None
    """

    run_folder: Path
    status: StageStatus
    lock: Optional[LockHandle] = None

    @property
    def eligible(self) -> bool:
        return self.status == StageStatus.ELIGIBLE


class RunSummary(BaseModel):
    """
    Parsed instrument run summary.

    Only one scalar field is read. Success means the field is present and
    equals the configured success token exactly.
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Run summary file that was read")
    status: Optional[str] = Field(
        None, description="Value of the status field (None if absent)"
    )
    succeeded: bool = Field(..., description="Whether status equals the success token")
