"""
Stage detector.

Decides whether a run folder should be processed:

1. Workflow-complete marker present → ALREADY_COMPLETE (no mutation)
2. Lock cannot be taken            → ALREADY_LOCKED
3. Otherwise                       → ELIGIBLE, with the lock held

"Locked" is decided by trying to take the lock, never by the lock file's
existence: a crashed holder leaves the file behind but not the lock.

Scanning stops at the first eligible candidate. One invocation processes at
most one run folder, so repeated scheduled scans make steady progress.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..locking import LockBusyError, acquire_lock
from ..logs import LogRecorder
from ..settings import WorkflowSettings
from .markers import marker_exists
from .models import StageClassification, StageStatus

logger = logging.getLogger(__name__)


def classify(run_folder: Path, settings: WorkflowSettings) -> StageClassification:
    """
    Classify a run folder, taking its lock if it is eligible.

    Args:
        run_folder: Absolute path to the candidate
        settings: Marker and lock file names

    Returns:
        StageClassification. When ELIGIBLE, the caller owns the lock and
        must release it.

    Raises:
        LockSetupError: The lock file cannot be created/opened
    """
    if marker_exists(run_folder / settings.complete_marker):
        return StageClassification(run_folder, StageStatus.ALREADY_COMPLETE)

    try:
        lock = acquire_lock(run_folder / settings.lock_filename)
    except LockBusyError:
        return StageClassification(run_folder, StageStatus.ALREADY_LOCKED)

    return StageClassification(run_folder, StageStatus.ELIGIBLE, lock=lock)


def find_candidate(
    search_dir: Path,
    settings: WorkflowSettings,
    log: Optional[LogRecorder] = None,
) -> Optional[StageClassification]:
    """
    Find the first eligible run folder directly inside a search directory.

    Entries are visited in filesystem enumeration order. Hidden entries and
    non-directories are ignored. Complete and locked folders are skipped
    with a log line.

    Returns:
        ELIGIBLE classification (lock held), or None if nothing is eligible

    Raises:
        LockSetupError: A candidate's lock file cannot be created/opened
    """
    with os.scandir(search_dir) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if not entry.is_dir():
                continue

            candidate = Path(entry.path)
            result = classify(candidate, settings)

            if result.status == StageStatus.ALREADY_COMPLETE:
                _note(log, f"Skipping {candidate}: already complete.")
                continue
            if result.status == StageStatus.ALREADY_LOCKED:
                _note(log, f"Skipping {candidate}: another instance is working on it.")
                continue

            _note(log, f"Found run folder to process: {candidate}")
            return result

    _note(log, f"No eligible run folders found in {search_dir}.")
    return None


def _note(log: Optional[LogRecorder], message: str) -> None:
    if log is not None:
        log.line(message)
    else:
        logger.info(message)
