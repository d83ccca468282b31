"""
Workflow actions, states and outcomes.
"""

from enum import Enum


class WorkflowAction(str, Enum):
    """
    The three top-level actions.

    SCAN: Find and process at most one eligible run folder
    RUN: Process one specific run folder through analysis
    DELIVER: Copy every Project directory of a run folder to its owner
    """

    SCAN = "scan"
    RUN = "run"
    DELIVER = "deliver"


class WorkflowState(str, Enum):
    """
    Driver state for one invocation.

    Analysis: IDLE → LOCKED → WAITING_ACQUISITION → [WAITING_RUN_SUMMARY]
              → PREPARING → EXECUTING → COMPLETED
    Delivery: IDLE → LOCKED → SEARCHING → COPYING* → DONE
    ABORTED is reachable from every non-terminal state.
    """

    IDLE = "idle"
    LOCKED = "locked"
    WAITING_ACQUISITION = "waiting_acquisition"
    WAITING_RUN_SUMMARY = "waiting_run_summary"
    PREPARING = "preparing"
    EXECUTING = "executing"
    COMPLETED = "completed"
    SEARCHING = "searching"
    COPYING = "copying"
    DONE = "done"
    ABORTED = "aborted"


class WorkflowOutcome(str, Enum):
    """
    What an invocation ended with. Every outcome maps to exit status 0;
    setup failures are raised instead.
    """

    NO_CANDIDATE = "no_candidate"  # scan found nothing eligible
    SKIPPED_COMPLETE = "skipped_complete"  # workflow-complete marker present
    SKIPPED_LOCKED = "skipped_locked"  # another instance holds the lock
    ANALYSIS_SUCCEEDED = "analysis_succeeded"  # marker written, command exited 0
    ANALYSIS_FAILED = "analysis_failed"  # marker written, command exited non-zero
    ABORTED = "aborted"  # timeout, spawn error, missing input; no marker
    NOTHING_TO_DELIVER = "nothing_to_deliver"  # no Project directories found
    DELIVERED = "delivered"  # every Project directory was attempted
