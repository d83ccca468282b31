"""
Workflow driver.

Runs one action per invocation against one run folder:

    scan    → find the first eligible run folder, then run it
    run     → lock, log, wait for markers, prepare, execute, mark complete
    deliver → lock, log, copy every Project directory to its owner

CRITICAL RULES:
1. Nothing in a run folder is touched before its lock is held
2. The workflow-complete marker is written whenever the analysis command
   ran, whatever its exit status; never when the invocation aborted
3. Routine skips (locked, complete, nothing eligible) are logged, never
   reported to the notifier
4. The lock is always released and the log always closed, even when an
   unexpected error escapes
"""

import logging
from pathlib import Path
from typing import List

from ..deliver import (
    DeliveryResult,
    DeliveryStatus,
    deliver_project,
    find_project_dirs,
)
from ..errors import RenameDepthError
from ..execution import SpawnError
from ..locking import LockBusyError, LockHandle, LockSetupError, acquire_lock, release_lock
from ..logs import LogOpenError
from ..notify import find_lane_barcode_report
from ..paths import rename_aside
from ..stages import (
    CompletionTimeoutError,
    MissingInputError,
    RunSummaryError,
    StageError,
    StageStatus,
    WaitOutcome,
    classify,
    find_candidate,
    marker_exists,
    missing_inputs,
    read_run_summary,
    write_completion_marker,
)
from .context import WorkflowContext
from .models import WorkflowAction, WorkflowOutcome, WorkflowState
from .state import WorkflowStateMachine

logger = logging.getLogger(__name__)


class WorkflowDriver:
    """
    Drives one action to a WorkflowOutcome.

    Setup failures (lock file or log file cannot be opened) are reported to
    the notifier and then re-raised; the caller maps them to an exit status.
    Everything else ends in an outcome.

    Args:
        context: Collaborators for this invocation
    """

    def __init__(self, context: WorkflowContext):
        self.context = context
        self.machine = WorkflowStateMachine()
        self.deliveries: List[DeliveryResult] = []

    @property
    def state(self) -> WorkflowState:
        return self.machine.state

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: WorkflowAction, path: Path) -> WorkflowOutcome:
        """
        Run one action.

        Args:
            action: Which flow to run
            path: Search directory (SCAN) or run folder (RUN, DELIVER),
                already validated and absolute

        Raises:
            SetupError: Lock or log file cannot be opened
            ValueError: Unknown action
        """
        if action == WorkflowAction.SCAN:
            return self.scan(path)
        if action == WorkflowAction.RUN:
            return self.run(path)
        if action == WorkflowAction.DELIVER:
            return self.deliver(path)
        raise ValueError(f"Unhandled workflow action: {action!r}")

    # ------------------------------------------------------------------
    # Scan / run
    # ------------------------------------------------------------------

    def scan(self, search_dir: Path) -> WorkflowOutcome:
        """Process the first eligible run folder inside search_dir, if any."""
        log = self.context.log
        log.line(f"Scanning {search_dir} for run folders to process.")

        try:
            candidate = find_candidate(search_dir, self.context.settings, log=log)
        except LockSetupError as e:
            self._report_failure(str(e), WorkflowAction.SCAN, search_dir)
            raise

        if candidate is None:
            return WorkflowOutcome.NO_CANDIDATE

        assert candidate.lock is not None
        return self._run_locked(candidate.run_folder, candidate.lock)

    def run(self, run_folder: Path) -> WorkflowOutcome:
        """Process one specific run folder through analysis."""
        settings = self.context.settings
        log = self.context.log

        try:
            classification = classify(run_folder, settings)
        except LockSetupError as e:
            self._report_failure(str(e), WorkflowAction.RUN, run_folder)
            raise

        if classification.status == StageStatus.ALREADY_COMPLETE:
            log.line(
                f"The run folder {run_folder} has already been processed.\n"
                f"To process it again, remove {run_folder / settings.complete_marker} "
                "and re-run."
            )
            return WorkflowOutcome.SKIPPED_COMPLETE

        if classification.status == StageStatus.ALREADY_LOCKED:
            self.machine.advance(WorkflowState.ABORTED)
            log.line(
                f"The run folder {run_folder} is already being worked on by another "
                f"instance. Its progress is logged in {run_folder / settings.log_filename}."
            )
            return WorkflowOutcome.SKIPPED_LOCKED

        assert classification.lock is not None
        return self._run_locked(run_folder, classification.lock)

    def _run_locked(self, run_folder: Path, lock: LockHandle) -> WorkflowOutcome:
        log = self.context.log

        self.machine.advance(WorkflowState.LOCKED)
        log.line(f"Lock file {lock.path} locked.")
        try:
            self._open_log(run_folder, WorkflowAction.RUN)
            try:
                return self._analyse(run_folder)
            finally:
                log.close()
        finally:
            release_lock(lock)
            logger.debug(f"Released {lock.path}")

    def _analyse(self, run_folder: Path) -> WorkflowOutcome:
        settings = self.context.settings
        log = self.context.log

        if marker_exists(run_folder / settings.complete_marker):
            # Another invocation finished between classification and locking
            log.line(f"The run folder {run_folder} was completed by another instance.")
            self.machine.advance(WorkflowState.ABORTED)
            return WorkflowOutcome.SKIPPED_COMPLETE

        try:
            self.machine.advance(WorkflowState.WAITING_ACQUISITION)
            self._wait(run_folder / settings.acquisition_marker, settings.acquisition_wait_minutes)

            if settings.require_run_summary:
                self.machine.advance(WorkflowState.WAITING_RUN_SUMMARY)
                self._check_run_summary(run_folder)

            self.machine.advance(WorkflowState.PREPARING)
            missing = missing_inputs(run_folder, settings.required_inputs)
            if missing:
                raise MissingInputError(str(missing[0]))
            self._set_aside_projects(run_folder)

            self.machine.advance(WorkflowState.EXECUTING)
            result = self.context.runner.run(settings.analysis_command, run_folder)
        except (StageError, SpawnError) as e:
            return self._abort(str(e), run_folder)

        marker = run_folder / settings.complete_marker
        try:
            write_completion_marker(marker, self.context.program_name)
        except OSError as e:
            return self._abort(f"Could not write {marker}: {e}", run_folder)
        self.machine.advance(WorkflowState.COMPLETED)
        log.line(f"Wrote {marker}.")

        if result.succeeded:
            output_dir = settings.output_dir(run_folder)
            try:
                report = find_lane_barcode_report(output_dir)
            except OSError as e:
                log.line(f"Could not search {output_dir} for a report: {e}")
                report = None
            if report is None:
                log.line("No laneBarcode.html report was found to attach.")
            self.context.notifier.analysis_complete(run_folder, log.contents(), report)
            return WorkflowOutcome.ANALYSIS_SUCCEEDED

        self.context.notifier.failure(
            f"The analysis command failed: {result.summary()}",
            WorkflowAction.RUN.value,
            run_folder,
            log.contents(),
        )
        return WorkflowOutcome.ANALYSIS_FAILED

    def _wait(self, marker: Path, max_minutes: int) -> None:
        outcome = self.context.waiter.wait_for(marker, max_minutes)
        if outcome == WaitOutcome.TIMED_OUT:
            raise CompletionTimeoutError(str(marker), max_minutes)
        self.context.log.line(f"Found {marker}.")

    def _check_run_summary(self, run_folder: Path) -> None:
        settings = self.context.settings
        summary_path = run_folder / settings.run_summary_marker
        self._wait(summary_path, settings.run_summary_wait_minutes)

        summary = read_run_summary(
            summary_path, settings.run_summary_field, settings.run_summary_success
        )
        if not summary.succeeded:
            raise RunSummaryError(str(summary_path), summary.status)
        self.context.log.line(f"Run summary reports {summary.status}.")

    def _set_aside_projects(self, run_folder: Path) -> None:
        settings = self.context.settings
        output_dir = settings.output_dir(run_folder)
        try:
            projects = find_project_dirs(
                output_dir, settings.project_prefix, settings.rotation_suffix
            )
        except OSError as e:
            raise StageError(f"Could not list {output_dir}: {e}") from e
        for project in projects:
            try:
                moved = rename_aside(
                    project,
                    suffix=settings.rotation_suffix,
                    max_depth=settings.max_rename_depth,
                )
            except (OSError, RenameDepthError) as e:
                raise StageError(f"Could not move {project} aside: {e}") from e
            self.context.log.line(f"Moved existing {project.name} aside to {moved.name}.")

    def _abort(self, message: str, run_folder: Path) -> WorkflowOutcome:
        self.machine.advance(WorkflowState.ABORTED)
        self.context.log.line(f"Aborting: {message}")
        logger.warning(f"Aborted {run_folder}: {message}")
        self.context.notifier.failure(
            message, WorkflowAction.RUN.value, run_folder, self.context.log.contents()
        )
        return WorkflowOutcome.ABORTED

    # ------------------------------------------------------------------
    # Deliver
    # ------------------------------------------------------------------

    def deliver(self, run_folder: Path) -> WorkflowOutcome:
        """Copy every Project directory in a run folder to its owner."""
        settings = self.context.settings
        log = self.context.log

        try:
            lock = acquire_lock(run_folder / settings.lock_filename)
        except LockBusyError:
            self.machine.advance(WorkflowState.ABORTED)
            log.line(
                f"The run folder {run_folder} is already being worked on by another "
                "instance. Try the delivery again once it has finished."
            )
            return WorkflowOutcome.SKIPPED_LOCKED
        except LockSetupError as e:
            self._report_failure(str(e), WorkflowAction.DELIVER, run_folder)
            raise

        self.machine.advance(WorkflowState.LOCKED)
        log.line(f"Lock file {lock.path} locked.")
        try:
            self._open_log(run_folder, WorkflowAction.DELIVER)
            try:
                return self._deliver_projects(run_folder)
            finally:
                log.close()
        finally:
            release_lock(lock)
            logger.debug(f"Released {lock.path}")

    def _deliver_projects(self, run_folder: Path) -> WorkflowOutcome:
        settings = self.context.settings
        log = self.context.log
        notifier = self.context.notifier

        self.machine.advance(WorkflowState.SEARCHING)
        output_dir = settings.output_dir(run_folder)
        try:
            projects = find_project_dirs(
                output_dir, settings.project_prefix, settings.rotation_suffix
            )
        except OSError as e:
            message = f"Could not list Project directories in {output_dir}: {e}"
            self.machine.advance(WorkflowState.ABORTED)
            log.line(f"Aborting: {message}")
            notifier.failure(
                message, WorkflowAction.DELIVER.value, run_folder, log.contents()
            )
            return WorkflowOutcome.ABORTED
        if not projects:
            log.line(f"No Project directories found in {output_dir}.")
            self.machine.advance(WorkflowState.DONE)
            return WorkflowOutcome.NOTHING_TO_DELIVER

        for project in projects:
            self.machine.advance(WorkflowState.COPYING)
            result = deliver_project(project, run_folder, settings, log)
            self.deliveries.append(result)

            if result.status == DeliveryStatus.DELIVERED:
                notifier.delivery_complete(project, Path(result.destination))
            elif result.status == DeliveryStatus.MANUAL:
                log.line(f"{project.name} needs manual delivery: {result.failure_reason}")
                notifier.delivery_manual(project)
            else:
                destination = Path(result.destination) if result.destination else None
                notifier.delivery_problem(run_folder, project, destination, log.contents())

        self.machine.advance(WorkflowState.DONE)
        delivered = sum(1 for r in self.deliveries if r.status == DeliveryStatus.DELIVERED)
        log.line(f"Delivery finished: {delivered} of {len(projects)} Project directories delivered.")
        return WorkflowOutcome.DELIVERED

    # ------------------------------------------------------------------
    # Setup failures
    # ------------------------------------------------------------------

    def _open_log(self, run_folder: Path, action: WorkflowAction) -> None:
        settings = self.context.settings
        try:
            self.context.log.open(
                run_folder / settings.log_filename,
                suffix=settings.rotation_suffix,
                max_depth=settings.max_rename_depth,
            )
        except LogOpenError as e:
            self.machine.advance(WorkflowState.ABORTED)
            self._report_failure(str(e), action, run_folder)
            raise

    def _report_failure(self, message: str, action: WorkflowAction, path: Path) -> None:
        """Report a setup failure with whatever has been logged so far."""
        logger.error(f"{action.value} {path}: {message}")
        self.context.notifier.failure(
            message, action.value, path, self.context.log.contents()
        )
