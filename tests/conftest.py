"""
Shared fixtures for the runwatch test suite.
"""

import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from runwatch.execution import ProcessRunner
from runwatch.logs import LogRecorder
from runwatch.notify import Notifier
from runwatch.settings import WorkflowSettings
from runwatch.stages import CompletionWaiter
from runwatch.workflow import WorkflowContext


class RecordingNotifier(Notifier):
    """Notifier that remembers every call instead of sending mail."""

    def __init__(self):
        self.calls: List[Tuple[str, tuple]] = []

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]

    def analysis_complete(self, run_folder, log_text, report=None) -> bool:
        self.calls.append(("analysis_complete", (run_folder, log_text, report)))
        return True

    def failure(self, message, action, run_folder, log_text) -> bool:
        self.calls.append(("failure", (message, action, run_folder, log_text)))
        return True

    def delivery_manual(self, project_dir) -> bool:
        self.calls.append(("delivery_manual", (project_dir,)))
        return True

    def delivery_complete(self, project_dir, destination) -> bool:
        self.calls.append(("delivery_complete", (project_dir, destination)))
        return True

    def delivery_problem(self, run_folder, project_dir, destination, log_text) -> bool:
        self.calls.append(("delivery_problem", (run_folder, project_dir, destination, log_text)))
        return True


class SleepCounter:
    """Stand-in for time.sleep that only counts calls."""

    def __init__(self, on_sleep=None):
        self.calls: List[float] = []
        self._on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self._on_sleep is not None:
            self._on_sleep(len(self.calls))


def make_settings(tmp_path: Path, **overrides) -> WorkflowSettings:
    """Settings whose external paths all point inside tmp_path."""
    values = dict(
        acquisition_wait_minutes=0,
        run_summary_wait_minutes=0,
        poll_interval_seconds=1.0,
        required_inputs=["SampleSheet.csv"],
        analysis_command=[sys.executable, "-c", "pass"],
        home_globs=[str(tmp_path / "homes" / "{username}")],
        recipients_file=str(tmp_path / "email-recipients.txt"),
    )
    values.update(overrides)
    return WorkflowSettings(**values)


def make_context(
    settings: WorkflowSettings,
    notifier: Optional[RecordingNotifier] = None,
    sleep: Optional[SleepCounter] = None,
) -> WorkflowContext:
    log = LogRecorder(program_name="runwatch")
    return WorkflowContext(
        settings=settings,
        log=log,
        notifier=notifier if notifier is not None else RecordingNotifier(),
        waiter=CompletionWaiter(
            poll_interval=settings.poll_interval_seconds,
            sleep=sleep if sleep is not None else SleepCounter(),
            log=log,
        ),
        runner=ProcessRunner(log=log),
    )


@pytest.fixture
def settings(tmp_path: Path) -> WorkflowSettings:
    return make_settings(tmp_path)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def run_folder_factory(tmp_path: Path):
    """Create a run folder with the usual instrument files."""

    def _make(
        name: str = "181001_M00123_0042_000000000-ABCDE",
        acquired: bool = True,
        sample_sheet: bool = True,
        parent: Optional[Path] = None,
    ) -> Path:
        base = parent if parent is not None else tmp_path / "runs"
        folder = base / name
        folder.mkdir(parents=True)
        if acquired:
            (folder / "RTAComplete.txt").write_text("done\n")
        if sample_sheet:
            (folder / "SampleSheet.csv").write_text("[Header]\n")
        return folder

    return _make


@pytest.fixture
def home_dir(tmp_path: Path):
    """Create an owner storage directory under the test glob root."""

    def _make(username: str, mode: int = 0o750) -> Path:
        home = tmp_path / "homes" / username
        home.mkdir(parents=True)
        os.chmod(home, mode)
        return home

    return _make
