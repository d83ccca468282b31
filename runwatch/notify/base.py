"""
Notifier abstraction.

The workflow reports every terminal outcome through one of five calls.
Implementations decide how the message travels (email in production, an
in-memory record in tests).

Log text is passed in by the caller: the log file's content when one was
opened, otherwise the text buffered before it could be.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class Notifier(ABC):
    """
    Abstract outcome reporter.

    Every method returns True if the message was handed off, False if it
    could not be sent. Implementations must not raise for send failures.
    """

    @abstractmethod
    def analysis_complete(
        self,
        run_folder: Path,
        log_text: str,
        report: Optional[Path] = None,
    ) -> bool:
        """The analysis step ran and exited successfully."""
        pass

    @abstractmethod
    def failure(
        self,
        message: str,
        action: str,
        run_folder: Path,
        log_text: str,
    ) -> bool:
        """
        Something went wrong.

        Args:
            message: Short summary of what happened
            action: Action name to re-run (scan/run/deliver)
            run_folder: Run folder (or search directory) involved
            log_text: Accumulated log
        """
        pass

    @abstractmethod
    def delivery_manual(self, project_dir: Path) -> bool:
        """No owner storage area was found; deliver by hand."""
        pass

    @abstractmethod
    def delivery_complete(self, project_dir: Path, destination: Path) -> bool:
        """A Project directory was delivered."""
        pass

    @abstractmethod
    def delivery_problem(
        self,
        run_folder: Path,
        project_dir: Path,
        destination: Optional[Path],
        log_text: str,
    ) -> bool:
        """Copying a Project directory stopped partway."""
        pass
