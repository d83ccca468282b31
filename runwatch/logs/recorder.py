"""
LogRecorder — the workflow's durable narrative.

Behavior:
- Every write goes to standard output first, unconditionally
- Before open(): text is held in memory (nothing is lost if logging starts
  before the run folder is known)
- open(): any existing log is renamed aside, a header is written, then the
  held text is moved into the file
- Every write is flushed at once (the notifier may read the file moments
  later, and the process may be killed at any time)
- close(): a trailer with the end time is written
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

from ..errors import RenameDepthError
from ..paths import DEFAULT_MAX_DEPTH, DEFAULT_SUFFIX, rename_aside
from .errors import LogOpenError

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now().ctime()


class LogRecorder:
    """
    Single append destination for all workflow narration.

    One recorder lives for one invocation. At most one recorder writes a
    given log file at a time; that is guaranteed by the run-folder lock,
    not by the recorder.
    """

    def __init__(
        self,
        program_name: str = "runwatch",
        support_contact: Optional[str] = None,
    ):
        self.program_name = program_name
        self.support_contact = support_contact
        self._buffer: str = ""
        self._handle: Optional[IO[str]] = None
        self._path: Optional[Path] = None
        self._file_text: str = ""

    @property
    def path(self) -> Optional[Path]:
        """Path of the open log file, or None while buffering."""
        return self._path

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def buffered_text(self) -> str:
        """Text written while no log file was open."""
        return self._buffer

    def open(
        self,
        path: Path,
        suffix: str = DEFAULT_SUFFIX,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> Path:
        """
        Start logging to a file, rotating any existing log out of the way.

        Args:
            path: Log file path
            suffix: Rotation suffix for older logs
            max_depth: Maximum length of the rotation chain

        Returns:
            The log file path

        Raises:
            LogOpenError: The old log cannot be rotated or the new one created.
                An explanation is also written to the buffer, so it reaches
                the failure report.
        """
        if self._handle is not None:
            self.close()

        try:
            # lexists: a dangling symlink is moved aside too, never written through
            if os.path.lexists(path):
                rename_aside(path, suffix=suffix, max_depth=max_depth)
            fd = os.open(
                path, os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW, 0o644
            )
            handle = os.fdopen(fd, "w", encoding="utf-8")
        except (OSError, RenameDepthError) as e:
            self.line(
                "We are having trouble opening the log file.\n"
                f"The file we tried to create is: {path}\n"
                f"The error we got is: {e}"
            )
            raise LogOpenError(str(path), str(e)) from e

        self._handle = handle
        self._path = path
        self._file_text = ""

        header = (
            f"This is the log of the {self.program_name} program!\n"
            f"This log file was started on: {_timestamp()}\n"
        )
        if self.support_contact:
            header += f"If you need help, please contact {self.support_contact}\n"
        self._emit_file(header)

        if self._buffer:
            self._emit_file(self._buffer)
            self._buffer = ""

        logger.debug(f"Log opened: {path}")
        return path

    def write(self, text: str) -> None:
        """Write text to stdout and to the log file (or the buffer)."""
        sys.stdout.write(text)
        sys.stdout.flush()

        if self._handle is not None:
            self._emit_file(text)
        else:
            self._buffer += text

    def line(self, message: str) -> None:
        """Write a message, terminated by exactly one newline."""
        if not message.endswith("\n"):
            message += "\n"
        self.write(message)

    def contents(self) -> str:
        """
        Everything logged so far by this invocation.

        The text of the log file (kept in memory, so a file swapped behind
        our back is never read), followed by anything written after close.
        """
        return self._file_text + self._buffer

    def close(self) -> None:
        """Append the end-time trailer and close the file. Safe to repeat."""
        if self._handle is None:
            return
        self._emit_file(f"The time is now {_timestamp()}.\nLogging complete!\n")
        self._handle.close()
        self._handle = None
        logger.debug(f"Log closed: {self._path}")

    def _emit_file(self, text: str) -> None:
        assert self._handle is not None
        self._handle.write(text)
        self._handle.flush()
        self._file_text += text
