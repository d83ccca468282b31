"""
Process runner.

Design rules:
- One subprocess per call, run to completion (no timeout: an analysis may
  legitimately take hours)
- stdin is /dev/null; the tool never gets interactive input
- stderr is merged into stdout and forwarded to the log line by line as it
  arrives, so an operator tailing the log sees live progress
- The child runs in the run folder (the tool expects relative paths); the
  runner's own working directory is left alone
- Non-zero exit = normal result; failure to start = SpawnError
"""

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from ..logs import LogRecorder
from .errors import SpawnError
from .results import ProcessResult

logger = logging.getLogger(__name__)


class ProcessRunner:
    """Runs external commands and streams their output into a LogRecorder."""

    def __init__(self, log: Optional[LogRecorder] = None):
        self._log = log

    def run(self, command: Sequence[str], working_directory: Path) -> ProcessResult:
        """
        Run a command to completion.

        Args:
            command: Argument vector (no shell)
            working_directory: Directory the child runs in

        Returns:
            ProcessResult with the real exit status

        Raises:
            SpawnError: The command could not be started
        """
        argv: List[str] = [str(part) for part in command]
        if not argv:
            raise SpawnError(argv, "empty command")

        started_at = datetime.now()
        self._write(f"Running in {working_directory}: {' '.join(argv)}\n")

        try:
            process = subprocess.Popen(
                argv,
                cwd=str(working_directory),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            logger.error(f"Spawn failed for {argv[0]}: {e}")
            raise SpawnError(argv, str(e)) from e

        logger.info(f"Started PID {process.pid}: {argv[0]}")

        assert process.stdout is not None
        with process.stdout:
            for raw in iter(process.stdout.readline, b""):
                self._write(raw.decode("utf-8", errors="replace"))

        exit_code = process.wait()
        result = ProcessResult(
            command=argv,
            working_directory=str(working_directory),
            pid=process.pid,
            exit_code=exit_code,
            started_at=started_at,
            completed_at=datetime.now(),
        )
        logger.info(f"PID {process.pid} finished: {result.summary()}")
        self._write(f"{result.summary()}\n")
        return result

    def _write(self, text: str) -> None:
        if self._log is not None:
            self._log.write(text)
        else:
            logger.info(text.rstrip("\n"))
