"""
Completion waiter.

Bounded polling for a marker file. The budget is a number of polls (one
poll per interval, one minute by default). The timeout check happens before
every sleep, so a zero budget returns at once.

Each call is independent: several markers can be waited for in sequence
with separate budgets. The only shared state is the filesystem.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..logs import LogRecorder
from .markers import marker_exists
from .models import WaitOutcome

logger = logging.getLogger(__name__)

# Progress line every N polls (hourly at the default interval)
PROGRESS_EVERY = 60


class CompletionWaiter:
    """
    Poll-based marker waiter.

    Configuration:
        poll_interval: Seconds between existence checks (default: 60)
        sleep: Sleep function; injectable so tests never really wait
        log: Optional recorder for operator-facing progress lines
    """

    def __init__(
        self,
        poll_interval: float = 60.0,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[LogRecorder] = None,
    ):
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._log = log

    def wait_for(self, marker: Path, max_minutes: int) -> WaitOutcome:
        """
        Block until a marker exists or the budget runs out.

        Args:
            marker: Marker file path
            max_minutes: Number of polls allowed (0 = check once, never sleep)

        Returns:
            WaitOutcome.FOUND the moment the marker appears, or
            WaitOutcome.TIMED_OUT once the budget is spent
        """
        remaining = max(0, max_minutes)
        polls = 0

        if not marker_exists(marker):
            self._note(f"Waiting up to {remaining} minute(s) for {marker} to appear.")

        while True:
            if marker_exists(marker):
                logger.debug(f"Marker found after {polls} poll(s): {marker}")
                return WaitOutcome.FOUND

            if remaining <= 0:
                self._note(f"Gave up waiting for {marker}.")
                return WaitOutcome.TIMED_OUT

            remaining -= 1
            polls += 1
            if polls % PROGRESS_EVERY == 0:
                self._note(
                    f"Still waiting for {marker} ({remaining} minute(s) of budget left)."
                )
            self._sleep(self.poll_interval)

    def _note(self, message: str) -> None:
        if self._log is not None:
            self._log.line(message)
        else:
            logger.info(message)
