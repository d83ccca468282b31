"""
WorkflowContext — everything one invocation needs, passed explicitly.

There are no module-level handles: the log recorder, notifier, waiter and
runner for an invocation all live here and are handed to the driver.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..execution import ProcessRunner
from ..logs import LogRecorder
from ..notify import EmailNotifier, Notifier
from ..settings import WorkflowSettings
from ..stages import CompletionWaiter


@dataclass
class WorkflowContext:
    """Per-invocation collaborators."""

    settings: WorkflowSettings
    log: LogRecorder
    notifier: Notifier
    waiter: CompletionWaiter
    runner: ProcessRunner
    program_name: str = "runwatch"


def build_context(
    settings: WorkflowSettings,
    program_name: str = "runwatch",
    program_path: str = "runwatch",
    notifier: Optional[Notifier] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> WorkflowContext:
    """
    Wire up a context from settings.

    Args:
        settings: Loaded WorkflowSettings
        program_name: Name shown in the log header and messages
        program_path: Command shown in re-run instructions
        notifier: Override the EmailNotifier (tests, alternative transports)
        sleep: Sleep function for the completion waiter
    """
    log = LogRecorder(program_name=program_name, support_contact=settings.support_contact)
    if notifier is None:
        notifier = EmailNotifier(
            settings, log, program_name=program_name, program_path=program_path
        )
    return WorkflowContext(
        settings=settings,
        log=log,
        notifier=notifier,
        waiter=CompletionWaiter(
            poll_interval=settings.poll_interval_seconds, sleep=sleep, log=log
        ),
        runner=ProcessRunner(log=log),
        program_name=program_name,
    )
