"""
Process result model.

Structured outcome of one external command. Machine-readable and
human-readable (see summary()).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessResult(BaseModel):
    """
    Result of running an external command to completion.

    exit_code follows subprocess conventions: negative when the child was
    killed by a signal (signal number = -exit_code).
    """

    model_config = ConfigDict(extra="forbid")

    command: List[str]
    """Full argument vector that was executed."""

    working_directory: str
    """Directory the child ran in."""

    pid: int
    """Child process ID."""

    exit_code: int
    """Raw exit status from the child."""

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def signal(self) -> Optional[int]:
        """Terminating signal number, if the child was killed by one."""
        return -self.exit_code if self.exit_code < 0 else None

    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def summary(self) -> str:
        """Human-readable one-line outcome."""
        duration = self.duration_seconds()
        duration_str = f" after {duration:.1f}s" if duration is not None else ""
        if self.signal is not None:
            return f"{self.command[0]} was killed by signal {self.signal}{duration_str}"
        return f"{self.command[0]} exited with status {self.exit_code}{duration_str}"
