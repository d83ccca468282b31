"""
Root error hierarchy.

Every error raised by runwatch inherits from WorkflowError so the CLI can
catch one type. SetupError marks the failures that stop an invocation
before any work is done (configuration, lock file, log file).
"""


class WorkflowError(Exception):
    """Base exception for all runwatch failures."""

    pass


class SetupError(WorkflowError):
    """
    Unrecoverable setup failure for the current invocation.

    Raised when the lock file or log file cannot be created, or the
    configuration cannot be loaded. Reported, never retried.
    """

    pass


class ConfigurationError(SetupError):
    """Configuration file is unreadable, malformed, or fails validation."""

    pass


class PathValidationError(WorkflowError):
    """A path given by the operator is not a usable directory."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class RenameDepthError(WorkflowError):
    """Rename-aside chain is deeper than the configured limit."""

    def __init__(self, path: str, max_depth: int):
        self.path = path
        self.max_depth = max_depth
        super().__init__(
            f"Refusing to rename {path}: more than {max_depth} older copies already exist"
        )
