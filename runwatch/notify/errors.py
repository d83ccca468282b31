"""
Notification errors.

A failed notification never changes a workflow outcome. The notifier
writes the error to the workflow log and carries on.
"""

from ..errors import WorkflowError


class NotificationError(WorkflowError):
    """A message could not be composed or sent."""

    pass
