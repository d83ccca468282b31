"""
Delivery error hierarchy.

Delivery errors are scoped to one Project directory. Other projects in the
same deliver invocation are still attempted.
"""

from ..errors import WorkflowError


class DeliveryError(WorkflowError):
    """Base exception for delivery failures."""

    pass


class OwnerResolutionError(DeliveryError):
    """
    No storage area could be found for the project's owner.

    Not a copy failure: the results need manual delivery.
    """

    def __init__(self, username: str, reason: str):
        self.username = username
        self.reason = reason
        super().__init__(f"No destination for user {username}: {reason}")


class DeliveryCopyError(DeliveryError):
    """
    The copy stopped partway.

    Partially copied output is left in place for inspection.
    """

    def __init__(self, source: str, target: str, reason: str):
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to copy {source} -> {target}: {reason}")
