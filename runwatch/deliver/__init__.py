"""
Delivery of analysis results to their owners.

Public API:
    find_project_dirs — Project directories in a run folder's output
    resolve_owner_home — Owner storage lookup (overrides, then globs)
    deliver_project — Copy one Project directory to its owner
    copy_tree — Ownership- and mode-preserving recursive copy
    DeliveryResult — Per-project outcome (DELIVERED / MANUAL / FAILED)
"""

from .errors import DeliveryError, DeliveryCopyError, OwnerResolutionError
from .models import DeliveryStatus, DeliveryResult, OwnerIdentity, CopyStats
from .owners import (
    project_owner,
    find_project_dirs,
    resolve_owner_home,
    owner_identity,
)
from .copier import (
    resolve_destination,
    create_destination,
    copy_tree,
    deliver_project,
)

__all__ = [
    # Errors
    "DeliveryError",
    "DeliveryCopyError",
    "OwnerResolutionError",
    # Models
    "DeliveryStatus",
    "DeliveryResult",
    "OwnerIdentity",
    "CopyStats",
    # Owners
    "project_owner",
    "find_project_dirs",
    "resolve_owner_home",
    "owner_identity",
    # Copier
    "resolve_destination",
    "create_destination",
    "copy_tree",
    "deliver_project",
]
