"""
Run-folder locking.

One advisory, process-lifetime-scoped exclusive lock per run folder.
The lock file may outlive a crashed holder; only a failed flock() means
"currently locked".

Public API:
    acquire_lock — Take the lock without blocking
    release_lock — Delete the lock file, unlock, close
    held_lock — Context manager around acquire/release
    LockHandle — Open, locked lock file
"""

from .errors import LockError, LockBusyError, LockSetupError
from .lock import LockHandle, acquire_lock, release_lock, held_lock

__all__ = [
    # Errors
    "LockError",
    "LockBusyError",
    "LockSetupError",
    # Core
    "LockHandle",
    "acquire_lock",
    "release_lock",
    "held_lock",
]
