"""
Advisory lock file handling.

The lock file is opened in append mode so nothing is changed until the
lock is actually held. flock() is taken non-blocking: a busy lock fails
immediately with LockBusyError instead of waiting.

The open uses O_NOFOLLOW, so a symlink at the lock path is a setup
failure (ELOOP) and is never written through.

On success the file is truncated and the holder's PID written, so an
operator can see who owns the run folder. Release order is fixed:
unlink the file, then unlock, then close.

flock() locks are tied to the open file description and dropped by the
kernel when the holder exits, so a lock file left behind by a crash does
not block the next acquisition.
"""

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional

from .errors import LockBusyError, LockSetupError

logger = logging.getLogger(__name__)

# A holder may unlink the file between our open() and flock(); in that case
# we locked an orphaned inode and must reopen.
_MAX_REOPEN_ATTEMPTS = 3


class LockHandle:
    """
    A held run-folder lock.

    Attributes:
        path: Path of the lock file
        pid: Process ID written into the lock file
    """

    def __init__(self, path: Path, handle: IO[str], pid: int):
        self.path = path
        self.pid = pid
        self._handle: Optional[IO[str]] = handle

    @property
    def held(self) -> bool:
        """True until release_lock() is called."""
        return self._handle is not None

    def __repr__(self) -> str:
        state = "held" if self.held else "released"
        return f"LockHandle(path={str(self.path)!r}, pid={self.pid}, {state})"


def _same_file(handle: IO[str], path: Path) -> bool:
    try:
        on_disk = os.lstat(path)
    except FileNotFoundError:
        return False
    opened = os.fstat(handle.fileno())
    return (opened.st_dev, opened.st_ino) == (on_disk.st_dev, on_disk.st_ino)


def acquire_lock(lock_path: Path) -> LockHandle:
    """
    Take the exclusive lock for a run folder without blocking.

    Args:
        lock_path: Path of the lock file inside the run folder

    Returns:
        LockHandle bound to the open, locked file

    Raises:
        LockBusyError: Another open file description holds the lock
        LockSetupError: The lock file cannot be created or opened
    """
    for _ in range(_MAX_REOPEN_ATTEMPTS):
        try:
            fd = os.open(
                lock_path, os.O_RDWR | os.O_CREAT | os.O_APPEND | os.O_NOFOLLOW, 0o644
            )
            handle = os.fdopen(fd, "a+", encoding="utf-8")
        except OSError as e:
            raise LockSetupError(str(lock_path), str(e)) from e

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            handle.close()
            logger.debug(f"Lock busy: {lock_path}")
            raise LockBusyError(str(lock_path))
        except OSError as e:
            handle.close()
            raise LockSetupError(str(lock_path), str(e)) from e

        if not _same_file(handle, lock_path):
            # Previous holder released between open and flock
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            handle.close()
            continue

        pid = os.getpid()
        handle.seek(0)
        handle.truncate(0)
        handle.write(f"{pid}\n")
        handle.flush()
        logger.debug(f"Lock acquired: {lock_path} (pid {pid})")
        return LockHandle(lock_path, handle, pid)

    raise LockBusyError(str(lock_path))


def release_lock(lock: LockHandle) -> None:
    """
    Release a held lock.

    The file is deleted before the lock is dropped, so a waiter that opens
    the path afterwards creates a fresh file rather than reading our PID.
    Releasing twice is a no-op.
    """
    handle = lock._handle
    if handle is None:
        return

    try:
        os.unlink(lock.path)
    except FileNotFoundError:
        logger.warning(f"Lock file vanished before release: {lock.path}")

    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        handle.close()
        lock._handle = None
    logger.debug(f"Lock released: {lock.path}")


@contextmanager
def held_lock(lock_path: Path) -> Iterator[LockHandle]:
    """Acquire a lock for the duration of a with-block."""
    lock = acquire_lock(lock_path)
    try:
        yield lock
    finally:
        release_lock(lock)
