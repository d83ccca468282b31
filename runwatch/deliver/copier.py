"""
Delivery copier.

Copies one Project directory into a fresh directory under the owner's
storage area.

CRITICAL RULES:
1. Never overwrite, never merge: the destination is always a new directory
   (run folder name, then name.0, name.1, ...)
2. Every copy gets the source entry's permission bits and the owner's
   uid/gid
3. Only regular files and directories are copied; symlinks, devices,
   sockets and FIFOs are skipped and logged
4. The first failure stops the walk; partial output stays for inspection
5. The destination belongs to the owner while we are still writing into
   it, so every create, chown and chmod goes through a descriptor opened
   with O_NOFOLLOW relative to its parent's descriptor. A name swapped for
   a symlink mid-copy fails the copy instead of redirecting it.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterator, Optional

from ..logs import LogRecorder
from ..settings import WorkflowSettings
from .errors import DeliveryCopyError, OwnerResolutionError
from .models import CopyStats, DeliveryResult, DeliveryStatus, OwnerIdentity
from .owners import owner_identity, project_owner, resolve_owner_home

logger = logging.getLogger(__name__)

# Safety limit on numbered destination names
MAX_DESTINATION_SUFFIX = 10000
_MAX_CREATE_ATTEMPTS = 5


def _candidate_names(name: str) -> Iterator[str]:
    yield name
    for counter in range(MAX_DESTINATION_SUFFIX):
        yield f"{name}.{counter}"


def resolve_destination(parent: Path, name: str) -> Path:
    """
    First unused destination path: parent/name, parent/name.0, name.1, ...

    Raises:
        DeliveryCopyError: Every numbered name is taken
    """
    for candidate in _candidate_names(name):
        path = parent / candidate
        if not os.path.lexists(path):
            return path
    raise DeliveryCopyError(name, str(parent), "no unused destination name left")


def create_destination(parent: Path, name: str, identity: OwnerIdentity) -> Path:
    """
    Create the delivery directory with the storage area's mode and owner.

    A name that appears between resolve_destination() and mkdir() (another
    delivery racing us) is skipped, never reused.

    Raises:
        DeliveryCopyError: Directory cannot be created or chown'd
    """
    for _ in range(_MAX_CREATE_ATTEMPTS):
        path = resolve_destination(parent, name)
        try:
            os.mkdir(path, 0o700)
        except FileExistsError:
            continue
        except OSError as e:
            raise DeliveryCopyError(name, str(path), str(e)) from e

        try:
            fd = _open_dir(path)
            try:
                os.fchmod(fd, identity.mode)
                os.fchown(fd, identity.uid, identity.gid)
            finally:
                os.close(fd)
        except OSError as e:
            raise DeliveryCopyError(name, str(path), str(e)) from e
        return path

    raise DeliveryCopyError(name, str(parent), "destination names keep colliding")


def _open_dir(path, dir_fd: Optional[int] = None) -> int:
    return os.open(
        path, os.O_RDONLY | os.O_DIRECTORY | os.O_NOFOLLOW, dir_fd=dir_fd
    )


def _copy_file(source: Path, name: str, dir_fd: int, uid: int, gid: int, mode: int) -> int:
    with os.fdopen(os.open(source, os.O_RDONLY | os.O_NOFOLLOW), "rb") as src:
        # O_EXCL refuses to replace anything that already exists at the name
        fd = os.open(
            name,
            os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW,
            0o600,
            dir_fd=dir_fd,
        )
        with os.fdopen(fd, "wb") as dst:
            shutil.copyfileobj(src, dst)
            dst.flush()
            os.fchown(dst.fileno(), uid, gid)
            os.fchmod(dst.fileno(), mode)
            return dst.tell()


def copy_tree(
    source: Path,
    destination: Path,
    uid: int,
    gid: int,
    log: Optional[LogRecorder] = None,
    max_depth: int = 128,
    stats: Optional[CopyStats] = None,
) -> CopyStats:
    """
    Recursively copy the contents of source into an existing destination.

    Directories are created owner-writable, filled, and then given their
    source mode, so read-only source directories still copy.

    Args:
        source: Directory whose contents are copied
        destination: Existing directory to copy into
        uid, gid: Owner identity applied to every copy
        log: Recorder for per-entry lines
        max_depth: Maximum directory nesting
        stats: Counters to accumulate into

    Returns:
        CopyStats for the whole walk

    Raises:
        DeliveryCopyError: First failure; nothing after it is attempted
    """
    if stats is None:
        stats = CopyStats()
    try:
        dest_fd = _open_dir(destination)
    except OSError as e:
        _note(log, f"We were unable to open the destination directory {destination}: {e}")
        raise DeliveryCopyError(str(source), str(destination), str(e)) from e
    try:
        _copy_tree(source, destination, dest_fd, uid, gid, log, max_depth, stats, depth=0)
    finally:
        os.close(dest_fd)
    return stats


def _copy_tree(
    source: Path,
    destination: Path,
    dest_fd: int,
    uid: int,
    gid: int,
    log: Optional[LogRecorder],
    max_depth: int,
    stats: CopyStats,
    depth: int,
) -> None:
    if depth > max_depth:
        raise DeliveryCopyError(
            str(source), str(destination), f"directory nesting deeper than {max_depth}"
        )

    try:
        with os.scandir(source) as it:
            entries = list(it)
    except OSError as e:
        _note(
            log,
            "We were unable to read the source directory for our copy.\n"
            f"The directory we tried to read is: {source}\n"
            f"The error we got is: {e}",
        )
        raise DeliveryCopyError(str(source), str(destination), str(e)) from e

    for entry in entries:
        src = Path(entry.path)
        target = destination / entry.name

        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            raise DeliveryCopyError(str(src), str(target), str(e)) from e
        mode = st.st_mode & 0o7777

        if entry.is_symlink():
            _note(log, f"Skipping {src}, which is a symbolic link.")
            stats.skipped.append(str(src))
            continue

        if entry.is_file(follow_symlinks=False):
            _note(log, f"{src} -> {target}, mode {mode:o}")
            try:
                stats.bytes += _copy_file(src, entry.name, dest_fd, uid, gid, mode)
            except OSError as e:
                _note(
                    log,
                    f"We were unable to copy {entry.name} to its destination, because of an error.\n"
                    f"The file we tried to copy is: {src}\n"
                    f"The destination was: {target}\n"
                    f"The error is: {e}",
                )
                raise DeliveryCopyError(str(src), str(target), str(e)) from e
            stats.files += 1

        elif entry.is_dir(follow_symlinks=False):
            _note(log, f"{src} -> {target}, mode {mode:o}")
            try:
                os.mkdir(entry.name, 0o700, dir_fd=dest_fd)
                child_fd = _open_dir(entry.name, dir_fd=dest_fd)
            except OSError as e:
                _note(log, f"We were unable to create the directory {target}: {e}")
                raise DeliveryCopyError(str(src), str(target), str(e)) from e
            stats.directories += 1

            try:
                try:
                    os.fchown(child_fd, uid, gid)
                except OSError as e:
                    raise DeliveryCopyError(str(src), str(target), str(e)) from e

                _copy_tree(
                    src, target, child_fd, uid, gid, log, max_depth, stats, depth + 1
                )

                try:
                    os.fchmod(child_fd, mode)
                except OSError as e:
                    raise DeliveryCopyError(str(src), str(target), str(e)) from e
            finally:
                os.close(child_fd)

        else:
            _note(log, f"Skipping {src}, which is neither a file nor a directory.")
            stats.skipped.append(str(src))


def deliver_project(
    project_dir: Path,
    run_folder: Path,
    settings: WorkflowSettings,
    log: Optional[LogRecorder] = None,
) -> DeliveryResult:
    """
    Deliver one Project directory to its owner.

    Args:
        project_dir: <output_dir>/<prefix><username>
        run_folder: Run folder; its name becomes the destination name
        settings: Owner lookup configuration and recursion cap
        log: Recorder for narration

    Returns:
        DeliveryResult: DELIVERED, MANUAL (no owner storage found) or
        FAILED (copy stopped partway)
    """
    _note(log, f"Starting delivery for {project_dir.name}")
    username = project_owner(project_dir.name, settings.project_prefix)
    if username is None:
        return DeliveryResult(
            project_dir=str(project_dir),
            status=DeliveryStatus.MANUAL,
            failure_reason=f"{project_dir.name} does not name an owner",
        )

    try:
        home = resolve_owner_home(username, settings)
    except OwnerResolutionError as e:
        _note(log, f"No home directory found for {username}!")
        return DeliveryResult(
            project_dir=str(project_dir),
            username=username,
            status=DeliveryStatus.MANUAL,
            failure_reason=e.reason,
        )

    _note(log, f"Will do delivery to user {username}")
    destination: Optional[Path] = None
    stats = CopyStats()
    try:
        identity = owner_identity(username, home)
        destination = create_destination(home, run_folder.name, identity)
        _note(log, f"Will deliver files to {destination} (mode {identity.mode:o})")
        copy_tree(
            project_dir,
            destination,
            identity.uid,
            identity.gid,
            log=log,
            max_depth=settings.max_copy_depth,
            stats=stats,
        )
    except (DeliveryCopyError, OSError) as e:
        _note(log, f"Delivery of {project_dir.name} failed: {e}")
        return DeliveryResult(
            project_dir=str(project_dir),
            username=username,
            status=DeliveryStatus.FAILED,
            destination=str(destination) if destination else str(home),
            failure_reason=str(e),
            stats=stats,
        )

    result = DeliveryResult(
        project_dir=str(project_dir),
        username=username,
        status=DeliveryStatus.DELIVERED,
        destination=str(destination),
        stats=stats,
    )
    _note(log, result.summary())
    return result


def _note(log: Optional[LogRecorder], message: str) -> None:
    if log is not None:
        log.line(message)
    else:
        logger.info(message)
