"""
Project discovery and owner resolution.

Project directories are named <prefix><username> (e.g. Project_jdoe).
The username is matched to a storage area in two steps:

1. home_overrides: explicit username → path table from the settings
2. home_globs: patterns with {username} substituted; first sorted match

No match means the results need manual delivery (OwnerResolutionError).
Copies take the uid/gid of the storage directory itself.
"""

import glob
import logging
import os
from pathlib import Path
from typing import List, Optional

from ..settings import WorkflowSettings
from .errors import OwnerResolutionError
from .models import OwnerIdentity

logger = logging.getLogger(__name__)


def project_owner(name: str, prefix: str) -> Optional[str]:
    """Return the username embedded in a Project directory name, or None."""
    if not name.startswith(prefix):
        return None
    username = name[len(prefix):]
    return username or None


def find_project_dirs(
    output_dir: Path,
    prefix: str,
    aside_suffix: Optional[str] = None,
) -> List[Path]:
    """
    List Project directories in an analysis output directory.

    Directories renamed aside by an earlier analysis (ending in
    aside_suffix) belong to no one and are left out.

    Returns:
        Directories whose names carry an owner, sorted by name. Empty if
        the output directory does not exist.
    """
    if not output_dir.is_dir():
        return []
    projects = [
        entry
        for entry in output_dir.iterdir()
        if entry.is_dir() and not entry.is_symlink()
        and project_owner(entry.name, prefix) is not None
        and not (aside_suffix and entry.name.endswith(aside_suffix))
    ]
    return sorted(projects, key=lambda p: p.name)


def resolve_owner_home(username: str, settings: WorkflowSettings) -> Path:
    """
    Find the storage directory for a user.

    Raises:
        OwnerResolutionError: No override and no glob match
    """
    override = settings.home_overrides.get(username)
    if override is not None:
        home = Path(override)
        if not home.is_dir():
            raise OwnerResolutionError(
                username, f"configured directory {override} does not exist"
            )
        logger.debug(f"Using configured home for {username}: {home}")
        return home

    escaped = glob.escape(username)
    for pattern in settings.home_globs:
        matches = sorted(
            m for m in glob.glob(pattern.replace("{username}", escaped)) if os.path.isdir(m)
        )
        if matches:
            if len(matches) > 1:
                logger.warning(
                    f"Several home directories match {username}; using {matches[0]}"
                )
            return Path(matches[0])

    raise OwnerResolutionError(username, "no matching home directory")


def owner_identity(username: str, home: Path) -> OwnerIdentity:
    """Read the uid, gid and permission bits of an owner's storage directory."""
    st = os.stat(home)
    return OwnerIdentity(
        username=username,
        home=str(home),
        uid=st.st_uid,
        gid=st.st_gid,
        mode=st.st_mode & 0o7777,
    )
