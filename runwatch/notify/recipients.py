"""
Recipient list file.

Plain text, one address per line. Blank lines and lines starting with '#'
are ignored. The file is re-read right before every message is sent, so
edits take effect without restarting anything.
"""

import logging
from pathlib import Path
from typing import List

from .errors import NotificationError

logger = logging.getLogger(__name__)

RECIPIENTS_TEMPLATE = """\
# This file lists the email addresses that should be notified whenever
# something happens, for example:
# * A run completing and being analyzed successfully.
# * A run folder appearing, but never completing.
# * Analysis results being delivered, or needing manual delivery.
#
# The format of this file is simple:
# * Empty lines are ignored.
# * Lines which start with a hash (like this one) are ignored.
# * Other lines are treated as email addresses.
#
# This file is read right before each email is sent. Until an address is
# added below, nothing is sent.
#
# operator@example.com
"""


def ensure_recipients_file(path: Path) -> bool:
    """
    Create the recipients file from a template if it does not exist.

    Returns:
        True if the file was created, False if it already existed

    Raises:
        NotificationError: The file cannot be created
    """
    if path.exists():
        return False
    try:
        path.write_text(RECIPIENTS_TEMPLATE, encoding="utf-8")
    except OSError as e:
        raise NotificationError(f"Cannot create recipients file {path}: {e}") from e
    logger.warning(f"Created recipients file template at {path}")
    return True


def parse_recipients(text: str) -> List[str]:
    """Extract addresses from recipients file text."""
    recipients = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        recipients.append(line)
    return recipients


def load_recipients(path: Path) -> List[str]:
    """
    Read the recipient list.

    Raises:
        NotificationError: The file cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise NotificationError(f"Cannot read recipients file {path}: {e}") from e
    return parse_recipients(text)
