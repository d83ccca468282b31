"""
Marker files.

Markers are presence-only signals, with one exception: the instrument's
run summary carries a status field that must equal a success token.

The run summary is XML, but only one scalar element is ever needed, so it
is read with a permissive pattern match instead of an XML parser. Any value
other than the success token, or no value at all, counts as failure.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .models import RunSummary

logger = logging.getLogger(__name__)


def marker_exists(path: Path) -> bool:
    """True if the marker file is present."""
    return path.is_file()


def write_completion_marker(path: Path, program_name: str = "runwatch") -> None:
    """
    Write the workflow-complete marker.

    The content is a human-readable timestamp. It is never parsed back;
    only the file's existence matters.
    """
    path.write_text(
        f"{program_name} finished running on {datetime.now().ctime()}\n",
        encoding="utf-8",
    )
    logger.debug(f"Wrote completion marker {path}")


def extract_field(text: str, field: str) -> Optional[str]:
    """
    Return the text of the first <field>...</field> element, stripped.

    Attributes on the opening tag are tolerated; nested markup is not.
    Returns None if the element is absent.
    """
    pattern = re.compile(
        rf"<{re.escape(field)}(?:\s[^>]*)?>\s*([^<]*?)\s*</{re.escape(field)}\s*>"
    )
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(1)


def read_run_summary(path: Path, field: str, success_token: str) -> RunSummary:
    """
    Read the instrument's run summary.

    Args:
        path: Run summary file
        field: Element name holding the status
        success_token: The only value that means success

    Returns:
        RunSummary; unreadable files yield status None and succeeded False
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Cannot read run summary {path}: {e}")
        return RunSummary(path=str(path), status=None, succeeded=False)

    status = extract_field(text, field)
    return RunSummary(
        path=str(path),
        status=status,
        succeeded=status == success_token,
    )


def missing_inputs(run_folder: Path, names: Sequence[str]) -> List[Path]:
    """Return the required input files that are not present, in order."""
    return [run_folder / name for name in names if not (run_folder / name).is_file()]
