"""
Analysis report lookup.

The demultiplexer writes an HTML summary per flowcell:

    <output_dir>/Reports/html/<flowcell>/all/all/all/laneBarcode.html

It is attached to the analysis-complete message when present.
"""

from pathlib import Path
from typing import Optional

REPORT_RELATIVE = Path("all") / "all" / "all" / "laneBarcode.html"


def find_lane_barcode_report(output_dir: Path) -> Optional[Path]:
    """Return the first flowcell's lane barcode report, or None."""
    html_dir = output_dir / "Reports" / "html"
    if not html_dir.is_dir():
        return None
    for flowcell in sorted(html_dir.iterdir(), key=lambda p: p.name):
        if flowcell.name.startswith(".") or not flowcell.is_dir():
            continue
        report = flowcell / REPORT_RELATIVE
        if report.is_file():
            return report
    return None
