"""
runwatch - Sequencing run folder analysis and delivery.

Watches instrument run folders, runs the analysis once acquisition has
finished, and delivers each owner's results into their storage area.
Every invocation handles one run folder under an advisory lock, logs to
the run folder, and reports outcomes by mail.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
