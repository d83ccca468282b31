"""
runwatch CLI - Thin entrypoint for operator and scheduler commands.

Commands:
- scan <directory>: process at most one eligible run folder found inside
- run <runfolder>: process one specific run folder through analysis
- deliver <runfolder>: copy every Project directory to its owner

Design Principles:
==================
- CLI is a dispatcher only; all workflow logic lives in runwatch.workflow
- Outcomes that were reported by mail (timeouts, failed analyses,
  failed deliveries) still exit 0: the command finished its flow
- No interactive prompts, no retry logic, no flags

Exit Codes:
===========
- 0: Action finished its flow (including skips)
- 1: Path is not a readable, searchable directory
- 2: Usage error (argparse)
- 4: Setup error (configuration, lock file, log file)
"""

import argparse
import logging
import sys
from typing import List, NoReturn, Optional

from .errors import ConfigurationError, PathValidationError, SetupError
from .paths import validate_directory
from .settings import load_settings
from .workflow import WorkflowAction, WorkflowDriver, build_context

logger = logging.getLogger(__name__)

PROGRAM_NAME = "runwatch"

EXIT_OK = 0
EXIT_BAD_PATH = 1
EXIT_SETUP_ERROR = 4


def _execute(action: WorkflowAction, raw_path: str) -> int:
    """
    Load settings, validate the path and run one workflow action.

    Returns:
        Process exit code
    """
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        path = validate_directory(raw_path)
    except PathValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_BAD_PATH

    context = build_context(settings, program_name=PROGRAM_NAME, program_path=PROGRAM_NAME)
    driver = WorkflowDriver(context)

    try:
        outcome = driver.dispatch(action, path)
    except SetupError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        return EXIT_SETUP_ERROR

    logger.info(f"{action.value} {path}: {outcome.value}")
    return EXIT_OK


def cmd_scan(args: argparse.Namespace) -> int:
    """Find and process at most one eligible run folder."""
    return _execute(WorkflowAction.SCAN, args.directory)


def cmd_run(args: argparse.Namespace) -> int:
    """Process one run folder through analysis."""
    return _execute(WorkflowAction.RUN, args.runfolder)


def cmd_deliver(args: argparse.Namespace) -> int:
    """Deliver a run folder's Project directories to their owners."""
    return _execute(WorkflowAction.DELIVER, args.runfolder)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM_NAME,
        description="runwatch - Sequencing run folder analysis and delivery",
        epilog="Configuration is read from the file named by RUNWATCH_CONFIG.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    parser_scan = subparsers.add_parser(
        "scan",
        help="Find and process at most one eligible run folder",
    )
    parser_scan.add_argument("directory", help="Directory containing run folders")
    parser_scan.set_defaults(func=cmd_scan)

    parser_run = subparsers.add_parser(
        "run",
        help="Process one run folder through analysis",
    )
    parser_run.add_argument("runfolder", help="Path to the run folder")
    parser_run.set_defaults(func=cmd_run)

    parser_deliver = subparsers.add_parser(
        "deliver",
        help="Copy Project directories to their owners",
    )
    parser_deliver.add_argument("runfolder", help="Path to the run folder")
    parser_deliver.set_defaults(func=cmd_deliver)

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
