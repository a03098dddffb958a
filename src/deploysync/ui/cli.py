from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from deploysync.app import compare_network_status, pull_status
from deploysync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check a deployment's network file against the ledger"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    status = subparsers.add_parser(
        "status",
        help="Compare the network file with the ledger, or pull ledger state with --fetch",
    )
    status.add_argument(
        "--network",
        type=str,
        required=True,
        help="Network name; selects zos.<network>.json",
    )
    status.add_argument(
        "--fetch",
        action="store_true",
        help="Overwrite the network file with the state found on the ledger",
    )
    status.add_argument(
        "--dir",
        type=Path,
        default=None,
        help="Project directory holding the network files (defaults to config)",
    )
    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point; returns the process exit code."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
    except SystemExit as exc:
        return EXIT_OK if exc.code in (0, None) else EXIT_USAGE

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command != "status":
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
        if parsed_args.fetch:
            fetcher = pull_status(parsed_args.network, project_dir=parsed_args.dir)
            log.info("Status pulled: %d change(s) applied", fetcher.applied)
            return EXIT_OK
        passed = compare_network_status(parsed_args.network, project_dir=parsed_args.dir)
    except Exception:
        log.exception("Fatal error during status check")
        return EXIT_FAILURE

    return EXIT_OK if passed else EXIT_FAILURE


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
