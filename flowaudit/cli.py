"""
Command-Line Interface for the flowchart import.

Reads one audit export (HTML or plain text), reconciles it onto a
curriculum flowchart and prints the result. With --output the replacement
label/note maps are also written as JSON, ready to be loaded back as the
flowchart state.

USAGE:
------
    flowaudit audit.html --curriculum egcp.json --program EGCP
    flowaudit audit.txt --curriculum egcp.json --state saved.json --output new.json

Logs go to stderr; the report goes to stdout.
"""

import argparse
import json
from pathlib import Path
from typing import Optional, Sequence

from .config import LOG_LEVEL
from .exceptions import FlowAuditError
from .importer import FlowchartImporter
from .logging import get_logger
from .logging.config import configure_logging
from .ui import TerminalDisplay

logger = get_logger(__name__, component="cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowaudit",
        description="Import a degree audit onto a curriculum flowchart",
    )
    parser.add_argument(
        "document",
        help="Path or http(s) URL of the audit export (.html/.htm or .txt)",
    )
    parser.add_argument(
        "--curriculum",
        required=True,
        type=Path,
        help="Curriculum JSON (a list of nodes or {\"courses\": [...]})",
    )
    parser.add_argument(
        "--state",
        type=Path,
        default=None,
        help="Current flowchart state JSON ({\"labels\": {...}, \"notes\": {...}})",
    )
    parser.add_argument(
        "--program",
        default=None,
        help="Program id used to fetch the advising-note template (e.g. EGCP)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the resulting labels/notes JSON to this file",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help=f"Log level (default: {LOG_LEVEL})",
    )
    parser.add_argument(
        "--log-format",
        default="key-value",
        choices=["key-value", "json"],
        help="Log line format (default: key-value)",
    )
    return parser


def write_result(path: Path, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the flowchart import.

    Returns:
        Exit code (0 for success, 1 when the import could not be done).
    """
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, format_type=args.log_format)

    logger.info(
        "Flowchart import starting",
        extra={
            "event": "cli.starting",
            "document": args.document,
            "curriculum": str(args.curriculum),
            "program": args.program,
        },
    )

    importer = FlowchartImporter()
    try:
        outcome = importer.run_import(
            args.document,
            str(args.curriculum),
            state=str(args.state) if args.state else None,
            program=args.program,
        )
        if args.output:
            write_result(args.output, outcome.result.to_dict())
    except FlowAuditError as e:
        logger.error(
            "Import failed: %s",
            e,
            extra={"event": "cli.failed", "error_type": type(e).__name__},
        )
        TerminalDisplay.print_error(str(e))
        return 1
    except OSError as e:
        logger.error(
            "Cannot write %s: %s",
            args.output,
            e,
            extra={"event": "cli.failed", "error_type": type(e).__name__},
        )
        TerminalDisplay.print_error(f"Cannot write {args.output}: {e}")
        return 1

    if args.output:
        logger.info(
            "Wrote flowchart state",
            extra={"event": "cli.output.written", "path": str(args.output)},
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
