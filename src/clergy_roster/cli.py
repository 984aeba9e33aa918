"""
Command-line runner.

    clergy-roster sync roster.html --messages messages.txt [--output out.html]
    clergy-roster show roster.html

The messages file holds one chat message per paragraph (messages are separated by
blank lines).
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

from .backups import ORIGINAL_SUFFIX, UPDATED_SUFFIX, BackupStore
from .batching.batch_manager import BatchConfig, BatchManager, BatchReport, LineStatus, MessageStatus
from .config import SyncSettings, load_settings
from .document.synchronizer import parse_document
from .errors import ConfigError, StructureError
from .export import export_csv, roster_frame
from .names import display_name

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LINE_ERRORS = 1
EXIT_FATAL = 2

_PARAGRAPH_RE = re.compile(r"(?:\r?\n)[ \t]*(?:\r?\n)+")


def read_messages(path: Path) -> List[str]:
    """Split a messages file into messages on blank lines."""
    text = path.read_text(encoding="utf-8")
    return [m.strip("\r\n") for m in _PARAGRAPH_RE.split(text) if m.strip()]


def print_report(report: BatchReport, settings: SyncSettings) -> None:
    print("\n" + "=" * 40)
    print("LINES")
    print("=" * 40)
    for outcome in report.lines:
        detail = f" ({outcome.reason})" if outcome.reason else ""
        print(f"  [{outcome.status.value:>7}] #{outcome.message_index} {outcome.line}{detail}")

    print("\n" + "=" * 40)
    print("SUMMARY")
    print("=" * 40)
    print(f"Applied: {report.count(LineStatus.APPLIED)}")
    print(f"Ignored: {report.count(LineStatus.IGNORED)}")
    print(f"Errors: {report.count(LineStatus.ERROR)}")
    print(f"Warnings: {len(report.warnings)}")
    print(f"Document changed: {'yes' if report.changed else 'no'}")

    failures = [m for m in report.messages if m.status == MessageStatus.FAILURE]
    if failures and not settings.suppress_error_feedback:
        print("\nFailed messages:")
        for summary in failures:
            print(f"  #{summary.message_index}: {summary.reason}")
    if report.warnings:
        print("\nWarnings:")
        for warning in report.warnings:
            print(f"  {warning}")
    if report.structure_error:
        print(f"\nDocument not updated: {report.structure_error}")


def run_sync(args, settings: SyncSettings) -> int:
    document_text = args.document.read_text(encoding="utf-8")
    messages = read_messages(args.messages)

    manager = BatchManager(BatchConfig(ignore_message_prefix=settings.ignore_message_prefix))
    report = manager.process(document_text, messages)
    print_report(report, settings)

    if report.structure_error:
        return EXIT_FATAL

    output_path = args.output or args.document
    if report.changed and not args.dry_run:
        backups = BackupStore(settings.backups_directory) if settings.backups_enabled else None
        if backups:
            backups.save(document_text, ORIGINAL_SUFFIX)
        output_path.write_text(report.document, encoding="utf-8")
        logger.info(f"Wrote updated roster to {output_path}")
        if backups:
            backups.save(report.document, UPDATED_SUFFIX)
    elif report.changed:
        logger.info("Dry run: updated roster not written")

    if args.export_csv:
        path = export_csv(parse_document(report.document), args.export_csv)
        print(f"Wrote roster table to {path}")

    return EXIT_LINE_ERRORS if report.has_errors else EXIT_OK


def run_show(args, settings: SyncSettings) -> int:
    snapshot = parse_document(args.document.read_text(encoding="utf-8"))
    if snapshot.high_priest is not None:
        print(f"{snapshot.high_priest.title}: {display_name(snapshot.high_priest.entry)}")
    else:
        print("High Priest: vacant")
    frame = roster_frame(snapshot)
    members = frame[frame["Divine"] != ""]
    if members.empty:
        print("No members listed")
    else:
        print(members.to_string(index=False))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML settings file",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    parser = argparse.ArgumentParser(
        prog="clergy-roster",
        description="Apply chat roster instructions to the clergy roster document",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser(
        "sync", parents=[common], help="Apply a batch of messages to a roster document"
    )
    sync.add_argument("document", type=Path, help="Path to the roster HTML document")
    sync.add_argument(
        "--messages",
        type=Path,
        required=True,
        help="Text file with one chat message per paragraph",
    )
    sync.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the updated document (default: in place)",
    )
    sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing anything",
    )
    sync.add_argument(
        "--export-csv",
        type=Path,
        default=None,
        help="Also write the resulting roster as CSV",
    )
    sync.set_defaults(handler=run_sync)

    show = subparsers.add_parser("show", parents=[common], help="Print the roster held in a document")
    show.add_argument("document", type=Path, help="Path to the roster HTML document")
    show.set_defaults(handler=run_show)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point for roster sync."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(str(e))
        return EXIT_FATAL

    # Configure logging
    log_level = logging.DEBUG if args.verbose else settings.logging_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.handler(args, settings)
    except StructureError as e:
        logger.error(f"Roster document has an unexpected structure: {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
