"""metaconv CLI entry points.
This module exposes the convert and inspect commands.
It maps argparse commands onto the conversion core.
"""

from __future__ import annotations

import argparse
from contextlib import contextmanager
import signal
import sys
from pathlib import Path
from typing import Any, Iterator, Sequence

from core.config import MetaconvConfig
from core.errors import MetaconvError
from core.logging_config import configure_logging
from core.progress import CallbackProgressSink, CancellationToken
from core.types import ConversionOptions, ConversionSummary
from ingest.data_file_locator import locate_data_files
from ingest.directory_index import find_directory_index, iter_directory_entries
from ingest.pipeline import convert

EXIT_CANCELLED = 130


def build_parser(config: MetaconvConfig) -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Args:
        config: Environment config supplying option defaults.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="metaconv",
        description="Convert MASTER/EMASTER/XMASTER price archives to CSV",
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        choices=("debug", "info", "warning", "error"),
        help="Override METACONV_LOG_LEVEL for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_convert_command(subparsers, config)
    _add_inspect_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the metaconv CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    try:
        config = MetaconvConfig.from_env()
    except MetaconvError as error:
        print(f"error={error}")
        return 1
    parser = build_parser(config)
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        if args.command == "convert":
            return _run_convert_command(args)
        if args.command == "inspect":
            return _run_inspect_command(args)
    except MetaconvError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_convert_command(args: argparse.Namespace) -> int:
    """Handle convert command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = ConversionOptions(
        omit_anomalies=args.omit_anomalies,
        interpolate=args.interpolate,
        detailed_log=args.detailed_log,
        include_open_interest=args.include_open_interest,
    )
    progress = CallbackProgressSink(_print_progress)
    token = CancellationToken()
    with _cancel_on_interrupt(token):
        summary = convert(args.input, args.output, options, token, progress)
    _print_summary(summary)
    if summary.cancelled:
        return EXIT_CANCELLED
    return 0


def _run_inspect_command(args: argparse.Namespace) -> int:
    """Handle inspect command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    input_dir = Path(args.input).expanduser()
    index_path = find_directory_index(input_dir)
    located = locate_data_files(input_dir)
    referenced: set[int] = set()
    print(f"index={index_path.name}")
    for entry in iter_directory_entries(index_path):
        referenced.add(entry.file_number)
        presence = "present" if entry.file_number in located else "missing"
        print(
            f"F{entry.file_number}\t{entry.symbol}\t{entry.name or '-'}\t"
            f"{entry.format_hint}\t{presence}"
        )
    for number in sorted(located):
        if number not in referenced:
            print(f"F{number}\t-\t-\torphan\t{located[number].path.name}")
    return 0


def _print_progress(message: str) -> None:
    print(message, file=sys.stderr)


def _print_summary(summary: ConversionSummary) -> None:
    print(f"index={summary.index_path}")
    print(f"symbols={summary.total_symbols}")
    print(f"files_found={summary.files_found}")
    print(f"total_rows={summary.total_rows}")
    print(f"total_anomalies={summary.total_anomalies}")
    print(f"missing={len(summary.missing)}")
    print(f"failed={len(summary.failed)}")
    print(f"orphans={summary.orphan_count}")
    print(f"cancelled={str(summary.cancelled).lower()}")


@contextmanager
def _cancel_on_interrupt(token: CancellationToken) -> Iterator[None]:
    """Route Ctrl-C to the cancellation token while a conversion runs."""
    try:
        previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: token.request())
    except ValueError:
        # Not on the main thread; leave interrupt handling to the caller.
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous_handler)


def _add_convert_command(subparsers: Any, config: MetaconvConfig) -> None:
    """Register convert subcommand."""
    parser = subparsers.add_parser("convert", help="Convert an archive folder to CSV files")
    parser.add_argument("input", help="Folder holding MASTER/EMASTER/XMASTER and F*.DAT files")
    parser.add_argument("output", help="Folder receiving <symbol>.csv files")
    parser.add_argument(
        "--omit-anomalies",
        action=argparse.BooleanOptionalAction,
        default=config.omit_anomalies,
        help="Skip writing <symbol>_anomalies.csv files",
    )
    parser.add_argument(
        "--interpolate",
        action=argparse.BooleanOptionalAction,
        default=config.interpolate,
        help="Order rows by date before writing",
    )
    parser.add_argument(
        "--detailed-log",
        action=argparse.BooleanOptionalAction,
        default=config.detailed_log,
        help="Report every anomalous record",
    )
    parser.add_argument(
        "--include-open-interest",
        action=argparse.BooleanOptionalAction,
        default=config.include_open_interest,
        help="Decode 7-field records with an OpenInterest column",
    )


def _add_inspect_command(subparsers: Any) -> None:
    """Register inspect subcommand."""
    parser = subparsers.add_parser(
        "inspect",
        help="List directory-index entries and matching data files",
    )
    parser.add_argument("input", help="Folder holding the directory index")
