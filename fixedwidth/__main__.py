"""CLI entry point for converting fixed-width files.

Usage:
    python -m fixedwidth read layout.yaml input.txt
    python -m fixedwidth read layout.yaml input.txt --output records.parquet
    python -m fixedwidth read layout.yaml input.txt --record-type A --output a.csv
    python -m fixedwidth write layout.yaml records.csv output.txt
    python -m fixedwidth check layout.yaml

Multi-record files read without --record-type come out in long form: a
``record_type`` column followed by ``field_0..field_n``. The same CSV can be
written back with ``write``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pandas as pd

from fixedwidth.lib.config_loader import FileLayout, load_layout
from fixedwidth.lib.env import load_env_file
from fixedwidth.lib.errors import ConfigurationError, FixedWidthError
from fixedwidth.lib.frames import write_dataframe
from fixedwidth.lib.observability import ConversionMetrics, setup_logging
from fixedwidth.lib.reader import FixedWidthReader
from fixedwidth.lib.resolvers import DiscriminatorResolver

logger = logging.getLogger(__name__)

RECORD_TYPE_COLUMN = "record_type"


def collect_records(
    layout: FileLayout,
    input_path: str,
    record_type: Optional[str] = None,
) -> Tuple[List[str], List[List[Any]]]:
    """Read ``input_path`` into column names and rows."""
    if record_type is not None:
        layout.layout(record_type)

    resolver = layout.resolver()
    rows: List[List[Any]] = []
    codes: List[Optional[str]] = []

    with FixedWidthReader.from_path(input_path, resolver, layout.reader_options) as reader:
        for record in reader:
            code = resolver.last_code if isinstance(resolver, DiscriminatorResolver) else None
            if code is not None and record_type is not None and code != record_type:
                continue
            rows.append(record)
            codes.append(code)

    if layout.discriminator is None or record_type is not None:
        return layout.columns_for(record_type), rows

    width = max((len(row) for row in rows), default=0)
    columns = [RECORD_TYPE_COLUMN] + [f"field_{i}" for i in range(width)]
    padded = [
        [code] + row + [None] * (width - len(row))
        for code, row in zip(codes, rows)
    ]
    return columns, padded


def read_command(args: argparse.Namespace) -> int:
    """Convert a fixed-width file to CSV, Parquet or stdout."""
    layout = load_layout(args.layout)
    metrics = ConversionMetrics("read", source=args.input)

    with metrics.time_phase("parse"):
        columns, rows = collect_records(layout, args.input, args.record_type)
    frame = pd.DataFrame(rows, columns=columns, dtype="object")
    metrics.record("records", len(frame), unit="rows")

    with metrics.time_phase("write"):
        if not args.output:
            frame.to_csv(sys.stdout, index=False)
        else:
            suffix = Path(args.output).suffix.lower()
            if suffix == ".parquet":
                frame.to_parquet(args.output, index=False, engine="pyarrow")
            elif suffix == ".csv":
                frame.to_csv(args.output, index=False)
            else:
                raise ConfigurationError(
                    f"Unsupported output format '{suffix}'",
                    field="output",
                    value=args.output,
                    suggestion="Use a .csv or .parquet output path.",
                )

    metrics.log_summary(logger)
    return 0


def write_command(args: argparse.Namespace) -> int:
    """Write the rows of a CSV file as fixed-width records."""
    layout = load_layout(args.layout)
    frame = pd.read_csv(args.input, dtype=str, keep_default_na=False)
    metrics = ConversionMetrics("write", source=args.input)

    with metrics.time_phase("write"):
        writer = layout.open_writer(args.output)
        with writer:
            if args.record_type is None and RECORD_TYPE_COLUMN in frame.columns:
                count = _write_long_form(layout, writer, frame)
            else:
                record_layout = layout.layout(args.record_type)
                columns = layout.columns_for(record_layout.name)
                if set(columns) <= set(frame.columns):
                    frame = frame[columns]
                count = write_dataframe(writer, frame, record_layout.name)

    metrics.record("records", count, unit="rows")
    metrics.log_summary(logger)
    return 0


def _write_long_form(layout: FileLayout, writer: Any, frame: pd.DataFrame) -> int:
    field_columns = [c for c in frame.columns if c != RECORD_TYPE_COLUMN]
    count = 0
    for _, row in frame.iterrows():
        record_type = row[RECORD_TYPE_COLUMN]
        field_count = len(layout.layout(record_type).fields)
        writer.write([row[c] for c in field_columns[:field_count]], record_type)
        count += 1
    return count


def check_command(args: argparse.Namespace) -> int:
    """Validate a layout file and describe it."""
    layout = load_layout(args.layout)

    print(f"Layout: {args.layout}")
    if layout.discriminator:
        d = layout.discriminator
        print(f"Discriminator: start={d.start} length={d.length} strict={d.strict}")
    print(f"Reader separator: {layout.reader_options.record_separator.value}")
    print()

    max_name = max(max(len(n) for n in layout.record_type_names), 10)
    print(f"  {'Type':<{max_name}}  {'Length':>6}  Widths")
    print(f"  {'-' * max_name}  {'-' * 6}  {'-' * 30}")
    for name, record_layout in layout.record_types.items():
        widths = ", ".join(str(w) for w in record_layout.widths)
        print(f"  {name:<{max_name}}  {record_layout.record_length:>6}  {widths}")

    print()
    print("RESULT: PASSED - Layout is valid")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fixedwidth",
        description="Read and write fixed-width files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Print records as CSV
    python -m fixedwidth read layout.yaml input.txt

    # Convert to Parquet
    python -m fixedwidth read layout.yaml input.txt --output records.parquet

    # Write CSV rows as fixed-width records
    python -m fixedwidth write layout.yaml records.csv output.txt

    # Validate a layout file
    python -m fixedwidth check layout.yaml
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument("--log-file", help="Write logs to a file in addition to stderr")
    parser.add_argument("--env-file", help="Load environment variables from a .env file")

    commands = parser.add_subparsers(dest="command", required=True)

    read = commands.add_parser("read", help="Convert a fixed-width file to CSV or Parquet")
    read.add_argument("layout", help="YAML layout file")
    read.add_argument("input", help="Fixed-width input file")
    read.add_argument("--output", "-o", help="Output .csv or .parquet file (default: stdout)")
    read.add_argument("--record-type", help="Only keep records of this type")
    read.set_defaults(handler=read_command)

    write = commands.add_parser("write", help="Write CSV rows as fixed-width records")
    write.add_argument("layout", help="YAML layout file")
    write.add_argument("input", help="CSV input file")
    write.add_argument("output", help="Fixed-width output file")
    write.add_argument("--record-type", help="Record type to write every row as")
    write.set_defaults(handler=write_command)

    check = commands.add_parser("check", help="Validate a layout file")
    check.add_argument("layout", help="YAML layout file")
    check.set_defaults(handler=check_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, json_format=args.json_log, log_file=args.log_file)

    if args.env_file and not load_env_file(args.env_file):
        logger.warning("No environment variables loaded from %s", args.env_file)

    try:
        return args.handler(args)
    except FixedWidthError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
