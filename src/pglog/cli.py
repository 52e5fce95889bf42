#!/usr/bin/env python3
"""
Inspect and write spooled log segments.

Usage:
    pglog [--config FILE] [--verbose] COMMAND ...
    pglog files [--directory DIR]
    pglog scan [--directory DIR] [--columns log_time,message] [--limit N]
    pglog estimate [--directory DIR] --row-width 200 [--selectivity 0.1]
    pglog emit --severity warning "disk almost full"
"""

import argparse
import sys
from pathlib import Path

from pglog.config import Config
from pglog.errors import ConfigError, ScanError
from pglog.models.log_event import LogEvent, ProcessContext
from pglog.models.severity import parse_severity
from pglog.services.scan import CostEstimator, FileCatalog, LogRelation, PredicateCost
from pglog.services.logger import setup_logging
from pglog.services.spool import EventSpooler


def get_directory(args: argparse.Namespace, config: Config) -> Path:
    """Segment directory from the command line, config file, environment or defaults"""
    if args.directory:
        return Path(args.directory)
    return Path(config.spool["directory"])


def get_relation(args: argparse.Namespace, config: Config) -> LogRelation:
    scan = config.scan
    catalog = FileCatalog(max_files=scan["max_log_files"], suffix=scan["segment_suffix"])
    return LogRelation(get_directory(args, config), catalog=catalog, estimator=CostEstimator())


def cmd_files(args: argparse.Namespace, config: Config) -> int:
    """Print the segments a scan would read, with their sizes"""
    relation = get_relation(args, config)
    paths = relation.files()
    if not paths:
        print(f"No segment files in {relation.directory}")
        return 0

    print(f"{'Segment':<60} {'Bytes':>12}")
    print("-" * 73)
    for path in paths:
        print(f"{str(path):<60} {relation.estimator.file_size(path):>12,}")
    return 0


def cmd_scan(args: argparse.Namespace, config: Config) -> int:
    """Print rows from every segment"""
    relation = get_relation(args, config)
    columns = args.columns.split(",") if args.columns else None
    if args.limit is not None and args.limit < 0:
        print("Error: --limit must not be negative", file=sys.stderr)
        return 2
    try:
        df = relation.to_pandas(columns, limit=args.limit)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 2
    except ScanError as e:
        print(f"Error scanning segments: {e}", file=sys.stderr)
        return 1

    if df.empty:
        print("No rows")
    else:
        print(df.to_string(index=False))
    return 0


def cmd_estimate(args: argparse.Namespace, config: Config) -> int:
    """Print the planner estimate for a full scan"""
    relation = get_relation(args, config)
    estimate = relation.estimate(
        row_width=args.row_width,
        selectivity=args.selectivity,
        predicate_cost=PredicateCost(startup=args.startup_cost, per_tuple=args.per_tuple_cost),
    )
    print(f"Pages:         {estimate.pages:,}")
    print(f"Tuples:        {estimate.tuple_count:,.0f}")
    print(f"Rows:          {estimate.rows:,.0f}")
    print(f"Startup cost:  {estimate.startup_cost:.2f}")
    print(f"Total cost:    {estimate.total_cost:.2f}")
    return 0


def cmd_emit(args: argparse.Namespace, config: Config) -> int:
    """Spool one event through the configured settings"""
    try:
        settings = config.spool_settings()
        if args.directory:
            settings = settings.merged(directory=args.directory)
        severity = parse_severity(args.severity)
    except (ConfigError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    event = LogEvent(
        severity=severity,
        message=args.message,
        detail=args.detail,
        hint=args.hint,
        sql_state=args.sql_state,
    )
    spooler = EventSpooler(settings)
    try:
        result = spooler.handle(event, ProcessContext.for_current_process(application_name="pglog"))
        path = spooler.current_path
    finally:
        spooler.close()

    if result is None:
        print("Event not written (below min_messages or spooling unavailable)")
        return 0 if spooler.is_enabled else 1
    if not result.ok:
        print(f"Error: write failed ({result.value})", file=sys.stderr)
        return 1
    print(f"Wrote event to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pglog",
        description="Inspect and write spooled log segments",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List segments
  %(prog)s files --directory /var/spool/pglog

  # Show the 20 first rows, two columns
  %(prog)s scan --columns log_time,message --limit 20

  # Planner estimate for a 10% filter
  %(prog)s estimate --row-width 200 --selectivity 0.1
        """,
    )
    parser.add_argument("--config", metavar="FILE", help="JSON config file with spool, scan and logging sections")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging on the console")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_directory(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--directory", "-d", metavar="DIR", help="Segment directory (default: PGLOG_DIRECTORY)"
        )

    files = subparsers.add_parser("files", help="List segment files")
    add_directory(files)
    files.set_defaults(func=cmd_files)

    scan = subparsers.add_parser("scan", help="Print rows from all segments")
    add_directory(scan)
    scan.add_argument("--columns", "-c", metavar="COLS", help="Comma-separated column names")
    scan.add_argument("--limit", "-n", type=int, metavar="N", help="Print at most N rows")
    scan.set_defaults(func=cmd_scan)

    estimate = subparsers.add_parser("estimate", help="Planner estimate for a full scan")
    add_directory(estimate)
    estimate.add_argument("--row-width", type=int, default=200, help="Row width in bytes (default: 200)")
    estimate.add_argument("--selectivity", type=float, default=1.0, help="Filter selectivity (default: 1.0)")
    estimate.add_argument("--startup-cost", type=float, default=0.0, help="Filter startup cost")
    estimate.add_argument("--per-tuple-cost", type=float, default=0.0, help="Filter cost per tuple")
    estimate.set_defaults(func=cmd_estimate)

    emit = subparsers.add_parser("emit", help="Spool one event")
    add_directory(emit)
    emit.add_argument("message", help="Primary message")
    emit.add_argument("--severity", "-s", default="log", help="Severity name (default: log)")
    emit.add_argument("--detail", help="Detail text")
    emit.add_argument("--hint", help="Hint text")
    emit.add_argument("--sql-state", help="Five character SQLSTATE")
    emit.set_defaults(func=cmd_emit)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script"""
    args = build_parser().parse_args(argv)
    try:
        config = Config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.logging_config, console_level="DEBUG" if args.verbose else "WARNING")
    return args.func(args, config)


if __name__ == "__main__":
    sys.exit(main())
