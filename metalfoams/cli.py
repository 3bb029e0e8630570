"""Command-line interface for the metal foam comparison pipeline.

Usage:
    # Run a comparison described by a YAML file
    metalfoams run closed_cell_aluminium.yaml

    # Override the data source and export the table
    metalfoams run run.yaml --database metalfoams_sqlite3.db --export --output-dir out/

    # List property keywords and their target units
    metalfoams variables

    # Fetch the database file
    metalfoams download https://example.org/metalfoams_sqlite3.db --output metalfoams_sqlite3.db

Exit codes:
    0    success (including an empty result)
    1    data source failure
    2    invalid configuration
    130  interrupted by the user
"""

import argparse
import logging
import sys
import traceback
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import pandas as pd

from metalfoams import __version__
from metalfoams.errors import ConfigurationError, DataSourceError
from metalfoams.pipeline.pipelineapi import PipelineResult, run_pipeline
from metalfoams.pipeline.pipelineconfig import load_config
from metalfoams.records.recordsource import download_database
from metalfoams.units.unitapi import list_variables

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DATA_SOURCE = 1
EXIT_CONFIGURATION = 2
EXIT_INTERRUPTED = 130

DEFAULT_DATABASE = Path("metalfoams_sqlite3.db")


def _print_result(result: PipelineResult) -> None:
    print("=" * 70)
    print(f"{result.plot.x_label}  vs  {result.plot.y_label}")
    print("=" * 70)
    if result.empty:
        print("No records matched the configured filters.")
    else:
        with pd.option_context("display.max_columns", None, "display.width", 200):
            print(result.table.to_string(index=False))
        print(f"\nRecords: {len(result.table):,}")
        print(f"Groups ({result.plot.grouping.column}): {result.groups.nunique()}")
    if result.export_path is not None:
        print(f"Exported: {result.export_path}")


def _cmd_run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    if args.database is not None:
        config = replace(config, database=args.database, snapshot=None)
    elif args.snapshot is not None:
        config = replace(config, database=None, snapshot=args.snapshot)
    if args.export:
        config = replace(config, export=True)
    if args.output_dir is not None:
        config = replace(config, export_dir=args.output_dir)

    result = run_pipeline(config)
    _print_result(result)
    return EXIT_OK


def _cmd_variables(args: argparse.Namespace) -> int:
    variables = list_variables()
    print(variables.to_string(index=False))
    return EXIT_OK


def _cmd_download(args: argparse.Namespace) -> int:
    path = download_database(args.url, args.output, timeout=args.timeout)
    print(f"Downloaded: {path}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metalfoams",
        description="Compare unit-consistent properties from the metal foam database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a comparison from a YAML configuration")
    run.add_argument("config", type=Path, help="Path to the run configuration (YAML)")
    source = run.add_mutually_exclusive_group()
    source.add_argument("--database", type=Path, help="SQLite database file (overrides the config)")
    source.add_argument("--snapshot", type=Path, help="Directory of table exports (overrides the config)")
    run.add_argument("--export", action="store_true", help="Write the table to an .xlsx file")
    run.add_argument("--output-dir", type=Path, help="Directory for the exported table")
    run.set_defaults(func=_cmd_run)

    variables = sub.add_parser("variables", help="List property keywords and their units")
    variables.set_defaults(func=_cmd_variables)

    download = sub.add_parser("download", help="Download the SQLite database file")
    download.add_argument("url", help="URL of metalfoams_sqlite3.db")
    download.add_argument(
        "--output", "-o",
        type=Path,
        default=DEFAULT_DATABASE,
        help=f"Destination path (default: {DEFAULT_DATABASE})",
    )
    download.add_argument("--timeout", type=float, default=60.0, help="Request timeout in seconds")
    download.set_defaults(func=_cmd_download)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except DataSourceError as e:
        print(f"Data source error: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return EXIT_DATA_SOURCE
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
