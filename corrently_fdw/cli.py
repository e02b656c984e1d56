# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Command line access to the Corrently wrapper without a database server.

``corrently-fdw query --zip 69168`` runs one scan and prints the rows;
``--sql`` runs a DuckDB query over them.  ``corrently-fdw ddl`` prints the
statements ``IMPORT FOREIGN SCHEMA`` would create.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

import pandas as pd

from . import schema
from .common.logs import LEVEL_ENV, configure_logging, scan_summary
from .errors import (
    ConfigError,
    CorrentlyFdwError,
    PredicateError,
    UnknownColumnError,
)
from .fdw import FDW_NAME
from .host import ImportForeignSchemaStmt, Stats
from .local_host import build_quals, run_query, run_scan

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FETCH = 3


def _parse_columns(raw: str | None) -> Optional[List[str]]:
    if not raw:
        return None
    values: List[str] = []
    for item in raw.split(","):
        value = item.strip()
        if value:
            values.append(value)
    return values or None


def _server_options(args: argparse.Namespace) -> dict[str, str]:
    options: dict[str, str] = {}
    if args.api_key:
        options["api_key"] = args.api_key
    if args.api_url:
        options["api_url"] = args.api_url
    if args.timeout is not None:
        options["timeout_s"] = str(args.timeout)
    return options


def _emit(frame: pd.DataFrame, fmt: str) -> None:
    if fmt == "json":
        sys.stdout.write(frame.to_json(orient="records", date_format="iso", date_unit="us"))
        sys.stdout.write("\n")
    else:
        frame.to_csv(sys.stdout, index=False)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="corrently-fdw", description=__doc__)
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Set logging level (default: ${LEVEL_ENV} or INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    query = sub.add_parser("query", help="Run one scan against the prediction API")
    query.add_argument("--zip", dest="zip_code", default=None, help="Postal code (required by the API)")
    query.add_argument("--hours", type=int, default=None, help="Optional hours-ahead limit")
    query.add_argument(
        "--columns",
        default=None,
        help="Comma-separated output columns (default: all declared columns)",
    )
    query.add_argument("--sql", default=None, help=f"DuckDB SQL over the '{schema.TABLE_NAME}' view")
    query.add_argument("--format", dest="fmt", choices=("csv", "json"), default="csv")
    query.add_argument("--api-key", default=None, help="API token (default: $CORRENTLY_API_KEY)")
    query.add_argument("--api-url", default=None, help="Base URL (default: https://api.corrently.io)")
    query.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")

    ddl = sub.add_parser("ddl", help="Print the IMPORT FOREIGN SCHEMA statements")
    ddl.add_argument("--server", default="corrently_server", help="Foreign server name (default: %(default)s)")
    ddl.add_argument("--schema", dest="local_schema", default="public", help="Target schema (default: %(default)s)")
    group = ddl.add_mutually_exclusive_group()
    group.add_argument("--limit-to", dest="limit_to", action="append", default=None, help="Only import this table")
    group.add_argument("--except", dest="except_", action="append", default=None, help="Skip this table")
    return parser


def _run_query(args: argparse.Namespace) -> int:
    quals = build_quals(args.zip_code, args.hours)
    columns = _parse_columns(args.columns)
    options = _server_options(args)
    stats = Stats()

    LOGGER.info(
        "query.start | zip=%s hours=%s columns=%s sql=%s",
        args.zip_code,
        args.hours,
        columns or "*",
        bool(args.sql),
    )
    try:
        if args.sql:
            frame = run_query(options, quals, args.sql, columns=columns, stats=stats)
        else:
            frame = run_scan(options, quals, columns, stats=stats)
    except (ConfigError, PredicateError, UnknownColumnError) as exc:
        LOGGER.error("query.rejected | error=%s", exc)
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE
    except CorrentlyFdwError as exc:
        LOGGER.error("query.failed | error=%s", exc)
        print(f"Scan failed: {exc}", file=sys.stderr)
        return EXIT_FETCH

    _emit(frame, args.fmt)
    LOGGER.info("query.finished | %s", scan_summary(frame, stats.snapshot().get(FDW_NAME)))
    return EXIT_OK


def _run_ddl(args: argparse.Namespace) -> int:
    if args.limit_to:
        list_type, tables = "limit_to", tuple(args.limit_to)
    elif args.except_:
        list_type, tables = "except", tuple(args.except_)
    else:
        list_type, tables = "all", ()
    stmt = ImportForeignSchemaStmt(
        server_name=args.server,
        local_schema=args.local_schema,
        list_type=list_type,
        table_list=tables,
    )
    for statement in schema.import_foreign_schema(stmt):
        print(statement + ";")
    return EXIT_OK


def run(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level)

    if args.command == "ddl":
        return _run_ddl(args)
    return _run_query(args)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
