# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""In-process host that drives the wrapper lifecycle outside a database.

``run_scan`` plays the part of the query engine for a single scan and
collects the delivered rows into a DataFrame.  ``run_query`` registers that
frame as the DuckDB view ``gsi_prediction`` so ad-hoc SQL can run over it.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

import duckdb
import pandas as pd

from . import schema
from .common.logs import scan_summary
from .errors import UnknownColumnError
from .fdw import HOURS_QUAL, ZIP_QUAL, CorrentlyFdw
from .host import Context, Qual, Row, Stats

LOG = logging.getLogger(__name__)


def build_quals(zip_code: Optional[str], hours: Optional[int] = None) -> List[Qual]:
    """Return the equality quals a ``WHERE zip = .. AND hours = ..`` would push down."""

    quals: List[Qual] = []
    if zip_code is not None:
        quals.append(Qual(field=ZIP_QUAL, operator="=", value=str(zip_code)))
    if hours is not None:
        quals.append(Qual(field=HOURS_QUAL, operator="=", value=int(hours)))
    return quals


def _resolve_columns(columns: Optional[Sequence[str]]) -> List[str]:
    if not columns:
        return schema.column_names()
    declared = set(schema.column_names())
    selected = [str(name).strip() for name in columns if str(name).strip()]
    for name in selected:
        if name not in declared:
            raise UnknownColumnError(name)
    return selected


def run_scan(
    options: Mapping[str, Any],
    quals: Sequence[Qual],
    columns: Optional[Sequence[str]] = None,
    *,
    fdw: Optional[CorrentlyFdw] = None,
    stats: Optional[Stats] = None,
) -> pd.DataFrame:
    """Run init → begin_scan → iter_scan* → end_scan and return the rows."""

    selected = _resolve_columns(columns)
    wrapper = fdw if fdw is not None else CorrentlyFdw()
    ctx = Context(options=dict(options), quals=list(quals), columns=selected, stats=stats)

    wrapper.init(ctx)
    rows: List[List[Any]] = []
    try:
        wrapper.begin_scan(ctx)
        while True:
            row = Row()
            if wrapper.iter_scan(ctx, row) is None:
                break
            rows.append(row.cells)
    finally:
        wrapper.end_scan(ctx)

    frame = pd.DataFrame(rows, columns=selected)
    counters = stats.snapshot().get(wrapper.name) if stats is not None else None
    LOG.debug("run_scan.frame | %s", scan_summary(frame, counters))
    return frame


def run_query(
    options: Mapping[str, Any],
    quals: Sequence[Qual],
    sql: str,
    *,
    columns: Optional[Sequence[str]] = None,
    fdw: Optional[CorrentlyFdw] = None,
    stats: Optional[Stats] = None,
    conn: Optional["duckdb.DuckDBPyConnection"] = None,
) -> pd.DataFrame:
    """Scan once, expose the rows as ``gsi_prediction`` and run ``sql`` on them."""

    frame = run_scan(options, quals, columns, fdw=fdw, stats=stats)
    owns_conn = conn is None
    connection = duckdb.connect() if owns_conn else conn
    try:
        connection.register(schema.TABLE_NAME, frame)
        result = connection.execute(sql).fetchdf()
    finally:
        if owns_conn:
            connection.close()
        else:
            connection.unregister(schema.TABLE_NAME)
    LOG.info("run_query.done | rows_in=%d rows_out=%d", len(frame), len(result))
    return result


__all__ = ["build_quals", "run_query", "run_scan"]
