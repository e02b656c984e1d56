# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Scan engine of the Corrently GrünstromIndex foreign data wrapper.

A :class:`CorrentlyFdw` instance owns its scan context and forecast cache.
The host drives it through ``init`` → ``begin_scan`` → ``iter_scan``
(repeatedly) → ``end_scan``; ``re_scan`` replays the cached rows from the
start without fetching again.  Each ``begin_scan`` performs exactly one GET
and materialises the whole forecast before any row is served.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from . import config, schema
from .cache import ForecastCache
from .errors import PredicateError, ScanStateError, UnsupportedOperationError
from .host import (
    BYTES_IN,
    CREATE_TIMES,
    ROWS_IN,
    ROWS_OUT,
    Context,
    ImportForeignSchemaStmt,
    Row,
)
from .http import build_prediction_url, ensure_success, http_get, redact_url
from .parser import parse_forecast
from .quals import get_int_qual, get_string_qual

LOG = logging.getLogger(__name__)

FDW_NAME = "CorrentlyFdw"
HOST_VERSION_REQUIREMENT = "^0.2.0"

ZIP_QUAL = "zip"
HOURS_QUAL = "hours"


class ScanState(enum.Enum):
    IDLE = "idle"
    INITIALIZED = "initialized"
    SCANNING = "scanning"
    EXHAUSTED = "exhausted"


@dataclass
class ScanContext:
    """Validated inputs of the scan in flight."""

    zip_code: str
    hours: Optional[int]
    base_url: str
    api_key: str = field(repr=False)
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return build_prediction_url(self.base_url, self.zip_code, self.api_key, self.hours)


class CorrentlyFdw:
    """Foreign data wrapper exposing GSI predictions as ``gsi_prediction``."""

    name: str = FDW_NAME

    def __init__(self, session_factory: Optional[Callable[[], requests.Session]] = None) -> None:
        self._session_factory = session_factory or requests.Session
        self._options: Optional[config.ServerOptions] = None
        self._scan: Optional[ScanContext] = None
        self._cache = ForecastCache()
        self.state = ScanState.IDLE

    @staticmethod
    def host_version_requirement() -> str:
        return HOST_VERSION_REQUIREMENT

    @property
    def cache(self) -> ForecastCache:
        return self._cache

    @property
    def scan_context(self) -> Optional[ScanContext]:
        return self._scan

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, ctx: Context) -> None:
        """Resolve the API key and base URL; a missing key is fatal."""

        self._options = config.resolve(ctx.options)
        self.state = ScanState.INITIALIZED
        ctx.report(self.name, CREATE_TIMES, 1)
        LOG.info("init | api_url=%s", self._options.api_url)

    def begin_scan(self, ctx: Context) -> None:
        """Fetch the forecast selected by the query's quals into the cache."""

        if self._options is None:
            raise ScanStateError("begin_scan called before init")
        self._cache.clear()
        self._scan = None
        self.state = ScanState.INITIALIZED

        zip_code = get_string_qual(ctx.quals, ZIP_QUAL)
        if zip_code is None or not zip_code.strip():
            raise PredicateError(
                "gsi_prediction requires a postal code filter: "
                "add WHERE zip = '<postal code>' to the query"
            )
        hours = get_int_qual(ctx.quals, HOURS_QUAL)
        if hours is not None and hours < 0:
            raise PredicateError(
                f"hours must be a non-negative integer (WHERE hours = <n>), got {hours}"
            )

        scan = ScanContext(
            zip_code=zip_code.strip(),
            hours=hours,
            base_url=self._options.prediction_url,
            api_key=self._options.api_key,
            headers=self._options.headers(),
        )
        url = scan.url
        LOG.info("begin_scan.request | url=%s", redact_url(url))

        session = self._session_factory()
        try:
            result = ensure_success(
                http_get(session, url, headers=scan.headers, timeout=self._options.timeout_s),
                url,
            )
        finally:
            session.close()
        ctx.report(self.name, BYTES_IN, len(result.body))

        self._cache = parse_forecast(result.body, hours=hours)
        self._cache.cursor = 0
        self._scan = scan
        self.state = ScanState.SCANNING
        ctx.report(self.name, ROWS_IN, self._cache.row_count())
        LOG.info(
            "begin_scan.done | zip=%s hours=%s rows=%d",
            scan.zip_code,
            scan.hours,
            self._cache.row_count(),
        )

    def iter_scan(self, ctx: Context, row: Row) -> Optional[int]:
        """Push the next cached row into ``row``; ``None`` once exhausted."""

        if self.state not in (ScanState.SCANNING, ScanState.EXHAUSTED):
            raise ScanStateError(f"iter_scan called in state '{self.state.value}'")
        cache = self._cache
        if cache.exhausted():
            self.state = ScanState.EXHAUSTED
            return None
        cells = [cache.cell(column, cache.cursor) for column in ctx.columns]
        for value in cells:
            row.push(value)
        cache.cursor += 1
        ctx.report(self.name, ROWS_OUT, 1)
        return 1

    def re_scan(self, ctx: Context) -> None:
        """Rewind the cursor; the cached forecast is served again."""

        if self.state not in (ScanState.SCANNING, ScanState.EXHAUSTED):
            raise ScanStateError(f"re_scan called in state '{self.state.value}'")
        self._cache.cursor = 0
        self.state = ScanState.SCANNING

    def end_scan(self, ctx: Context) -> None:
        """Drop the cached forecast, whatever state the scan ended in."""

        self._cache.clear()
        self._scan = None
        if self._options is not None:
            self.state = ScanState.INITIALIZED

    # ------------------------------------------------------------------
    # Mutations are not supported
    # ------------------------------------------------------------------

    def begin_modify(self, ctx: Context) -> None:
        raise UnsupportedOperationError("gsi_prediction is read-only: modify operations are not supported")

    def insert(self, ctx: Context, row: Row) -> None:
        raise UnsupportedOperationError("gsi_prediction is read-only: insert is not supported")

    def update(self, ctx: Context, rowid: Any, row: Row) -> None:
        raise UnsupportedOperationError("gsi_prediction is read-only: update is not supported")

    def delete(self, ctx: Context, rowid: Any) -> None:
        raise UnsupportedOperationError("gsi_prediction is read-only: delete is not supported")

    def end_modify(self, ctx: Context) -> None:
        raise UnsupportedOperationError("gsi_prediction is read-only: modify operations are not supported")

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def import_foreign_schema(self, ctx: Context, stmt: ImportForeignSchemaStmt) -> List[str]:
        return schema.import_foreign_schema(stmt)


__all__ = ["CorrentlyFdw", "FDW_NAME", "ScanContext", "ScanState"]
