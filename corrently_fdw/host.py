# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Host-side types — what the query engine hands to a foreign data wrapper.

The connector never talks to the engine directly.  It reads server options,
quals and requested columns from a :class:`Context`, pushes cells into a
:class:`Row` and reports counters to a :class:`Stats` sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

LOG = logging.getLogger(__name__)

# Counter names reported to the stats sink.
CREATE_TIMES = "create_times"
BYTES_IN = "bytes_in"
ROWS_IN = "rows_in"
ROWS_OUT = "rows_out"


@dataclass(frozen=True)
class Qual:
    """One WHERE-clause condition pushed down by the host."""

    field: str
    operator: str
    value: Any
    use_or: bool = False


class Stats:
    """Best-effort counters keyed by foreign-data-wrapper name."""

    def __init__(self) -> None:
        self._counters: Dict[str, Dict[str, int]] = {}

    def inc(self, fdw_name: str, metric: str, delta: int) -> None:
        bucket = self._counters.setdefault(fdw_name, {})
        bucket[metric] = bucket.get(metric, 0) + int(delta)

    def get(self, fdw_name: str, metric: str) -> int:
        return self._counters.get(fdw_name, {}).get(metric, 0)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        return {name: dict(values) for name, values in self._counters.items()}


@dataclass
class Context:
    """Per-call view of the host: options, pushed-down quals and target columns."""

    options: Mapping[str, str] = field(default_factory=dict)
    quals: Sequence[Qual] = field(default_factory=list)
    columns: Sequence[str] = field(default_factory=list)
    stats: Optional[Stats] = None

    def report(self, fdw_name: str, metric: str, delta: int) -> None:
        """Forward a counter to the stats sink; failures never reach the scan."""

        if self.stats is None:
            return
        try:
            self.stats.inc(fdw_name, metric, delta)
        except Exception:  # pragma: no cover - stats sink is best effort
            LOG.debug("stats.inc failed | metric=%s", metric, exc_info=True)


class Row:
    """Output sink for one row; cells are pushed in requested-column order."""

    def __init__(self) -> None:
        self.cells: List[Any] = []

    def push(self, cell: Any) -> None:
        self.cells.append(cell)

    def clear(self) -> None:
        self.cells = []


@dataclass(frozen=True)
class ImportForeignSchemaStmt:
    """Arguments of ``IMPORT FOREIGN SCHEMA``."""

    server_name: str
    local_schema: str
    remote_schema: str = "corrently"
    list_type: str = "all"  # "all", "limit_to" or "except"
    table_list: Sequence[str] = ()
    options: Mapping[str, str] = field(default_factory=dict)


@runtime_checkable
class ForeignDataWrapper(Protocol):
    """Lifecycle every foreign data wrapper must implement.

    The host calls ``init`` once, then for every query ``begin_scan``,
    ``iter_scan`` until it returns ``None``, optionally ``re_scan``, and
    finally ``end_scan``.
    """

    def init(self, ctx: Context) -> None:
        ...

    def begin_scan(self, ctx: Context) -> None:
        ...

    def iter_scan(self, ctx: Context, row: Row) -> Optional[int]:
        ...

    def re_scan(self, ctx: Context) -> None:
        ...

    def end_scan(self, ctx: Context) -> None:
        ...

    def begin_modify(self, ctx: Context) -> None:
        ...

    def insert(self, ctx: Context, row: Row) -> None:
        ...

    def update(self, ctx: Context, rowid: Any, row: Row) -> None:
        ...

    def delete(self, ctx: Context, rowid: Any) -> None:
        ...

    def end_modify(self, ctx: Context) -> None:
        ...

    def import_foreign_schema(self, ctx: Context, stmt: ImportForeignSchemaStmt) -> List[str]:
        ...
