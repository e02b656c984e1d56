# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Columnar cache of one scan's forecast and the cell mapper over it.

Every forecast field is stored in its own list; row ``i`` is the ``i``-th
entry of each list.  The lists always have equal length: rows are only
appended whole, via :meth:`ForecastCache.append`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import schema
from .errors import RowOutOfBoundsError, UnknownColumnError

LOG = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class ForecastRecord:
    """One validated element of the upstream ``forecast`` array."""

    time_stamp: int
    timeframe_start: int
    timeframe_end: int
    gsi: float
    eevalue: int
    ewind: int
    esolar: int
    enwind: int
    ensolar: int
    sci: int
    energyprice: float
    co2_avg: float
    co2_g_standard: int
    co2_g_oekostrom: int
    zip: str
    iat: int
    hours: Optional[int] = None


RECORD_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(ForecastRecord))

# Upstream key (as written in the schema file) → record field.
SOURCE_FIELDS: Dict[Optional[str], str] = {
    "timeStamp": "time_stamp",
    "timeframe.start": "timeframe_start",
    "timeframe.end": "timeframe_end",
    "gsi": "gsi",
    "eevalue": "eevalue",
    "ewind": "ewind",
    "esolar": "esolar",
    "enwind": "enwind",
    "ensolar": "ensolar",
    "sci": "sci",
    "energyprice": "energyprice",
    "co2_avg": "co2_avg",
    "co2_g_standard": "co2_g_standard",
    "co2_g_oekostrom": "co2_g_oekostrom",
    "zip": "zip",
    "iat": "iat",
    None: "hours",
}


def ms_to_datetime(value_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC instant (ms × 1000 µs)."""

    return EPOCH + timedelta(microseconds=int(value_ms) * 1000)


def _optional(convert: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapped(value: Any) -> Any:
        return None if value is None else convert(value)

    return wrapped


_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "timestamp": _optional(ms_to_datetime),
    "integer": _optional(int),
    "numeric": _optional(float),
    "string": _optional(str),
}


def _build_column_map() -> Dict[str, Tuple[str, Callable[[Any], Any]]]:
    mapping: Dict[str, Tuple[str, Callable[[Any], Any]]] = {}
    for col in schema.columns():
        field_name = SOURCE_FIELDS.get(col.source)
        if field_name is None:
            raise RuntimeError(
                f"Declared column '{col.name}' (source {col.source!r}) has no cache sequence"
            )
        mapping[col.name] = (field_name, _CONVERTERS[col.type])
    return mapping


COLUMN_MAP = _build_column_map()


class ForecastCache:
    """Parallel per-field sequences plus the row cursor of the current scan."""

    def __init__(self) -> None:
        self._data: Dict[str, List[Any]] = {name: [] for name in RECORD_FIELDS}
        self.cursor = 0

    def __len__(self) -> int:
        return self.row_count()

    def row_count(self) -> int:
        return len(self._data["time_stamp"])

    def clear(self) -> None:
        for values in self._data.values():
            values.clear()
        self.cursor = 0

    def append(self, record: ForecastRecord) -> None:
        for name in RECORD_FIELDS:
            self._data[name].append(getattr(record, name))

    def sequence(self, field_name: str) -> Sequence[Any]:
        return tuple(self._data[field_name])

    def cell(self, column: str, row: int) -> Any:
        """Return the typed value of ``column`` at ``row``."""

        try:
            field_name, convert = COLUMN_MAP[column]
        except KeyError:
            raise UnknownColumnError(column) from None
        count = self.row_count()
        if row < 0 or row >= count:
            raise RowOutOfBoundsError(
                f"row {row} out of bounds for cached forecast with {count} rows"
            )
        return convert(self._data[field_name][row])

    def exhausted(self) -> bool:
        return self.cursor >= self.row_count()


__all__ = [
    "COLUMN_MAP",
    "EPOCH",
    "ForecastCache",
    "ForecastRecord",
    "RECORD_FIELDS",
    "ms_to_datetime",
]
