# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Validate and flatten a GSI prediction response into a :class:`ForecastCache`.

Every field of every forecast element is looked up by key and then checked
for its JSON type.  The first bad element aborts the whole parse with a
:class:`FieldValidationError` naming the element index and the field.  The
only lenient field is ``energyprice``: a string that does not parse as a
number becomes ``0.0``.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Mapping, Optional, Union

from .cache import ForecastCache, ForecastRecord, ms_to_datetime
from .errors import DecodeError, FieldValidationError

LOG = logging.getLogger(__name__)

FORECAST_KEY = "forecast"
DEFAULT_PRICE = 0.0


def _lookup(element: Mapping[str, Any], key: str, index: int, label: str) -> Any:
    if key not in element:
        raise FieldValidationError(index, label, "is missing")
    value = element[key]
    if value is None:
        raise FieldValidationError(index, label, "is null")
    return value


def _int_field(element: Mapping[str, Any], key: str, index: int, label: Optional[str] = None) -> int:
    label = label or key
    value = _lookup(element, key, index, label)
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldValidationError(
            index, label, f"must be an integer, got {type(value).__name__}"
        )
    return value


def _timestamp_field(
    element: Mapping[str, Any], key: str, index: int, label: Optional[str] = None
) -> int:
    label = label or key
    value = _int_field(element, key, index, label)
    try:
        ms_to_datetime(value)
    except (OverflowError, ValueError):
        raise FieldValidationError(index, label, "is out of range") from None
    return value


def _float_field(element: Mapping[str, Any], key: str, index: int) -> float:
    value = _lookup(element, key, index, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FieldValidationError(
            index, key, f"must be a number, got {type(value).__name__}"
        )
    return float(value)


def _str_field(element: Mapping[str, Any], key: str, index: int) -> str:
    value = _lookup(element, key, index, key)
    if not isinstance(value, str):
        raise FieldValidationError(
            index, key, f"must be a string, got {type(value).__name__}"
        )
    return value


def parse_price(text: str) -> float:
    """Parse the string-encoded energy price, falling back to ``0.0``."""

    try:
        price = float(text.strip())
    except ValueError:
        LOG.debug("energyprice defaulted | raw=%r", text)
        return DEFAULT_PRICE
    if not math.isfinite(price):
        LOG.debug("energyprice defaulted | raw=%r", text)
        return DEFAULT_PRICE
    return price


def parse_record(element: Any, index: int, *, hours: Optional[int] = None) -> ForecastRecord:
    """Validate one forecast element and return it as a record."""

    if not isinstance(element, Mapping):
        raise FieldValidationError(index, "<element>", "is not a JSON object")

    time_stamp = _timestamp_field(element, "timeStamp", index)

    timeframe = _lookup(element, "timeframe", index, "timeframe")
    if not isinstance(timeframe, Mapping):
        raise FieldValidationError(
            index, "timeframe", f"must be an object, got {type(timeframe).__name__}"
        )
    start = _timestamp_field(timeframe, "start", index, "timeframe.start")
    end = _timestamp_field(timeframe, "end", index, "timeframe.end")

    gsi = _float_field(element, "gsi", index)
    eevalue = _int_field(element, "eevalue", index)
    ewind = _int_field(element, "ewind", index)
    esolar = _int_field(element, "esolar", index)
    enwind = _int_field(element, "enwind", index)
    ensolar = _int_field(element, "ensolar", index)
    sci = _int_field(element, "sci", index)

    price = parse_price(_str_field(element, "energyprice", index))

    return ForecastRecord(
        time_stamp=time_stamp,
        timeframe_start=start,
        timeframe_end=end,
        gsi=gsi,
        eevalue=eevalue,
        ewind=ewind,
        esolar=esolar,
        enwind=enwind,
        ensolar=ensolar,
        sci=sci,
        energyprice=price,
        co2_avg=_float_field(element, "co2_avg", index),
        co2_g_standard=_int_field(element, "co2_g_standard", index),
        co2_g_oekostrom=_int_field(element, "co2_g_oekostrom", index),
        zip=_str_field(element, "zip", index),
        iat=_timestamp_field(element, "iat", index),
        hours=hours,
    )


def parse_forecast(body: Union[str, bytes], *, hours: Optional[int] = None) -> ForecastCache:
    """Return a fully populated cache for ``body`` or raise.

    Rows are collected into a fresh cache that is only returned once every
    element validated, so callers never observe a partial forecast.
    """

    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"response body is not valid JSON: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise DecodeError(
            f"response must be a JSON object with a '{FORECAST_KEY}' array, "
            f"got {type(payload).__name__}"
        )
    if FORECAST_KEY not in payload:
        raise DecodeError(f"response has no '{FORECAST_KEY}' array")
    items = payload[FORECAST_KEY]
    if not isinstance(items, list):
        raise DecodeError(
            f"response field '{FORECAST_KEY}' must be an array, got {type(items).__name__}"
        )

    cache = ForecastCache()
    for index, element in enumerate(items):
        cache.append(parse_record(element, index, hours=hours))

    LOG.info("parse_forecast.done | records=%d", cache.row_count())
    return cache


__all__ = ["DEFAULT_PRICE", "FORECAST_KEY", "parse_forecast", "parse_price", "parse_record"]
