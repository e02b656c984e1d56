# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Typed lookups over the equality quals pushed down by the host."""

from __future__ import annotations

import math
from decimal import Decimal
from numbers import Real
from typing import Iterable, Optional

from .host import Qual

__all__ = ["get_string_qual", "get_int_qual"]

EQUALS = "="


def _equality(quals: Iterable[Qual], field_name: str) -> Iterable[Qual]:
    for qual in quals:
        if qual.field == field_name and qual.operator == EQUALS and not qual.use_or:
            yield qual


def get_string_qual(quals: Iterable[Qual], field_name: str) -> Optional[str]:
    """Return the first ``field = '<text>'`` value, or ``None``."""

    for qual in _equality(quals, field_name):
        if isinstance(qual.value, str):
            return qual.value
    return None


def get_int_qual(quals: Iterable[Qual], field_name: str) -> Optional[int]:
    """Return the first ``field = <number>`` value as an integer, or ``None``.

    Native integers are returned as-is; other numerics are truncated toward
    zero.  Booleans and non-finite numbers never match.
    """

    for qual in _equality(quals, field_name):
        value = qual.value
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, (Real, Decimal)):
            if isinstance(value, Decimal):
                if not value.is_finite():
                    continue
            elif not math.isfinite(float(value)):
                continue
            return int(value)
    return None
