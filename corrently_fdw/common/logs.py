# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Logging setup and scan diagnostics for the Corrently connector."""
from __future__ import annotations

import logging
import os
from typing import Mapping

import pandas as pd

LEVEL_ENV = "CORRENTLY_LOG_LEVEL"
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# urllib3 logs every connection at DEBUG.
_CHATTY_LOGGERS = ("urllib3",)


def resolve_level(level: str | int | None = None) -> int:
    """Map a level name or number to a ``logging`` level.

    ``None`` falls back to ``$CORRENTLY_LOG_LEVEL`` and then ``INFO``; names
    that ``logging`` does not know also resolve to ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV) or "INFO"
    if isinstance(level, int):
        return level
    text = str(level).strip().upper()
    if text.isdigit():
        return int(text)
    resolved = logging.getLevelName(text)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int | None = None) -> int:
    """Install the shared formatter on the root logger and return the level used."""

    resolved = resolve_level(level)
    root = logging.getLogger()
    root.setLevel(resolved)
    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return resolved


def scan_summary(
    frame: pd.DataFrame | None,
    counters: Mapping[str, int] | None = None,
) -> dict[str, object]:
    """Summarise a scan result: shape, forecast window and connector counters."""

    if frame is None:
        return {"rows": 0, "columns": 0}
    summary: dict[str, object] = {"rows": int(len(frame)), "columns": int(len(frame.columns))}
    if "forecast_time" in frame.columns and len(frame):
        times = pd.to_datetime(frame["forecast_time"], utc=True)
        summary["window"] = f"{times.min().isoformat()}..{times.max().isoformat()}"
    if "zip" in frame.columns and len(frame):
        summary["zips"] = sorted(frame["zip"].dropna().astype(str).unique().tolist())
    if counters:
        summary.update({str(key): int(value) for key, value in counters.items()})
    return summary
