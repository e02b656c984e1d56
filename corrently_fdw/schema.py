# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Declared output schema of the ``gsi_prediction`` foreign table.

The column list lives in ``schemas/gsi_prediction.schema.yml`` and is the
single source for the cell mapper, the local host and the DDL emitted by
``IMPORT FOREIGN SCHEMA``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml

from .host import ImportForeignSchemaStmt

LOG = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schemas") / "gsi_prediction.schema.yml"
TABLE_NAME = "gsi_prediction"

# Column type → host (PostgreSQL) type.
HOST_TYPES: Dict[str, str] = {
    "timestamp": "timestamp with time zone",
    "integer": "integer",
    "numeric": "numeric",
    "string": "text",
}


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    source: Optional[str] = None

    @property
    def host_type(self) -> str:
        return HOST_TYPES[self.type]


@lru_cache(maxsize=1)
def _schema_document() -> Dict[str, Any]:
    with SCHEMA_PATH.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, Mapping):
        raise RuntimeError(f"Unexpected schema document at {SCHEMA_PATH}")
    if loaded.get("table") != TABLE_NAME:
        raise RuntimeError(
            f"Schema at {SCHEMA_PATH} describes table {loaded.get('table')!r}, expected '{TABLE_NAME}'"
        )
    return dict(loaded)


@lru_cache(maxsize=1)
def columns() -> Tuple[Column, ...]:
    """Return the declared columns in table order."""

    parsed: List[Column] = []
    for entry in _schema_document().get("columns") or []:
        if not isinstance(entry, Mapping) or not entry.get("name"):
            raise RuntimeError(f"Malformed column entry in {SCHEMA_PATH}: {entry!r}")
        col_type = str(entry.get("type") or "")
        if col_type not in HOST_TYPES:
            raise RuntimeError(
                f"Column '{entry['name']}' has unsupported type '{col_type}' in {SCHEMA_PATH}"
            )
        source = entry.get("source")
        parsed.append(
            Column(
                name=str(entry["name"]),
                type=col_type,
                source=str(source) if source is not None else None,
            )
        )
    if not parsed:
        raise RuntimeError(f"Unexpected or empty schema at {SCHEMA_PATH}")
    return tuple(parsed)


def column_names() -> List[str]:
    return [col.name for col in columns()]


def quote_ident(name: str) -> str:
    """Quote an SQL identifier the way PostgreSQL's ``quote_ident`` does."""

    text = str(name)
    if text and text.isidentifier() and text == text.lower() and text.isascii():
        return text
    return '"' + text.replace('"', '""') + '"'


def create_table_sql(server_name: str, local_schema: str) -> str:
    """Return the ``CREATE FOREIGN TABLE`` statement for ``gsi_prediction``."""

    body = ",\n".join(f"    {quote_ident(col.name)} {col.host_type}" for col in columns())
    return (
        f"create foreign table if not exists {quote_ident(local_schema)}.{TABLE_NAME} (\n"
        f"{body}\n"
        f")\n"
        f"server {quote_ident(server_name)}\n"
        f"options (object '{TABLE_NAME}')"
    )


def _selected_tables(stmt: ImportForeignSchemaStmt) -> Sequence[str]:
    tables = [TABLE_NAME]
    wanted = {str(name) for name in stmt.table_list}
    list_type = (stmt.list_type or "all").lower()
    if list_type == "limit_to":
        return [name for name in tables if name in wanted]
    if list_type == "except":
        return [name for name in tables if name not in wanted]
    if list_type != "all":
        raise ValueError(f"Unsupported IMPORT FOREIGN SCHEMA list type: {stmt.list_type!r}")
    return tables


def import_foreign_schema(stmt: ImportForeignSchemaStmt) -> List[str]:
    """Return one DDL statement per table selected by ``stmt``."""

    statements = [
        create_table_sql(stmt.server_name, stmt.local_schema)
        for _ in _selected_tables(stmt)
    ]
    LOG.info(
        "import_foreign_schema | server=%s schema=%s tables=%d",
        stmt.server_name,
        stmt.local_schema,
        len(statements),
    )
    return statements


__all__ = [
    "Column",
    "HOST_TYPES",
    "SCHEMA_PATH",
    "TABLE_NAME",
    "column_names",
    "columns",
    "create_table_sql",
    "import_foreign_schema",
    "quote_ident",
]
