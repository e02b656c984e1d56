# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

import pytest

from corrently_fdw import schema
from corrently_fdw.host import ImportForeignSchemaStmt


def test_declared_columns_in_table_order():
    names = schema.column_names()
    assert names[0] == "forecast_time"
    assert names[-1] == "hours"
    assert len(names) == len(set(names)) == 17


def test_create_table_sql_lists_every_column():
    ddl = schema.create_table_sql("corrently_server", "public")
    assert ddl.startswith("create foreign table if not exists public.gsi_prediction (")
    assert "forecast_time timestamp with time zone" in ddl
    assert "green_energy_index numeric" in ddl
    assert "zip text" in ddl
    assert "server corrently_server" in ddl
    assert "options (object 'gsi_prediction')" in ddl


def test_identifiers_are_quoted_when_needed():
    ddl = schema.create_table_sql("Corrently Server", "energy-data")
    assert '"energy-data".gsi_prediction' in ddl
    assert 'server "Corrently Server"' in ddl


@pytest.mark.parametrize(
    "list_type, tables, expected",
    [
        ("all", (), 1),
        ("limit_to", ("gsi_prediction",), 1),
        ("limit_to", ("other",), 0),
        ("except", ("gsi_prediction",), 0),
        ("except", ("other",), 1),
    ],
)
def test_import_foreign_schema_honours_table_lists(list_type, tables, expected):
    stmt = ImportForeignSchemaStmt(
        server_name="srv",
        local_schema="public",
        list_type=list_type,
        table_list=tables,
    )
    assert len(schema.import_foreign_schema(stmt)) == expected


def test_import_foreign_schema_rejects_unknown_list_type():
    stmt = ImportForeignSchemaStmt(server_name="srv", local_schema="public", list_type="bogus")
    with pytest.raises(ValueError, match="list type"):
        schema.import_foreign_schema(stmt)


def test_schema_file_must_describe_gsi_prediction(tmp_path, monkeypatch):
    path = tmp_path / "other.schema.yml"
    path.write_text("table: gsi_legacy\ncolumns: []\n", encoding="utf-8")
    monkeypatch.setattr(schema, "SCHEMA_PATH", path)
    schema._schema_document.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="gsi_legacy"):
            schema._schema_document()
    finally:
        monkeypatch.undo()
        schema._schema_document.cache_clear()
    assert schema._schema_document()["table"] == schema.TABLE_NAME
