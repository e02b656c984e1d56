# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

from __future__ import annotations

import json

import pytest

from corrently_fdw import cli, fdw as fdw_module

from ._stubs import SessionRecorder, StubResponse, make_payload


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> SessionRecorder:
    recorder = SessionRecorder(make_payload(2))
    monkeypatch.setattr(fdw_module.requests, "Session", recorder)
    return recorder


def test_query_csv(recorder, capsys):
    code = cli.run(
        ["query", "--zip", "69168", "--api-key", "tok", "--columns", "zip,smart_city_index"]
    )
    out = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert out == ["zip,smart_city_index", "69168,5", "69168,6"]
    assert "token=tok" in recorder.calls[0]["url"]


def test_query_json(recorder, capsys):
    code = cli.run(
        ["query", "--zip", "69168", "--api-key", "tok", "--columns", "forecast_time,energy_price", "--format", "json"]
    )
    records = json.loads(capsys.readouterr().out)
    assert code == 0
    assert len(records) == 2
    assert records[0]["forecast_time"].startswith("2023-11-14T22:13:20")
    assert records[0]["energy_price"] == pytest.approx(0.2891)


def test_query_sql(recorder, capsys):
    code = cli.run(
        [
            "query",
            "--zip",
            "69168",
            "--api-key",
            "tok",
            "--columns",
            "zip,smart_city_index",
            "--sql",
            "select cast(sum(smart_city_index) as integer) as total from gsi_prediction",
        ]
    )
    out = capsys.readouterr().out.strip().splitlines()
    assert code == 0
    assert out == ["total", "11"]


def test_query_without_zip_exits_2(recorder, capsys):
    code = cli.run(["query", "--api-key", "tok"])
    assert code == 2
    assert "WHERE zip" in capsys.readouterr().err
    assert recorder.calls == []


def test_query_without_api_key_exits_2(recorder, capsys):
    code = cli.run(["query", "--zip", "69168"])
    assert code == 2
    assert "api_key" in capsys.readouterr().err


def test_query_upstream_failure_exits_3(monkeypatch, capsys):
    failing = SessionRecorder(StubResponse(b"bad gateway", status=502))
    monkeypatch.setattr(fdw_module.requests, "Session", failing)
    code = cli.run(["query", "--zip", "69168", "--api-key", "tok"])
    assert code == 3
    assert "502" in capsys.readouterr().err


def test_ddl(capsys):
    code = cli.run(["ddl", "--server", "gsi", "--schema", "energy"])
    out = capsys.readouterr().out
    assert code == 0
    assert "create foreign table if not exists energy.gsi_prediction" in out
    assert out.rstrip().endswith(";")


def test_ddl_except(capsys):
    code = cli.run(["ddl", "--except", "gsi_prediction"])
    assert code == 0
    assert capsys.readouterr().out == ""
