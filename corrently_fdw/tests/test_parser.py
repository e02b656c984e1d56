# Pythia
# Copyright (c) 2025 Kevin Wyjad
# Licensed under the Pythia Non-Commercial Public License v1.0.
# See the LICENSE file in the project root for details.

"""Response parser: strict per-field validation with a lenient price."""

from __future__ import annotations

import json

import pytest

from corrently_fdw.errors import DecodeError, FieldValidationError
from corrently_fdw.parser import parse_forecast, parse_price

from ._stubs import make_element, make_payload


def _body(payload) -> str:
    return json.dumps(payload)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestParseForecast:
    def test_row_count_matches_array_length(self):
        cache = parse_forecast(_body(make_payload(5)))
        assert cache.row_count() == 5
        assert cache.cursor == 0

    def test_preserves_array_order(self):
        cache = parse_forecast(_body(make_payload(3)))
        assert list(cache.sequence("sci")) == [5, 6, 7]
        starts = list(cache.sequence("timeframe_start"))
        assert starts == sorted(starts)

    def test_accepts_bytes(self):
        cache = parse_forecast(_body(make_payload(1)).encode("utf-8"))
        assert cache.row_count() == 1

    def test_empty_forecast_yields_empty_cache(self):
        cache = parse_forecast(_body({"forecast": []}))
        assert cache.row_count() == 0

    def test_nested_timeframe_is_flattened(self):
        cache = parse_forecast(_body({"forecast": [make_element()]}))
        assert cache.sequence("timeframe_start") == (1700000000000,)
        assert cache.sequence("timeframe_end") == (1700003600000,)

    def test_integer_gsi_is_accepted_as_float(self):
        cache = parse_forecast(_body({"forecast": [make_element(gsi=60)]}))
        assert cache.sequence("gsi") == (60.0,)
        assert isinstance(cache.sequence("gsi")[0], float)

    def test_hours_echo_is_stored_per_row(self):
        cache = parse_forecast(_body(make_payload(2)), hours=24)
        assert cache.sequence("hours") == (24, 24)


# ---------------------------------------------------------------------------
# Price leniency
# ---------------------------------------------------------------------------


class TestEnergyPrice:
    def test_decimal_string_parses(self):
        cache = parse_forecast(_body({"forecast": [make_element(energyprice="0.2891")]}))
        assert cache.sequence("energyprice") == (pytest.approx(0.2891),)

    def test_unparseable_string_defaults_to_zero(self):
        cache = parse_forecast(_body({"forecast": [make_element(energyprice="n/a")]}))
        assert cache.row_count() == 1
        assert cache.sequence("energyprice") == (0.0,)

    @pytest.mark.parametrize("raw", ["", "inf", "nan", "0,29"])
    def test_parse_price_fallbacks(self, raw):
        assert parse_price(raw) == 0.0

    def test_numeric_price_is_still_a_type_error(self):
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [make_element(energyprice=0.29)]}))
        assert excinfo.value.field == "energyprice"


# ---------------------------------------------------------------------------
# Decode and validation failures
# ---------------------------------------------------------------------------


class TestParseFailures:
    def test_malformed_json(self):
        with pytest.raises(DecodeError, match="not valid JSON"):
            parse_forecast("{not json")

    def test_missing_forecast_array(self):
        with pytest.raises(DecodeError, match="no 'forecast' array"):
            parse_forecast(_body({"data": []}))

    def test_forecast_not_an_array(self):
        with pytest.raises(DecodeError, match="must be an array"):
            parse_forecast(_body({"forecast": {"0": make_element()}}))

    def test_top_level_array_rejected(self):
        with pytest.raises(DecodeError, match="JSON object"):
            parse_forecast(_body([make_element()]))

    def test_missing_sci_names_field_and_index(self):
        broken = make_element(1)
        del broken["sci"]
        payload = {"forecast": [make_element(0), broken, make_element(2)]}
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body(payload))
        err = excinfo.value
        assert err.field == "sci"
        assert err.index == 1
        assert "forecast[1]" in str(err)
        assert "'sci'" in str(err)

    def test_nested_field_reported_with_path(self):
        broken = make_element()
        broken["timeframe"] = {"start": 1700000000000}
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [broken]}))
        assert excinfo.value.field == "timeframe.end"
        assert excinfo.value.index == 0

    def test_timeframe_must_be_object(self):
        with pytest.raises(FieldValidationError, match="timeframe"):
            parse_forecast(_body({"forecast": [make_element(timeframe=[1, 2])]}))

    @pytest.mark.parametrize(
        "field_name, value",
        [
            ("eevalue", 54.5),
            ("ewind", "30"),
            ("timeStamp", True),
            ("iat", None),
            ("gsi", "54.3"),
            ("co2_avg", False),
            ("zip", 69168),
        ],
    )
    def test_mistyped_fields_fail(self, field_name, value):
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [make_element(**{field_name: value})]}))
        assert excinfo.value.field == field_name

    def test_non_object_element(self):
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [make_element(), 42]}))
        assert excinfo.value.index == 1

    def test_timestamp_beyond_datetime_range(self):
        payload = {"forecast": [make_element(0), make_element(1, timeStamp=10**18)]}
        with pytest.raises(FieldValidationError, match="out of range") as excinfo:
            parse_forecast(_body(payload))
        assert excinfo.value.field == "timeStamp"
        assert excinfo.value.index == 1

    @pytest.mark.parametrize("key", ["start", "end"])
    def test_timeframe_bound_beyond_datetime_range(self, key):
        broken = make_element()
        broken["timeframe"] = dict(broken["timeframe"], **{key: -(10**15)})
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [broken]}))
        assert excinfo.value.field == f"timeframe.{key}"

    def test_issued_at_beyond_datetime_range(self):
        with pytest.raises(FieldValidationError) as excinfo:
            parse_forecast(_body({"forecast": [make_element(iat=2**62)]}))
        assert excinfo.value.field == "iat"
