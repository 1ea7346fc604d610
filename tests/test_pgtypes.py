"""Tests for PostgreSQL value helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from pgsheets.pgtypes import bind_row, bind_value, convert_value, is_integer_type, parse_array_literal


def test_interval_is_not_an_integer_type() -> None:
    assert is_integer_type("bigint") is True
    assert is_integer_type("interval") is False


def test_convert_value_by_type() -> None:
    assert convert_value("  ", "integer") is None
    assert convert_value("12", "int4") == 12
    assert convert_value("twelve", "integer") == "twelve"
    assert convert_value("2.5", "numeric(4,1)") == 2.5
    assert convert_value("Yes", "boolean") is True
    assert convert_value('{"a": 1}', "jsonb") == {"a": 1}
    assert convert_value("2024-02-29T12:00:00", "date") == date(2024, 2, 29)
    assert convert_value("2024-02-29 12:30:00", "timestamp") == datetime(2024, 2, 29, 12, 30)
    assert convert_value("hello", "text") == "hello"
    assert convert_value("{1,2,NULL}", "integer[]") == [1, 2, None]


def test_parse_array_literal_handles_quotes() -> None:
    assert parse_array_literal('{a,"b,c","say ""hi""",NULL,"NULL"}') == ["a", "b,c", 'say "hi"', None, "NULL"]
    assert parse_array_literal("{t,f}", "boolean") == [True, False]
    assert parse_array_literal("{}") == []


def test_convert_value_parses_times() -> None:
    assert convert_value("10:30:00", "time") == time(10, 30)
    assert convert_value("10:30:00+02:00", "time with time zone") == time(10, 30, tzinfo=timezone(timedelta(hours=2)))
    assert convert_value("half past ten", "time") == "half past ten"


def test_bind_value_produces_driver_types() -> None:
    assert bind_value("42", "integer") == 42
    assert bind_value(" 9.99 ", "numeric(10,2)") == Decimal("9.99")
    assert bind_value(2.5, "numeric") == Decimal("2.5")
    assert bind_value("0.5", "double precision") == 0.5
    assert bind_value("false", "boolean") is False
    assert bind_value("maybe", "boolean") == "maybe"
    assert bind_value("2024-01-02", "date") == date(2024, 1, 2)
    assert bind_value("12:00:01", "time without time zone") == time(12, 0, 1)
    assert bind_value("123e4567-e89b-12d3-a456-426614174000", "uuid") == UUID("123e4567-e89b-12d3-a456-426614174000")
    assert bind_value({"a": 1}, "jsonb") == '{"a": 1}'
    assert bind_value(7, "character varying(20)") == "7"
    assert bind_value(["1", "2"], "integer[]") == [1, 2]
    assert bind_value("{a,b}", "text[]") == ["a", "b"]
    assert bind_value("abc", "integer") == "abc"
    assert bind_value(None, "integer") is None


def test_bind_row_skips_unknown_columns() -> None:
    assert bind_row({"id": "1", "other": "1"}, {"id": "int8"}) == {"id": 1, "other": "1"}
