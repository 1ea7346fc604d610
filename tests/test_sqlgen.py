"""Tests for row change statement generation."""

from __future__ import annotations

from datetime import date

import pytest

from pgsheets.errors import SqlGenerationError
from pgsheets.models import DeleteChange, InsertChange, UpdateChange
from pgsheets.sqlgen import format_sql_with_values, format_value, generate_sql, split_statements


def test_generate_insert_uses_placeholders_and_quoted_columns() -> None:
    statement = generate_sql("public", "users", InsertChange(data={"id": 1, "email": "a@example.com"}))

    assert statement.query == 'INSERT INTO "public"."users" ("id", "email") VALUES ($1, $2)'
    assert statement.values == (1, "a@example.com")


def test_generate_update_numbers_where_after_set() -> None:
    change = UpdateChange(data={"email": "b@example.com", "active": True}, where={"id": 7})

    statement = generate_sql("public", "users", change)

    assert statement.query == 'UPDATE "public"."users" SET "email" = $1, "active" = $2 WHERE "id" = $3'
    assert statement.values == ("b@example.com", True, 7)


def test_generate_delete_joins_keys_with_and() -> None:
    statement = generate_sql("sales", "lines", DeleteChange(where={"order_id": 3, "line": 2}))

    assert statement.query == 'DELETE FROM "sales"."lines" WHERE "order_id" = $1 AND "line" = $2'
    assert statement.values == (3, 2)


def test_generate_sql_escapes_hostile_identifiers() -> None:
    statement = generate_sql('pub"lic', "t", InsertChange(data={'x"; DROP TABLE t; --': 1}))

    assert statement.query.startswith('INSERT INTO "pub""lic"."t" ("x""; DROP TABLE t; --")')


def test_generate_delete_without_keys_is_rejected() -> None:
    with pytest.raises(SqlGenerationError):
        generate_sql("public", "users", DeleteChange(where={}))


def test_format_sql_with_values_handles_double_digit_placeholders() -> None:
    values = list(range(1, 11))
    query = ", ".join(f"${idx}" for idx in range(1, 11))

    assert format_sql_with_values(query, values) == "1, 2, 3, 4, 5, 6, 7, 8, 9, 10"


def test_format_value_renders_literals() -> None:
    assert format_value(None) == "NULL"
    assert format_value("O'Brien") == "'O''Brien'"
    assert format_value(False) == "FALSE"
    assert format_value({"a": 1}) == "'{\"a\": 1}'"
    assert format_value(date(2024, 1, 2)) == "'2024-01-02'"


def test_split_statements_ignores_semicolons_inside_literals() -> None:
    script = "ALTER TABLE t ADD COLUMN note text DEFAULT 'a;b';\n\nCOMMENT ON TABLE t IS 'x';;"

    assert split_statements(script) == [
        "ALTER TABLE t ADD COLUMN note text DEFAULT 'a;b'",
        "COMMENT ON TABLE t IS 'x'",
    ]


def test_format_sql_with_values_skips_quoted_text() -> None:
    statement = generate_sql("public", "t", InsertChange(data={"cost$1": 5, "b": "x"}))

    assert format_sql_with_values(statement.query, statement.values) == (
        'INSERT INTO "public"."t" ("cost$1", "b") VALUES (5, \'x\')'
    )
    assert format_sql_with_values("SELECT '$1', \"it\"\"s $2\", $2", ["a", "b"]) == "SELECT '$1', \"it\"\"s $2\", 'b'"
