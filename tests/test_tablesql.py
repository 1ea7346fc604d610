"""Tests for the table DDL builders."""

from __future__ import annotations

import pytest

from pgsheets.errors import EmptyInputError
from pgsheets.tablesql import (
    ColumnDefinition,
    build_alter_table_sql,
    build_column_comment_statement,
    build_create_table_sql,
    build_create_table_statements,
    build_drop_table_sql,
    quote_identifier,
)


def test_quote_identifier_doubles_embedded_quotes() -> None:
    assert quote_identifier('weird"name') == '"weird""name"'
    assert quote_identifier("users") == '"users"'


def test_quote_identifier_rejects_blank_names() -> None:
    with pytest.raises(EmptyInputError):
        quote_identifier("  ")


def test_build_create_table_sql_wraps_trimmed_columns() -> None:
    sql = build_create_table_sql("public", "users", "id SERIAL PRIMARY KEY")

    assert sql == 'CREATE TABLE "public"."users" (id SERIAL PRIMARY KEY);'


def test_build_create_table_sql_rejects_blank_columns() -> None:
    with pytest.raises(EmptyInputError, match="Column definitions cannot be empty"):
        build_create_table_sql("public", "users", "   ")


def test_build_alter_table_sql() -> None:
    sql = build_alter_table_sql("public", "users", "  ADD COLUMN age integer ")

    assert sql == 'ALTER TABLE "public"."users" ADD COLUMN age integer;'


def test_build_alter_table_sql_rejects_blank_clause() -> None:
    with pytest.raises(EmptyInputError):
        build_alter_table_sql("public", "users", "\t\n")


def test_build_drop_table_sql_only_cascades_on_request() -> None:
    assert build_drop_table_sql("public", "logs") == 'DROP TABLE "public"."logs";'
    assert build_drop_table_sql("public", "logs", True) == 'DROP TABLE "public"."logs" CASCADE;'


def test_build_column_comment_statement_escapes_literal() -> None:
    sql = build_column_comment_statement("public", "users", "name", "it's the name")

    assert sql == 'COMMENT ON COLUMN "public"."users"."name" IS \'it\'\'s the name\';'
    assert build_column_comment_statement("public", "users", "name", None).endswith("IS NULL;")


def test_build_create_table_statements_collects_keys_comments_and_warnings() -> None:
    result = build_create_table_statements(
        "public",
        "accounts",
        [
            ColumnDefinition(name="id", type="bigserial", nullable=False, is_primary_key=True),
            ColumnDefinition(name="email", type="text", nullable=False, comment="login address"),
            ColumnDefinition(name="created_at", type="timestamptz", nullable=False, default_value="now()"),
        ],
    )

    assert result.statements[0] == (
        'CREATE TABLE "public"."accounts" ("id" bigserial NOT NULL, "email" text NOT NULL, '
        '"created_at" timestamptz NOT NULL DEFAULT now(), PRIMARY KEY ("id"));'
    )
    assert result.statements[1] == 'COMMENT ON COLUMN "public"."accounts"."email" IS \'login address\';'
    assert result.warnings == (
        'Column "id" is NOT NULL without a default value.',
        'Column "email" is NOT NULL without a default value.',
    )


def test_build_create_table_statements_requires_column_type() -> None:
    with pytest.raises(EmptyInputError, match="missing a type"):
        build_create_table_statements("public", "t", [ColumnDefinition(name="id", type=" ")])

    with pytest.raises(EmptyInputError):
        build_create_table_statements("public", "t", [])
