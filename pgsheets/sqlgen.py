"""Statement generation and preview formatting for row changes."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Sequence

import sqlglot
from sqlglot.errors import ParseError, TokenError
from sqlglot.tokens import TokenType

from .errors import SqlGenerationError
from .models import Change, ChangeKind, RowData
from .tablesql import qualified_name, quote_identifier, quote_literal

DIALECT = "postgres"
# Quoted identifiers and string literals are matched first so that a
# $n inside them is left alone.
_PLACEHOLDER = re.compile(r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")|\$(\d+)")


@dataclass(frozen=True, slots=True)
class SqlStatement:
    """Parameterized statement using ``$n`` placeholders."""

    query: str
    values: tuple[Any, ...]


def generate_sql(schema: str, table: str, change: Change) -> SqlStatement:
    """Build the statement for a single change."""

    target = qualified_name(schema, table)
    if change.kind is ChangeKind.INSERT:
        return _insert(target, change.data)  # type: ignore[union-attr]
    if change.kind is ChangeKind.UPDATE:
        return _update(target, change.data, change.where)  # type: ignore[union-attr]
    if change.kind is ChangeKind.DELETE:
        return _delete(target, change.where)  # type: ignore[union-attr]
    raise SqlGenerationError(f"Unknown change type: {change.kind}")


def _insert(target: str, data: RowData) -> SqlStatement:
    if not data:
        return SqlStatement(query=f"INSERT INTO {target} DEFAULT VALUES", values=())
    columns = ", ".join(quote_identifier(column) for column in data)
    placeholders = ", ".join(f"${idx}" for idx in range(1, len(data) + 1))
    return SqlStatement(
        query=f"INSERT INTO {target} ({columns}) VALUES ({placeholders})",
        values=tuple(data.values()),
    )


def _update(target: str, data: RowData, where: RowData) -> SqlStatement:
    if not data:
        raise SqlGenerationError("UPDATE requires at least one column to set")
    if not where:
        raise SqlGenerationError("UPDATE requires key values to identify the row")
    assignments = ", ".join(
        f"{quote_identifier(column)} = ${idx}" for idx, column in enumerate(data, start=1)
    )
    offset = len(data)
    conditions = " AND ".join(
        f"{quote_identifier(column)} = ${offset + idx}" for idx, column in enumerate(where, start=1)
    )
    return SqlStatement(
        query=f"UPDATE {target} SET {assignments} WHERE {conditions}",
        values=(*data.values(), *where.values()),
    )


def _delete(target: str, where: RowData) -> SqlStatement:
    if not where:
        raise SqlGenerationError("DELETE requires key values to identify the row")
    conditions = " AND ".join(
        f"{quote_identifier(column)} = ${idx}" for idx, column in enumerate(where, start=1)
    )
    return SqlStatement(query=f"DELETE FROM {target} WHERE {conditions}", values=tuple(where.values()))


def format_value(value: Any) -> str:
    """Render a bound value as a SQL literal for previews."""

    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return quote_literal(value.isoformat())
    if isinstance(value, str):
        return quote_literal(value)
    return quote_literal(json.dumps(value, default=str))


def format_sql_with_values(query: str, values: Sequence[Any]) -> str:
    """Inline ``values`` into their ``$n`` placeholders in a single pass."""

    def _substitute(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        idx = int(match.group(2))
        if 1 <= idx <= len(values):
            return format_value(values[idx - 1])
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, query)


def format_sql_for_display(sql: str) -> str:
    """Pretty-print a statement; unparseable input is returned unchanged."""

    try:
        rendered = sqlglot.transpile(sql, read=DIALECT, write=DIALECT, pretty=True)
    except (ParseError, TokenError):
        return sql
    return rendered[0] if len(rendered) == 1 else sql


def split_statements(script: str) -> list[str]:
    """Split a script on top-level semicolons, keeping the original text."""

    statements: list[str] = []
    start: int | None = None
    end = 0
    for token in sqlglot.tokenize(script, read=DIALECT):
        if token.token_type is TokenType.SEMICOLON:
            if start is not None:
                statements.append(script[start : end + 1].strip())
            start = None
            continue
        if start is None:
            start = token.start
        end = token.end
    if start is not None:
        statements.append(script[start : end + 1].strip())
    return [statement for statement in statements if statement]


__all__ = [
    "SqlStatement",
    "format_sql_for_display",
    "format_sql_with_values",
    "format_value",
    "generate_sql",
    "split_statements",
]
