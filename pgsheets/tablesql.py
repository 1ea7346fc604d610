"""Helpers for constructing table management SQL statements."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .errors import EmptyInputError


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    """Structured column definition used by the create-table builder."""

    name: str
    type: str
    nullable: bool = True
    default_value: str | None = None
    comment: str | None = None
    is_primary_key: bool = False


@dataclass(frozen=True, slots=True)
class CreateTableBuild:
    """Statements produced for a new table plus non-fatal warnings."""

    statements: tuple[str, ...]
    warnings: tuple[str, ...] = field(default_factory=tuple)


def quote_identifier(name: str) -> str:
    """Wrap ``name`` in double quotes, doubling embedded quotes."""

    if not name or not name.strip():
        raise EmptyInputError("Identifier is required")
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema: str, table: str) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(table)}"


def quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_create_table_sql(schema: str, table: str, columns_definition: str) -> str:
    trimmed = columns_definition.strip()
    if not trimmed:
        raise EmptyInputError("Column definitions cannot be empty")
    return f"CREATE TABLE {qualified_name(schema, table)} ({trimmed});"


def build_alter_table_sql(schema: str, table: str, clause: str) -> str:
    trimmed = clause.strip()
    if not trimmed:
        raise EmptyInputError("Alter clause cannot be empty")
    return f"ALTER TABLE {qualified_name(schema, table)} {trimmed};"


def build_drop_table_sql(schema: str, table: str, cascade: bool = False) -> str:
    cascade_clause = " CASCADE" if cascade else ""
    return f"DROP TABLE {qualified_name(schema, table)}{cascade_clause};"


def build_column_comment_statement(schema: str, table: str, column: str, comment: str | None) -> str:
    literal = "NULL" if comment is None else quote_literal(comment)
    return f"COMMENT ON COLUMN {qualified_name(schema, table)}.{quote_identifier(column)} IS {literal};"


def build_create_table_statements(
    schema: str,
    table: str,
    columns: Sequence[ColumnDefinition],
) -> CreateTableBuild:
    """Build CREATE TABLE plus COMMENT statements from structured columns.

    NOT NULL columns without a default produce a warning, not an error.
    """

    if not schema or not table:
        raise EmptyInputError("Schema and table name are required")
    if not columns:
        raise EmptyInputError("At least one column definition is required")

    fragments: list[str] = []
    comments: list[str] = []
    primary_keys: list[str] = []
    warnings: list[str] = []
    for column in columns:
        name = (column.name or "").strip()
        if not name:
            raise EmptyInputError("Column name cannot be empty")
        column_type = (column.type or "").strip()
        if not column_type:
            raise EmptyInputError(f'Column "{name}" is missing a type')
        default = (column.default_value or "").strip() or None
        comment = (column.comment or "").strip() or None

        pieces = [f"{quote_identifier(name)} {column_type}"]
        if not column.nullable:
            pieces.append("NOT NULL")
            if default is None:
                warnings.append(f'Column "{name}" is NOT NULL without a default value.')
        if default is not None:
            pieces.append(f"DEFAULT {default}")
        fragments.append(" ".join(pieces))

        if comment is not None:
            comments.append(build_column_comment_statement(schema, table, name, comment))
        if column.is_primary_key:
            primary_keys.append(quote_identifier(name))

    if primary_keys:
        fragments.append(f"PRIMARY KEY ({', '.join(primary_keys)})")

    statements = [f"CREATE TABLE {qualified_name(schema, table)} ({', '.join(fragments)});", *comments]
    return CreateTableBuild(statements=tuple(statements), warnings=tuple(warnings))


__all__ = [
    "ColumnDefinition",
    "CreateTableBuild",
    "build_alter_table_sql",
    "build_column_comment_statement",
    "build_create_table_sql",
    "build_create_table_statements",
    "build_drop_table_sql",
    "qualified_name",
    "quote_identifier",
    "quote_literal",
]
