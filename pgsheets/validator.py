"""Schema validation for pending row changes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Awaitable, Mapping, Protocol, Sequence
from uuid import UUID

from .models import Change, ChangeKind
from .pgtypes import base_type, is_boolean_type, is_float_type, is_integer_type

COLUMNS_QUERY = """
    SELECT a.attname AS column_name,
           pg_catalog.format_type(a.atttypid, a.atttypmod) AS data_type,
           NOT a.attnotnull AS is_nullable,
           a.atthasdef AS has_default,
           t.oid AS typoid,
           t.typelem AS typelem
    FROM pg_attribute a
    JOIN pg_class c ON a.attrelid = c.oid
    JOIN pg_namespace n ON c.relnamespace = n.oid
    JOIN pg_type t ON a.atttypid = t.oid
    WHERE n.nspname = $1
      AND c.relname = $2
      AND a.attnum > 0
      AND NOT a.attisdropped
    ORDER BY a.attnum
"""

ENUM_QUERY = """
    SELECT enumtypid::oid AS enumtypid, enumlabel
    FROM pg_enum
    WHERE enumtypid = ANY($1::oid[])
    ORDER BY enumtypid, enumsortorder
"""

_INTEGER_RE = re.compile(r"^-?\d+$")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T|\s|$)")
_ISO_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}(:?\d{2})?)?$")
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_BOOLEAN_STRINGS = {"true", "false", "1", "0"}


class SchemaValidator(Protocol):
    """Collaborator returning violation messages for a batch of changes."""

    def __call__(
        self,
        conn: Any,
        schema: str,
        table: str,
        changes: Sequence[Change],
    ) -> Awaitable[list[str]]: ...


@dataclass(frozen=True, slots=True)
class ColumnMeta:
    """Column type information read from the catalog."""

    name: str
    type: str
    nullable: bool = True
    has_default: bool = False
    typoid: int = 0
    typelem: int = 0

    @property
    def is_array(self) -> bool:
        return self.type.endswith("[]")


async def fetch_column_metadata(
    conn: Any,
    schema: str,
    table: str,
) -> tuple[list[ColumnMeta], dict[int, list[str]]]:
    """Return column metadata plus enum labels keyed by type oid."""

    rows = await conn.fetch(COLUMNS_QUERY, schema, table)
    columns = [
        ColumnMeta(
            name=str(row["column_name"]),
            type=str(row["data_type"]),
            nullable=bool(row["is_nullable"]),
            has_default=bool(row.get("has_default")),
            typoid=int(row["typoid"] or 0),
            typelem=int(row["typelem"] or 0),
        )
        for row in rows
    ]
    oids = sorted({oid for column in columns for oid in (column.typoid, column.typelem) if oid})
    enum_labels: dict[int, list[str]] = {}
    if oids:
        for row in await conn.fetch(ENUM_QUERY, oids):
            enum_labels.setdefault(int(row["enumtypid"]), []).append(str(row["enumlabel"]))
    return columns, enum_labels


async def fetch_column_types(conn: Any, schema: str, table: str) -> dict[str, str]:
    """Map column name to formatted type, without the enum lookup."""

    rows = await conn.fetch(COLUMNS_QUERY, schema, table)
    return {str(row["column_name"]): str(row["data_type"]) for row in rows}


async def validate_changes_against_schema(
    conn: Any,
    schema: str,
    table: str,
    changes: Sequence[Change],
) -> list[str]:
    """Validate inserts and updates against the live table definition.

    Returns an empty list when the batch is acceptable.
    """

    columns, enum_labels = await fetch_column_metadata(conn, schema, table)
    return check_values(columns, enum_labels, changes)


def check_values(
    columns: Sequence[ColumnMeta],
    enum_labels: Mapping[int, Sequence[str]],
    changes: Sequence[Change],
) -> list[str]:
    """Pure validation step; unknown columns are left for the database to reject."""

    by_name = {column.name: column for column in columns}
    errors: list[str] = []
    for change in changes:
        if change.kind not in (ChangeKind.INSERT, ChangeKind.UPDATE):
            continue
        for name, value in change.data.items():  # type: ignore[union-attr]
            meta = by_name.get(name)
            if meta is None or value is None:
                continue
            message = _check_value(meta, value, enum_labels)
            if message:
                errors.append(message)
            elif meta.is_array:
                errors.extend(_check_array_elements(meta, value, enum_labels))
    return errors


def _check_value(meta: ColumnMeta, value: Any, enum_labels: Mapping[int, Sequence[str]]) -> str | None:
    name = base_type(meta.type)
    if name in {"json", "jsonb"}:
        return None
    if meta.is_array:
        if not isinstance(value, (list, tuple)):
            return f'Column "{meta.name}" expects an array'
        return None
    labels = enum_labels.get(meta.typoid)
    if labels:
        if str(value) not in labels:
            return f'Column "{meta.name}" has invalid enum value: {value}'
        return None
    if is_integer_type(meta.type):
        if not _is_integer(value):
            return f'Column "{meta.name}" expected integer but got: {value}'
        return None
    if is_float_type(meta.type):
        if not _is_numeric(value):
            return f'Column "{meta.name}" expected numeric value but got: {value}'
        return None
    if name == "date" or name.startswith("timestamp"):
        if not isinstance(value, (date, datetime)) and not _ISO_DATE_RE.match(str(value)):
            return f'Column "{meta.name}" expected date/time in ISO format but got: {value}'
        return None
    if name.startswith("time"):
        if not isinstance(value, time) and not _ISO_TIME_RE.match(str(value).strip()):
            return f'Column "{meta.name}" expected time in HH:MM[:SS] format but got: {value}'
        return None
    if name == "uuid":
        if not isinstance(value, UUID) and not _UUID_RE.match(str(value)):
            return f'Column "{meta.name}" expected UUID but got: {value}'
        return None
    if is_boolean_type(meta.type):
        if not isinstance(value, bool) and str(value).lower() not in _BOOLEAN_STRINGS:
            return f'Column "{meta.name}" expected boolean but got: {value}'
    return None


def _check_array_elements(
    meta: ColumnMeta,
    value: Sequence[Any],
    enum_labels: Mapping[int, Sequence[str]],
) -> list[str]:
    labels = enum_labels.get(meta.typelem)
    if not labels:
        return []
    return [
        f'Column "{meta.name}" contains invalid enum element: {element}'
        for element in value
        if element is not None and str(element) not in labels
    ]


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return bool(_INTEGER_RE.match(str(value)))


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, Decimal)):
        return True
    if isinstance(value, float):
        return value == value
    return bool(_NUMERIC_RE.match(str(value)))


__all__ = [
    "COLUMNS_QUERY",
    "ColumnMeta",
    "ENUM_QUERY",
    "SchemaValidator",
    "check_values",
    "fetch_column_metadata",
    "fetch_column_types",
    "validate_changes_against_schema",
]
