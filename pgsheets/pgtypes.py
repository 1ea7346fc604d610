"""Lightweight PostgreSQL value helpers shared by the editor and CSV import."""

from __future__ import annotations

import json
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import UUID

_INTEGER_TYPES = {"integer", "int", "int2", "int4", "int8", "smallint", "bigint", "serial", "bigserial"}
_FLOAT_TYPES = {"numeric", "decimal", "real", "double", "double precision", "float", "float4", "float8"}
_BOOLEAN_TYPES = {"boolean", "bool"}
_TIMESTAMP_TYPES = {
    "timestamp",
    "timestamptz",
    "timestamp without time zone",
    "timestamp with time zone",
}
_TIME_TYPES = {"time", "timetz", "time without time zone", "time with time zone"}
_TEXT_TYPES = {"text", "varchar", "character varying", "char", "character", "bpchar", "citext", "name"}
_EXACT_NUMERIC_TYPES = {"numeric", "decimal"}
_TRUE_STRINGS = {"true", "1", "yes", "t", "y"}
_FALSE_STRINGS = {"false", "0", "no", "f", "n"}


def base_type(pg_type: str | None) -> str:
    """Normalize a formatted type name: lower-case, no modifiers, no ``[]``."""

    if not pg_type:
        return ""
    return pg_type.lower().split("(")[0].replace("[]", "").strip()


def is_integer_type(pg_type: str | None) -> bool:
    name = base_type(pg_type)
    return name in _INTEGER_TYPES


def is_float_type(pg_type: str | None) -> bool:
    name = base_type(pg_type)
    return name in _FLOAT_TYPES


def is_boolean_type(pg_type: str | None) -> bool:
    return base_type(pg_type) in _BOOLEAN_TYPES


def convert_value(value: str | None, pg_type: str) -> Any:
    """Coerce a CSV cell to the Python value bound for a column of ``pg_type``.

    Blank cells become ``None``. Values that fail to parse as numbers are
    passed through as text so the database reports the real error.
    """

    if value is None or not value.strip():
        return None
    text = value.strip()
    name = base_type(pg_type)

    if pg_type.strip().endswith("[]"):
        return parse_array_literal(text, name)
    if name in _BOOLEAN_TYPES:
        return text.lower() in _TRUE_STRINGS
    if name in _INTEGER_TYPES:
        try:
            return int(text)
        except ValueError:
            return text
    if name in _FLOAT_TYPES:
        try:
            return float(text)
        except ValueError:
            return text
    if name in {"json", "jsonb"}:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    if name == "date":
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return text
    if name in _TIMESTAMP_TYPES:
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return text
    if name in _TIME_TYPES:
        try:
            return time.fromisoformat(text)
        except ValueError:
            return text
    return value


def bind_value(value: Any, pg_type: str | None) -> Any:
    """Turn a grid or CSV value into the Python type asyncpg binds for ``pg_type``.

    The grid sends most values as text (``"42"``, ``"2024-01-02"``), which
    asyncpg refuses for non-text parameters. Values that do not parse are
    returned unchanged so the driver reports them.
    """

    if value is None or not pg_type:
        return value
    name = base_type(pg_type)
    if pg_type.strip().endswith("[]"):
        if isinstance(value, str):
            value = parse_array_literal(value.strip(), name)
        if isinstance(value, (list, tuple)):
            return [bind_value(element, name) for element in value]
        return value
    if name in {"json", "jsonb"}:
        return value if isinstance(value, str) else json.dumps(value, default=str)
    if not isinstance(value, str):
        if name in _TEXT_TYPES:
            return _as_text(value)
        if name in _EXACT_NUMERIC_TYPES and isinstance(value, (int, float)) and not isinstance(value, bool):
            return Decimal(str(value))
        return value

    text = value.strip()
    try:
        if name in _INTEGER_TYPES:
            return int(text)
        if name in _EXACT_NUMERIC_TYPES:
            return Decimal(text)
        if name in _FLOAT_TYPES:
            return float(text)
        if name in _BOOLEAN_TYPES:
            lowered = text.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return value
        if name == "date":
            return date.fromisoformat(text[:10])
        if name in _TIMESTAMP_TYPES:
            return datetime.fromisoformat(text)
        if name in _TIME_TYPES:
            return time.fromisoformat(text)
        if name == "uuid":
            return UUID(text)
    except (ValueError, InvalidOperation):
        return value
    return value


def bind_row(row: Mapping[str, Any], column_types: Mapping[str, str]) -> dict[str, Any]:
    """Apply :func:`bind_value` per column; unknown columns pass through."""

    return {column: bind_value(value, column_types.get(column)) for column, value in row.items()}


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def cast_array_element(raw: str | None, pg_type: str | None = None) -> Any:
    """Cast one element of an array literal according to the element type."""

    trimmed = "" if raw is None else str(raw).strip()
    if trimmed == "NULL":
        return None
    if pg_type and is_integer_type(pg_type):
        try:
            return int(trimmed)
        except ValueError:
            return trimmed
    if pg_type and is_float_type(pg_type):
        try:
            return float(trimmed)
        except ValueError:
            return trimmed
    if pg_type and is_boolean_type(pg_type):
        return trimmed.lower() in {"true", "1", "t"}
    return trimmed


def parse_array_literal(literal: str, pg_type: str | None = None) -> list[Any]:
    """Parse ``{a,b,"c,d",NULL}`` into a list.

    Supports quoted elements with doubled or backslash-escaped quotes. Nested
    arrays are not supported.
    """

    if not literal or not isinstance(literal, str):
        return []
    body = literal
    if body.startswith("{") and body.endswith("}"):
        body = body[1:-1]
    if not body:
        return []

    result: list[Any] = []
    current: list[str] = []
    quoted = False
    in_quotes = False
    idx = 0
    while idx < len(body):
        char = body[idx]
        if in_quotes:
            if char == '"':
                if idx + 1 < len(body) and body[idx + 1] == '"':
                    current.append('"')
                    idx += 2
                    continue
                in_quotes = False
            elif char == "\\" and idx + 1 < len(body):
                current.append(body[idx + 1])
                idx += 2
                continue
            else:
                current.append(char)
            idx += 1
            continue
        if char == '"':
            in_quotes = True
            quoted = True
        elif char == ",":
            result.append(_element("".join(current), quoted, pg_type))
            current = []
            quoted = False
        else:
            current.append(char)
        idx += 1
    result.append(_element("".join(current), quoted, pg_type))
    return result


def _element(text: str, quoted: bool, pg_type: str | None) -> Any:
    # Quoted elements keep their text verbatim, so "NULL" stays a string.
    if quoted and not (is_integer_type(pg_type) or is_float_type(pg_type) or is_boolean_type(pg_type)):
        return text
    return cast_array_element(text, pg_type)


__all__ = [
    "base_type",
    "bind_row",
    "bind_value",
    "cast_array_element",
    "convert_value",
    "is_boolean_type",
    "is_float_type",
    "is_integer_type",
    "parse_array_literal",
]
