"""CSV export of table rows."""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import date, time
from pathlib import Path
from typing import Any, Iterable, Sequence

from .connections import ConnectionManager
from .errors import EmptyInputError
from .tablesql import qualified_name, quote_identifier
from .validator import fetch_column_types

LOG = logging.getLogger(__name__)


def format_field(value: Any) -> str:
    """Render one cell; NULL becomes an empty field."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def generate_csv(
    column_names: Sequence[str],
    rows: Iterable[Sequence[Any]],
    *,
    include_headers: bool = True,
    delimiter: str = ",",
    quote_char: str = '"',
) -> str:
    """Render rows as CSV text with CRLF line endings.

    Fields holding the delimiter, the quote character or a line break are
    quoted, with embedded quotes doubled.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, quotechar=quote_char, lineterminator="\r\n")
    if include_headers:
        writer.writerow(column_names)
    for row in rows:
        writer.writerow([format_field(value) for value in row])
    return buffer.getvalue()


def export_to_file(
    path: Path,
    column_names: Sequence[str],
    rows: Iterable[Sequence[Any]],
    *,
    include_headers: bool = True,
    delimiter: str = ",",
) -> Path:
    content = generate_csv(column_names, rows, include_headers=include_headers, delimiter=delimiter)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    return path


class CsvExporter:
    """Dumps a table to a CSV file through a profile's connection."""

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections

    async def export_table(
        self,
        target: str,
        schema: str,
        table: str,
        path: Path,
        *,
        include_headers: bool = True,
        delimiter: str = ",",
    ) -> int:
        """Write every row of ``schema.table`` to ``path``; returns the row count."""

        conn = await self._connections.get_client(target)
        async with self._connections.busy(target):
            column_names = list(await fetch_column_types(conn, schema, table))
            if not column_names:
                raise EmptyInputError(f"Table {schema}.{table} has no columns to export")
            columns = ", ".join(quote_identifier(name) for name in column_names)
            records = await conn.fetch(f"SELECT {columns} FROM {qualified_name(schema, table)}")
        rows = [[record[name] for name in column_names] for record in records]
        export_to_file(path, column_names, rows, include_headers=include_headers, delimiter=delimiter)
        LOG.info("Exported CSV", extra={"profile": target, "table": f"{schema}.{table}", "rows": len(rows)})
        return len(rows)


__all__ = ["CsvExporter", "export_to_file", "format_field", "generate_csv"]
