"""CSV import: map file rows onto typed inserts for the data editor."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .editor import DataEditor
from .errors import PgSheetsError
from .models import ExecutionMode, ExecutionOutcome, ExecutionStage, InsertChange
from .pgtypes import convert_value
from .validator import fetch_column_metadata

LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvColumn:
    """Target column for one CSV field, in file order."""

    name: str
    type: str = "text"


def read_csv_rows(
    source: str | Path | Iterable[str],
    columns: Sequence[CsvColumn],
    *,
    has_header: bool = True,
    delimiter: str = ",",
) -> list[InsertChange]:
    """Parse CSV text into insert changes with values coerced per column type.

    ``source`` is a path, raw CSV text, or an iterable of lines. Extra fields
    beyond ``columns`` are ignored; missing trailing fields become NULL.
    """

    if isinstance(source, Path):
        with source.open(newline="", encoding="utf-8") as handle:
            return _to_changes(csv.reader(handle, delimiter=delimiter), columns, has_header)
    if isinstance(source, str):
        source = io.StringIO(source, newline="")
    return _to_changes(csv.reader(source, delimiter=delimiter), columns, has_header)


def _to_changes(
    reader: Iterable[list[str]],
    columns: Sequence[CsvColumn],
    has_header: bool,
) -> list[InsertChange]:
    changes: list[InsertChange] = []
    for line_no, row in enumerate(reader):
        if line_no == 0 and has_header:
            continue
        if not any(cell.strip() for cell in row):
            continue
        data = {
            column.name: convert_value(row[idx] if idx < len(row) else None, column.type)
            for idx, column in enumerate(columns)
        }
        changes.append(InsertChange(data=data))
    return changes


def validate_mapping(
    columns: Sequence[CsvColumn],
    table_columns: Sequence[str],
    required_columns: Iterable[str] = (),
) -> list[str]:
    """Check CSV column targets against the table; empty means acceptable."""

    errors: list[str] = []
    mapped = [column.name for column in columns]
    seen: set[str] = set()
    for name in mapped:
        if name not in table_columns:
            errors.append(f'Column "{name}" not found in table')
        elif name in seen:
            errors.append(f'Column "{name}" is mapped more than once')
        seen.add(name)
    for name in required_columns:
        if name not in seen:
            errors.append(f'Required column "{name}" is not mapped')
    return errors


class CsvImporter:
    """Runs CSV rows through the editor's change pipeline."""

    def __init__(self, editor: DataEditor) -> None:
        self._editor = editor

    async def check_mapping(self, target: str, schema: str, table: str, columns: Sequence[CsvColumn]) -> list[str]:
        """Validate the mapping against the live table.

        NOT NULL columns without a default must be mapped.
        """

        connections = self._editor.connections
        conn = await connections.get_client(target)
        async with connections.busy(target):
            metadata, _ = await fetch_column_metadata(conn, schema, table)
        required = [meta.name for meta in metadata if not meta.nullable and not meta.has_default]
        return validate_mapping(columns, [meta.name for meta in metadata], required)

    async def import_file(
        self,
        target: str,
        schema: str,
        table: str,
        source: str | Path | Iterable[str],
        columns: Sequence[CsvColumn],
        *,
        has_header: bool = True,
        mode: ExecutionMode = ExecutionMode.VALIDATED,
    ) -> ExecutionOutcome:
        """Insert the rows of ``source``; in validated mode the mapping is checked first."""

        if mode is ExecutionMode.VALIDATED:
            try:
                errors = await self.check_mapping(target, schema, table, columns)
            except PgSheetsError as exc:
                return ExecutionOutcome(success=False, error=str(exc), stage=ExecutionStage.CONNECT)
            except Exception as exc:
                LOG.exception("Column mapping check failed", extra={"profile": target})
                return ExecutionOutcome(
                    success=False,
                    error=f"Validation step failed: {exc}",
                    stage=ExecutionStage.VALIDATION,
                )
            if errors:
                return ExecutionOutcome(
                    success=False,
                    error="Column mapping is invalid:\n" + "\n".join(errors),
                    stage=ExecutionStage.VALIDATION,
                    validation_errors=tuple(errors),
                )
        changes = read_csv_rows(source, columns, has_header=has_header)
        LOG.info("Importing CSV rows", extra={"profile": target, "table": f"{schema}.{table}", "rows": len(changes)})
        return await self._editor.execute_changes(target, schema, table, changes, mode)


__all__ = ["CsvColumn", "CsvImporter", "read_csv_rows", "validate_mapping"]
