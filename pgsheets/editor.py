"""Change-execution pipeline for table edits and schema scripts."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Sequence

from sqlglot.errors import TokenError

from .connections import ConnectionManager
from .errors import PgSheetsError
from .models import (
    Change,
    ChangeKind,
    ChangeOutcome,
    ExecutionMode,
    ExecutionOutcome,
    ExecutionStage,
)
from .pgtypes import bind_row
from .sqlgen import format_sql_for_display, format_sql_with_values, generate_sql, split_statements
from .tablesql import build_drop_table_sql
from .validator import SchemaValidator, fetch_column_types, validate_changes_against_schema

LOG = logging.getLogger(__name__)

NO_CHANGES_PREVIEW = "/* No changes to preview */"


def rows_from_status(status: str) -> int:
    """Extract the row count from a command tag such as ``UPDATE 3``."""

    parts = status.split() if isinstance(status, str) else []
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return 0


class DataEditor:
    """Validates and executes row changes against a profile's connection."""

    def __init__(
        self,
        connections: ConnectionManager,
        *,
        validator: SchemaValidator | None = None,
        pretty_preview: bool = True,
    ) -> None:
        self._connections = connections
        self._validator = validator or validate_changes_against_schema
        self._pretty_preview = pretty_preview

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    async def execute_changes(
        self,
        target: str,
        schema: str,
        table: str,
        changes: Sequence[Change],
        mode: ExecutionMode = ExecutionMode.VALIDATED,
    ) -> ExecutionOutcome:
        """Run ``changes`` in order, one statement at a time.

        There is no enclosing transaction: every change is issued on its own,
        so when a statement fails the earlier ones stay applied and the rest
        of the batch is skipped. The outcome reports how far execution got.
        Values and keys are coerced to the table's column types before
        they are bound.
        """

        if not changes:
            return ExecutionOutcome(success=True)

        try:
            conn = await self._connections.get_client(target)
        except PgSheetsError as exc:
            return ExecutionOutcome(success=False, error=str(exc), stage=ExecutionStage.CONNECT)

        async with self._connections.busy(target):
            if mode is ExecutionMode.VALIDATED:
                rejected = await self._validate(conn, schema, table, changes)
                if rejected is not None:
                    return rejected
            return await self._run_changes(conn, target, schema, table, changes)

    async def _validate(
        self,
        conn: Any,
        schema: str,
        table: str,
        changes: Sequence[Change],
    ) -> ExecutionOutcome | None:
        try:
            errors = await self._validator(conn, schema, table, changes)
        except Exception as exc:
            LOG.exception("Validation step failed", extra={"schema": schema, "table": table})
            return ExecutionOutcome(
                success=False,
                error=f"Validation step failed: {exc}",
                stage=ExecutionStage.VALIDATION,
            )
        if not errors:
            return None
        return ExecutionOutcome(
            success=False,
            error="Validation failed:\n" + "\n".join(errors),
            stage=ExecutionStage.VALIDATION,
            validation_errors=tuple(errors),
        )

    async def _run_changes(
        self,
        conn: Any,
        target: str,
        schema: str,
        table: str,
        changes: Sequence[Change],
    ) -> ExecutionOutcome:
        try:
            column_types = await fetch_column_types(conn, schema, table)
        except Exception as exc:
            LOG.warning("Could not read column types", extra={"profile": target, "error": str(exc)})
            return ExecutionOutcome(
                success=False,
                error=f"Could not read column types: {exc}",
                stage=ExecutionStage.EXECUTION,
            )
        completed: list[ChangeOutcome] = []
        for index, change in enumerate(changes):
            try:
                statement = generate_sql(schema, table, bind_change(change, column_types))
                status = await conn.execute(statement.query, *statement.values)
            except Exception as exc:
                LOG.warning(
                    "Change execution stopped",
                    extra={"profile": target, "index": index, "applied": len(completed), "error": str(exc)},
                )
                return ExecutionOutcome(
                    success=False,
                    error=_partial_message(str(exc), index, len(completed)),
                    stage=ExecutionStage.EXECUTION,
                    changes=tuple(completed),
                    failed_index=index,
                )
            completed.append(
                ChangeOutcome(
                    index=index,
                    kind=change.kind,
                    sql=statement.query,
                    rows_affected=rows_from_status(status),
                )
            )
        LOG.info("Executed changes", extra={"profile": target, "count": len(completed)})
        return ExecutionOutcome(success=True, changes=tuple(completed))

    def preview_changes(self, schema: str, table: str, changes: Sequence[Change]) -> str:
        """Render the statements a batch would run, with values inlined."""

        if not changes:
            return NO_CHANGES_PREVIEW
        try:
            statements = []
            for change in changes:
                statement = generate_sql(schema, table, change)
                text = format_sql_with_values(statement.query, statement.values)
                statements.append(format_sql_for_display(text) if self._pretty_preview else text)
        except PgSheetsError as exc:
            return f"/* Failed to generate SQL: {exc} */"
        return ";\n\n".join(statements)

    async def execute_script(self, target: str, sql: str) -> ExecutionOutcome:
        """Run a DDL script statement by statement inside one transaction."""

        try:
            statements = split_statements(sql)
        except TokenError as exc:
            return ExecutionOutcome(success=False, error=f"Could not parse SQL: {exc}", stage=ExecutionStage.EXECUTION)
        if not statements:
            return ExecutionOutcome(success=False, error="No SQL to execute.", stage=ExecutionStage.EXECUTION)

        try:
            conn = await self._connections.get_client(target)
        except PgSheetsError as exc:
            return ExecutionOutcome(success=False, error=str(exc), stage=ExecutionStage.CONNECT)

        async with self._connections.busy(target):
            index = 0
            try:
                async with conn.transaction():
                    for index, statement in enumerate(statements):
                        await conn.execute(statement)
            except Exception as exc:
                LOG.warning("Script execution rolled back", extra={"profile": target, "index": index, "error": str(exc)})
                return ExecutionOutcome(
                    success=False,
                    error=str(exc),
                    stage=ExecutionStage.EXECUTION,
                    failed_index=index,
                )
        LOG.info("Executed script", extra={"profile": target, "count": len(statements)})
        return ExecutionOutcome(success=True)

    async def drop_table(self, target: str, schema: str, table: str, cascade: bool = False) -> ExecutionOutcome:
        return await self.execute_script(target, build_drop_table_sql(schema, table, cascade))


def bind_change(change: Change, column_types: dict[str, str]) -> Change:
    """Coerce the values and keys of ``change`` to their column types."""

    if change.kind is ChangeKind.INSERT:
        return replace(change, data=bind_row(change.data, column_types))  # type: ignore[union-attr]
    if change.kind is ChangeKind.UPDATE:
        return replace(
            change,
            data=bind_row(change.data, column_types),  # type: ignore[union-attr]
            where=bind_row(change.where, column_types),  # type: ignore[union-attr]
        )
    return replace(change, where=bind_row(change.where, column_types))  # type: ignore[union-attr]


def _partial_message(error: str, index: int, applied: int) -> str:
    if applied == 0:
        return error
    return f"{error} (change {index + 1} failed; {applied} earlier change(s) were already applied)"


__all__ = ["DataEditor", "NO_CHANGES_PREVIEW", "bind_change", "rows_from_status"]
