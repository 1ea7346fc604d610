"""Router translating editor UI messages into core operations.

Messages are JSON-shaped dicts ``{"command": ..., "payload": {...}}``. Table
bound commands take the connection/schema/table either from the payload or
from the :class:`TableContext` of the panel that sent them.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .connections import ConnectionManager
from .editor import DataEditor
from .errors import PgSheetsError, UnknownCommandError
from .models import ConnectionProfile, ExecutionMode, change_from_dict

LOG = logging.getLogger(__name__)

Reply = dict[str, Any]


class TableContext(NamedTuple):
    """Connection and table a panel is bound to."""

    connection: str
    schema: str
    table: str


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SaveConnectionPayload(_Payload):
    name: str = ""
    mode: str = "manual"
    conn_str: str | None = Field(default=None, alias="connStr")
    host: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    ssl: bool = False
    password: str | None = None


class TablePayload(_Payload):
    connection: str | None = None
    schema_name: str | None = Field(default=None, alias="schemaName")
    table_name: str | None = Field(default=None, alias="tableName")

    def resolve(self, context: TableContext | None) -> TableContext:
        connection = self.connection or (context.connection if context else None)
        schema = self.schema_name or (context.schema if context else None)
        table = self.table_name or (context.table if context else None)
        if not connection or not schema or not table:
            raise ValueError("Connection, schema and table are required.")
        return TableContext(connection, schema, table)


class ChangesPayload(TablePayload):
    changes: list[dict[str, Any]] = Field(default_factory=list)
    bypass_validation: bool = Field(default=False, alias="bypassValidation")


class SchemaChangesPayload(TablePayload):
    sql: str = ""


class DropTablePayload(TablePayload):
    cascade: bool = False
    sql: str | None = None


class MessageRouter:
    """Dispatches UI messages to the connection manager and data editor."""

    def __init__(self, connections: ConnectionManager, editor: DataEditor) -> None:
        self._connections = connections
        self._editor = editor
        self._handlers: dict[str, Callable[[Mapping[str, Any], TableContext | None], Awaitable[Reply]]] = {
            "testConnection": self._test_connection,
            "saveConnection": self._save_connection,
            "executeChanges": self._execute_changes,
            "previewChanges": self._preview_changes,
            "executeSchemaChanges": self._execute_schema_changes,
            "dropTableExecute": self._drop_table,
        }

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    async def handle(self, message: Mapping[str, Any], context: TableContext | None = None) -> Reply:
        """Handle one message and return the reply to post back."""

        command = message.get("command") if isinstance(message, Mapping) else None
        handler = self._handlers.get(command) if isinstance(command, str) else None
        if handler is None:
            raise UnknownCommandError(f"Unsupported command: {command!r}")
        body = message.get("payload")
        if not isinstance(body, Mapping):
            body = {key: value for key, value in message.items() if key != "command"}
        LOG.debug("Handling message", extra={"command": command})
        return await handler(body, context)

    async def _test_connection(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        result = await self._connections.test_connection(body)
        return {"command": "testResult", "payload": result.to_payload()}

    async def _save_connection(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        try:
            payload = SaveConnectionPayload.model_validate(body)
            if payload.mode == "connectionString" or payload.conn_str:
                profile = await self._connections.save_connection_string(
                    payload.name, payload.conn_str or "", payload.password
                )
            else:
                profile = await self._connections.save_connection(
                    ConnectionProfile(
                        name=payload.name,
                        host=payload.host or None,
                        port=payload.port or 5432,
                        database=payload.database or None,
                        user=payload.username or None,
                        ssl=payload.ssl,
                    ),
                    payload.password,
                )
        except (PgSheetsError, ValidationError) as exc:
            return {"command": "saveResult", "payload": {"success": False, "error": str(exc)}}
        return {"command": "saveResult", "payload": {"success": True, "name": profile.name}}

    async def _execute_changes(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        try:
            payload = ChangesPayload.model_validate(body)
            where = payload.resolve(context)
            changes = [change_from_dict(raw) for raw in payload.changes]
        except (ValidationError, ValueError) as exc:
            return _execution_failed(str(exc))
        outcome = await self._editor.execute_changes(
            where.connection,
            where.schema,
            where.table,
            changes,
            ExecutionMode.from_bypass(payload.bypass_validation),
        )
        return {"command": "executionComplete", "payload": outcome.to_payload()}

    async def _preview_changes(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        try:
            payload = ChangesPayload.model_validate(body)
            where = payload.resolve(context)
            changes = [change_from_dict(raw) for raw in payload.changes]
        except (ValidationError, ValueError) as exc:
            return {"command": "sqlPreview", "payload": f"/* Failed to generate SQL: {exc} */", "error": True}
        sql = self._editor.preview_changes(where.schema, where.table, changes)
        return {"command": "sqlPreview", "payload": sql, "error": sql.startswith("/* Failed to generate SQL")}

    async def _execute_schema_changes(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        try:
            payload = SchemaChangesPayload.model_validate(body)
            where = payload.resolve(context)
        except (ValidationError, ValueError) as exc:
            return _execution_failed(str(exc))
        outcome = await self._editor.execute_script(where.connection, payload.sql)
        return {"command": "executionComplete", "payload": outcome.to_payload()}

    async def _drop_table(self, body: Mapping[str, Any], context: TableContext | None) -> Reply:
        try:
            payload = DropTablePayload.model_validate(body)
            where = payload.resolve(context)
        except (ValidationError, ValueError) as exc:
            return {"command": "dropTableExecuteComplete", "payload": {"success": False, "error": str(exc)}}
        if payload.sql and payload.sql.strip():
            outcome = await self._editor.execute_script(where.connection, payload.sql)
        else:
            outcome = await self._editor.drop_table(where.connection, where.schema, where.table, payload.cascade)
        return {"command": "dropTableExecuteComplete", "payload": outcome.to_payload()}


def _execution_failed(error: str) -> Reply:
    return {"command": "executionComplete", "payload": {"success": False, "error": error}}


__all__ = [
    "ChangesPayload",
    "DropTablePayload",
    "MessageRouter",
    "Reply",
    "SaveConnectionPayload",
    "SchemaChangesPayload",
    "TableContext",
]
