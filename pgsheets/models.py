"""Shared dataclasses used across connection/editor modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

RowData = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class ConnectionProfile:
    """Runtime representation of a connection profile.

    Profiles never carry a password; secrets are resolved separately through
    the secret store keyed by ``name``.
    """

    name: str
    dsn: str | None = None
    host: str | None = None
    port: int | None = 5432
    database: str | None = None
    user: str | None = None
    ssl: bool = False

    def connect_kwargs(self) -> dict[str, object]:
        """Keyword arguments understood by ``asyncpg.connect``."""

        kwargs: dict[str, object] = {}
        if self.dsn:
            kwargs["dsn"] = self.dsn
        else:
            kwargs["host"] = self.host or "localhost"
            if self.port is not None:
                kwargs["port"] = self.port
            if self.user:
                kwargs["user"] = self.user
            if self.database:
                kwargs["database"] = self.database
        if self.ssl:
            kwargs["ssl"] = "require"
        return kwargs


class ConnectionStatus(str, Enum):
    """Advisory runtime status of a profile."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"


@dataclass(slots=True)
class ConnectionState:
    """Per-profile state handle owned by the connection manager.

    Callers may read it freely; only the manager mutates it.
    """

    name: str
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    client: Any | None = None
    last_error: str | None = None

    @property
    def busy(self) -> bool:
        return self.status is ConnectionStatus.BUSY

    @property
    def connected(self) -> bool:
        return self.client is not None


class ChangeKind(str, Enum):
    """Row mutation kinds accepted by the editor."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class InsertChange:
    """Insert a new row with the given column values."""

    data: RowData
    kind: ChangeKind = field(default=ChangeKind.INSERT, init=False)


@dataclass(frozen=True, slots=True)
class UpdateChange:
    """Set ``data`` on rows matching the ``where`` key values."""

    data: RowData
    where: RowData
    kind: ChangeKind = field(default=ChangeKind.UPDATE, init=False)


@dataclass(frozen=True, slots=True)
class DeleteChange:
    """Delete rows matching the ``where`` key values."""

    where: RowData
    kind: ChangeKind = field(default=ChangeKind.DELETE, init=False)


Change = Union[InsertChange, UpdateChange, DeleteChange]


def change_from_dict(raw: Mapping[str, Any]) -> Change:
    """Build a change from the grid payload shape ``{type, data, where}``."""

    kind = raw.get("type")
    if kind == ChangeKind.INSERT.value:
        return InsertChange(data=dict(raw.get("data") or {}))
    if kind == ChangeKind.UPDATE.value:
        return UpdateChange(data=dict(raw.get("data") or {}), where=dict(raw.get("where") or {}))
    if kind == ChangeKind.DELETE.value:
        return DeleteChange(where=dict(raw.get("where") or {}))
    raise ValueError(f"Unknown change type: {kind}")


class ExecutionMode(str, Enum):
    """Whether a batch is checked against the table schema before running."""

    VALIDATED = "validated"
    UNVALIDATED = "unvalidated"

    @classmethod
    def from_bypass(cls, bypass_validation: bool) -> ExecutionMode:
        return cls.UNVALIDATED if bypass_validation else cls.VALIDATED


class ExecutionStage(str, Enum):
    """Where a failed execution stopped."""

    CONNECT = "connect"
    VALIDATION = "validation"
    EXECUTION = "execution"


ValidationResult = list[str]


@dataclass(frozen=True, slots=True)
class ChangeOutcome:
    """Result of one executed statement."""

    index: int
    kind: ChangeKind
    sql: str
    rows_affected: int


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    """Aggregate result returned by the editor."""

    success: bool
    error: str | None = None
    stage: ExecutionStage | None = None
    changes: tuple[ChangeOutcome, ...] = ()
    validation_errors: tuple[str, ...] = ()
    failed_index: int | None = None

    @property
    def rows_affected(self) -> int:
        return sum(change.rows_affected for change in self.changes)

    @property
    def applied(self) -> int:
        """Number of statements that completed before success or failure."""

        return len(self.changes)

    def to_payload(self) -> dict[str, object]:
        """Shape of the ``executionComplete`` reply."""

        payload: dict[str, object] = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True, slots=True)
class ConnectionTestResult:
    """Outcome of a connectivity check."""

    success: bool
    error: str | None = None

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        return payload


__all__ = [
    "Change",
    "ChangeKind",
    "ChangeOutcome",
    "ConnectionProfile",
    "ConnectionState",
    "ConnectionStatus",
    "ConnectionTestResult",
    "DeleteChange",
    "ExecutionMode",
    "ExecutionOutcome",
    "ExecutionStage",
    "InsertChange",
    "RowData",
    "UpdateChange",
    "ValidationResult",
    "change_from_dict",
]
