"""Core services for the pgsheets PostgreSQL data editor."""

from __future__ import annotations

__version__ = "0.3.0"

from .connections import ConnectionManager
from .editor import DataEditor
from .models import (
    ConnectionProfile,
    ConnectionStatus,
    DeleteChange,
    ExecutionMode,
    ExecutionOutcome,
    InsertChange,
    UpdateChange,
)

__all__ = [
    "ConnectionManager",
    "ConnectionProfile",
    "ConnectionStatus",
    "DataEditor",
    "DeleteChange",
    "ExecutionMode",
    "ExecutionOutcome",
    "InsertChange",
    "UpdateChange",
    "__version__",
]
