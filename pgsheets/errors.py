"""Exception hierarchy shared across pgsheets modules."""

from __future__ import annotations


class PgSheetsError(RuntimeError):
    """Base class for errors raised by pgsheets."""


class ConnectionNotFoundError(PgSheetsError):
    """Raised when a profile name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Connection '{name}' not found.")
        self.name = name


class MissingSecretError(PgSheetsError):
    """Raised when no password is stored for a profile."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Password not found for connection '{name}'.")
        self.name = name


class DuplicateProfileError(PgSheetsError):
    """Raised when saving a profile whose name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"A connection named '{name}' already exists.")
        self.name = name


class InvalidConnectionStringError(PgSheetsError, ValueError):
    """Raised when a connection string lacks a user, host or database."""


class ConnectFailedError(PgSheetsError):
    """Raised when the driver cannot open a connection."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Failed to connect to '{name}': {cause}")
        self.name = name
        self.cause = cause


class EmptyInputError(PgSheetsError, ValueError):
    """Raised when a SQL builder receives blank clause or column text."""


class SqlGenerationError(PgSheetsError, ValueError):
    """Raised when a change cannot be turned into a statement."""


class UnknownCommandError(PgSheetsError):
    """Raised when the message router receives an unsupported command."""


__all__ = [
    "ConnectFailedError",
    "ConnectionNotFoundError",
    "DuplicateProfileError",
    "EmptyInputError",
    "InvalidConnectionStringError",
    "MissingSecretError",
    "PgSheetsError",
    "SqlGenerationError",
    "UnknownCommandError",
]
