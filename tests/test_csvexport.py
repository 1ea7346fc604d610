"""Tests for CSV export."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from pgsheets.config import AppConfig, ConnectionProfileConfig
from pgsheets.connections import ConnectionManager
from pgsheets.csvexport import CsvExporter, format_field, generate_csv
from pgsheets.csvimport import CsvColumn, read_csv_rows
from pgsheets.models import ConnectionStatus, InsertChange
from pgsheets.storage import MemorySecretStore, ProfileStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def test_generate_csv_quotes_only_when_needed() -> None:
    content = generate_csv(
        ["id", "note"],
        [[1, 'say "hi"'], [2, "a,b"], [3, "line\nbreak"], [4, None]],
    )

    assert content == 'id,note\r\n1,"say ""hi"""\r\n2,"a,b"\r\n3,"line\nbreak"\r\n4,\r\n'


def test_generate_csv_without_headers_and_custom_delimiter() -> None:
    assert generate_csv(["a", "b"], [["x;y", True]], include_headers=False, delimiter=";") == '"x;y";true\r\n'


def test_format_field_renders_native_values() -> None:
    assert format_field(date(2024, 1, 2)) == "2024-01-02"
    assert format_field(False) == "false"
    assert format_field({"k": [1]}) == '{"k": [1]}'


class _TableConnection:
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def fetch(self, query: str, *args: Any) -> list[dict[str, Any]]:
        self.queries.append(query)
        if args:
            return [
                {"column_name": "id", "data_type": "integer", "is_nullable": False, "typoid": 0, "typelem": 0},
                {"column_name": "name", "data_type": "text", "is_nullable": True, "typoid": 0, "typelem": 0},
            ]
        return [{"id": 1, "name": "Smith, Jo"}, {"id": 2, "name": None}]

    def is_closed(self) -> bool:
        return False

    async def close(self) -> None:
        return None

    def add_termination_listener(self, callback: Any) -> None:
        return None


@pytest.mark.anyio
async def test_export_table_writes_file_that_imports_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    conn = _TableConnection()

    async def _fake_connect(**kwargs: Any) -> _TableConnection:
        return conn

    monkeypatch.setattr("pgsheets.connections.asyncpg.connect", _fake_connect)
    store = ProfileStore(AppConfig(profiles=[ConnectionProfileConfig(name="local", host="db")]), persist=None)
    manager = ConnectionManager(store, MemorySecretStore({"local": "pw"}))
    target = tmp_path / "out" / "people.csv"

    count = await CsvExporter(manager).export_table("local", "public", "people", target)

    assert count == 2
    assert conn.queries[-1] == 'SELECT "id", "name" FROM "public"."people"'
    assert target.read_bytes() == b'id,name\r\n1,"Smith, Jo"\r\n2,\r\n'
    assert read_csv_rows(target, [CsvColumn("id", "integer"), CsvColumn("name")]) == [
        InsertChange(data={"id": 1, "name": "Smith, Jo"}),
        InsertChange(data={"id": 2, "name": None}),
    ]
    assert manager.status("local") is ConnectionStatus.IDLE
