"""
Shared pytest fixtures for crudgen tests.

This module provides:
- Logging / settings reset between tests
- A temp-file SQLite database with ``test_table`` and ``users`` provisioned
- Canonical descriptors (``Test`` and ``User``)
- A recording fake connection for driver-free binder tests

Usage:
    def test_roundtrip(conn, test_descriptor):
        ...
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import structlog

from crudgen.core.descriptor import FieldDescriptor, SchemaDescriptor
from crudgen.core.settings import get_settings

# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_globals(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Undo CLI logging configuration and cached settings after each test."""
    for var in ("CRUDGEN_DIALECT", "CRUDGEN_DATABASE_URL", "CRUDGEN_LOG_LEVEL", "CRUDGEN_JSON_LOGS"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    get_settings.cache_clear()


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temp-file SQLite database; removed with ``tmp_path``."""
    path = tmp_path / "crudgen_test.db"
    setup = sqlite3.connect(path)
    setup.execute("CREATE TABLE test_table (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
    setup.execute(
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            age INTEGER
        )
        """
    )
    setup.commit()
    setup.close()
    return path


@pytest.fixture
def conn(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    c = sqlite3.connect(db_path)
    yield c
    c.close()


# =============================================================================
# Descriptors
# =============================================================================


@pytest.fixture
def test_descriptor() -> SchemaDescriptor:
    return SchemaDescriptor(
        type_name="Test",
        table_name="test_table",
        fields=(
            FieldDescriptor("id", "int", is_id=True),
            FieldDescriptor("name", "str"),
        ),
    )


@pytest.fixture
def users_descriptor() -> SchemaDescriptor:
    return SchemaDescriptor(
        type_name="User",
        table_name="users",
        fields=(
            FieldDescriptor("id", "int", is_id=True),
            FieldDescriptor("name", "str"),
            FieldDescriptor("email", "str"),
            FieldDescriptor("age", "int"),
        ),
    )


# =============================================================================
# Fake driver
# =============================================================================


class FakeCursor:
    """Cursor that records statements and serves canned rows."""

    def __init__(self, owner: FakeConnection) -> None:
        self.owner = owner
        self.description: Any = None
        self._rows: list[tuple] = []
        self.closed = False

    def execute(self, sql: str, params: Any = ()) -> None:
        self.owner.executed.append((sql, tuple(params)))
        if self.owner.fail_with is not None:
            raise self.owner.fail_with
        self.description = [(name,) for name in self.owner.columns]
        self._rows = list(self.owner.rows)

    def fetchone(self) -> tuple | None:
        self.owner.fetched += 1
        return self._rows.pop(0) if self._rows else None

    def fetchall(self) -> list[tuple]:
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    """DB-API connection double; inspect ``executed``, ``commits``, ``rollbacks``."""

    def __init__(self, columns: tuple[str, ...] = (), rows: list[tuple] | None = None) -> None:
        self.columns = columns
        self.rows = rows or []
        self.fail_with: Exception | None = None
        self.executed: list[tuple[str, tuple]] = []
        self.cursors: list[FakeCursor] = []
        self.commits = 0
        self.rollbacks = 0
        self.fetched = 0

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()
