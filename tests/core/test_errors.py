"""Tests for the error hierarchy and store-failure translation."""

from __future__ import annotations

import sqlite3

import pytest

from crudgen.core.errors import (
    AlreadyExistsError,
    CrudError,
    DescriptorError,
    DescriptorErrorKind,
    DescriptorValidationError,
    ErrorCategory,
    ErrorKind,
    InternalError,
    InvalidInputError,
    NotFoundError,
    SchemaMismatch,
    SchemaMismatchError,
    SchemaMismatchKind,
    UnauthorizedError,
    translate_error,
)


class _PgError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class _Psycopg2Error(Exception):
    def __init__(self, message: str, pgcode: str) -> None:
        super().__init__(message)
        self.pgcode = pgcode


class IntegrityError(Exception):
    """Stands in for a third-party driver's IntegrityError."""


class _Wrapped(Exception):
    """Mimics SQLAlchemy's DBAPIError, which keeps the driver error on ``orig``."""

    def __init__(self, orig: Exception) -> None:
        super().__init__(f"(wrapped) {orig}")
        self.orig = orig


def _sqlite_error(sql: str, setup: str | None = None) -> sqlite3.Error:
    conn = sqlite3.connect(":memory:")
    try:
        if setup:
            conn.executescript(setup)
        with pytest.raises(sqlite3.Error) as info:
            conn.execute(sql)
        return info.value
    finally:
        conn.close()


class TestKinds:
    @pytest.mark.parametrize(
        "cls, kind",
        [
            (NotFoundError, ErrorKind.NOT_FOUND),
            (AlreadyExistsError, ErrorKind.ALREADY_EXISTS),
            (InvalidInputError, ErrorKind.INVALID_INPUT),
            (UnauthorizedError, ErrorKind.UNAUTHORIZED),
            (InternalError, ErrorKind.INTERNAL),
        ],
    )
    def test_run_time_kinds(self, cls: type[CrudError], kind: ErrorKind) -> None:
        error = cls("msg")
        assert error.kind is kind
        assert isinstance(error, CrudError)

    def test_generation_time_errors_have_no_kind(self) -> None:
        error = SchemaMismatchError("users", [])
        assert error.kind is None
        assert error.category is ErrorCategory.VALIDATION


class TestContext:
    def test_with_context_is_fluent(self) -> None:
        error = NotFoundError("no row").with_context(table="users", operation="read_one", key=1)
        assert error.context.table == "users"
        assert error.context.operation == "read_one"
        assert error.context.metadata == {"key": 1}

    def test_to_dict(self) -> None:
        cause = ValueError("raw")
        error = InternalError("boom", cause=cause).with_context(table="users")
        data = error.to_dict()
        assert data == {
            "error_type": "InternalError",
            "message": "boom",
            "category": "DATABASE",
            "kind": "INTERNAL",
            "context": {"table": "users"},
            "cause": "raw",
        }
        assert error.__cause__ is cause


class TestDescriptorValidationError:
    def test_lists_every_violation(self) -> None:
        violations = [
            DescriptorError(DescriptorErrorKind.DUPLICATE_TABLE_ANNOTATION, "Test", "two tables"),
            DescriptorError(DescriptorErrorKind.DUPLICATE_ID_FIELD, "Test", "two ids", "other_id"),
        ]
        error = DescriptorValidationError("Test", violations)
        assert error.kinds == [
            DescriptorErrorKind.DUPLICATE_TABLE_ANNOTATION,
            DescriptorErrorKind.DUPLICATE_ID_FIELD,
        ]
        assert "2 violation(s)" in error.message
        assert "Test.other_id" in error.message
        assert error.to_dict()["violations"][1] == {
            "kind": "DuplicateIdField",
            "field": "other_id",
            "message": "two ids",
        }


class TestSchemaMismatchError:
    def test_summary(self) -> None:
        error = SchemaMismatchError(
            "users", [SchemaMismatch(SchemaMismatchKind.MISSING_COLUMN, "users", "location")]
        )
        assert error.kinds == [SchemaMismatchKind.MISSING_COLUMN]
        assert "MissingColumn: users.location" in error.message

    def test_introspection_failure(self) -> None:
        error = SchemaMismatchError("users", [], cause=RuntimeError("connection refused"))
        assert error.message == "Could not inspect table users: connection refused"


class TestTranslateSqlite:
    def test_unique(self) -> None:
        exc = _sqlite_error(
            "INSERT INTO t VALUES (1)", "CREATE TABLE t (v INTEGER UNIQUE); INSERT INTO t VALUES (1);"
        )
        assert isinstance(translate_error(exc), AlreadyExistsError)

    def test_primary_key(self) -> None:
        exc = _sqlite_error(
            "INSERT INTO t VALUES (1)", "CREATE TABLE t (id INTEGER PRIMARY KEY); INSERT INTO t VALUES (1);"
        )
        assert isinstance(translate_error(exc), AlreadyExistsError)

    def test_not_null_is_internal(self) -> None:
        exc = _sqlite_error("INSERT INTO t VALUES (NULL)", "CREATE TABLE t (v TEXT NOT NULL);")
        assert isinstance(translate_error(exc), InternalError)

    def test_missing_table_is_internal(self) -> None:
        error = translate_error(_sqlite_error("SELECT * FROM nope"))
        assert isinstance(error, InternalError)
        assert "no such table" in error.message


class TestTranslateOtherDrivers:
    def test_postgres_unique(self) -> None:
        assert isinstance(translate_error(_PgError("dup", "23505")), AlreadyExistsError)

    def test_psycopg2_unique(self) -> None:
        assert isinstance(translate_error(_Psycopg2Error("dup", "23505")), AlreadyExistsError)

    def test_postgres_privilege(self) -> None:
        assert isinstance(translate_error(_PgError("denied", "42501")), UnauthorizedError)

    def test_mysql_duplicate_entry(self) -> None:
        exc = IntegrityError(1062, "Duplicate entry 'a@b' for key 'email'")
        assert isinstance(translate_error(exc), AlreadyExistsError)

    def test_errno_1062_outside_integrity_error_is_internal(self) -> None:
        assert isinstance(translate_error(RuntimeError(1062, "retry budget")), InternalError)

    def test_integrity_message_signal(self) -> None:
        exc = IntegrityError('duplicate key value violates unique constraint "users_email_key"')
        assert isinstance(translate_error(exc), AlreadyExistsError)

    def test_unique_word_outside_integrity_error_is_internal(self) -> None:
        assert isinstance(translate_error(RuntimeError("UNIQUE index rebuilt")), InternalError)

    def test_permission_error(self) -> None:
        assert isinstance(translate_error(PermissionError("read-only")), UnauthorizedError)

    def test_unwraps_orig(self) -> None:
        wrapped = _Wrapped(_PgError("dup", "23505"))
        error = translate_error(wrapped)
        assert isinstance(error, AlreadyExistsError)
        assert error.message == "dup"
        assert error.cause is wrapped

    def test_crud_error_passes_through(self) -> None:
        error = NotFoundError("x")
        assert translate_error(error) is error

    def test_empty_message_uses_type_name(self) -> None:
        assert translate_error(TimeoutError()).message == "TimeoutError"
