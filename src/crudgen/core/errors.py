"""
Structured error types for crudgen.

Two regimes share one base class:

- **Generation time:** structural problems in an annotated record type
  (:class:`DescriptorValidationError`) or a mismatch between a descriptor
  and a live table (:class:`SchemaMismatchError`).  Fatal to code generation.
- **Run time:** failures while talking to the data store, translated into a
  closed set of caller-facing kinds and returned inside ``Err``.

Manifesto:
    - **Closed taxonomy:** Callers branch on five run-time kinds, never on
      driver-specific exception classes
    - **Every violation at once:** Descriptor errors carry the full list
    - **Rich context:** Errors carry table, operation and field metadata
    - **Error chaining:** The raw store failure is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        CrudError                                 │
        │            (category, kind, context, cause)                      │
        ├─────────────────────────────────────────────────────────────────┤
        │  Run time (ErrorKind)              Generation time (VALIDATION)  │
        │  ────────────────────              ────────────────────────────  │
        │  NotFoundError                     DescriptorValidationError     │
        │  AlreadyExistsError                  └─ violations: [DescriptorError]
        │  InvalidInputError                 SchemaMismatchError           │
        │  UnauthorizedError                   └─ mismatches: [SchemaMismatch]
        │  InternalError                                                   │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> err = NotFoundError("no row").with_context(table="users", operation="read_one")
    >>> err.kind
    <ErrorKind.NOT_FOUND: 'NOT_FOUND'>
    >>> err.context.table
    'users'

Tags:
    error-handling, exception-hierarchy, error-context, crudgen
"""

from __future__ import annotations

import dataclasses
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification and log routing."""

    DATABASE = "DATABASE"  # Store-level failures
    VALIDATION = "VALIDATION"  # Descriptor / input violations
    AUTH = "AUTH"  # Access-control rejections
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


class ErrorKind(str, Enum):
    """The closed set of run-time error kinds surfaced to callers."""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_INPUT = "INVALID_INPUT"
    UNAUTHORIZED = "UNAUTHORIZED"
    INTERNAL = "INTERNAL"


class DescriptorErrorKind(str, Enum):
    """Structural violations found while building a descriptor."""

    UNSUPPORTED_SHAPE = "UnsupportedShape"
    DUPLICATE_TABLE_ANNOTATION = "DuplicateTableAnnotation"
    MISSING_TABLE_ANNOTATION = "MissingTableAnnotation"
    MISSING_TABLE_NAME = "MissingTableName"
    DUPLICATE_ID_FIELD = "DuplicateIdField"
    MISSING_ID_FIELD = "MissingIdField"
    UNNAMED_FIELD = "UnnamedField"
    DUPLICATE_FIELD_NAME = "DuplicateFieldName"
    INVALID_IDENTIFIER = "InvalidIdentifier"


class SchemaMismatchKind(str, Enum):
    """Differences between a descriptor and the live table."""

    MISSING_TABLE = "MissingTable"
    MISSING_COLUMN = "MissingColumn"
    UNMAPPED_COLUMN = "UnmappedColumn"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        type_name: Record type the error concerns
        table: Target table
        operation: Run-time operation name (``create``, ``read_one``, ...)
        field: Offending field, if any
        metadata: Additional key-value pairs
    """

    type_name: str | None = None
    table: str | None = None
    operation: str | None = None
    field: str | None = None

    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["type_name", "table", "operation", "field"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CrudError(Exception):
    """
    Base exception for all crudgen errors.

    Subclasses set ``default_category`` and, for run-time errors, ``kind``.

    Examples:
        >>> error = CrudError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'CrudError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    # Run-time kind; None for generation-time errors
    kind: ErrorKind | None = None

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CrudError:
        """
        Add context to this error (fluent API).

        Usage:
            return Err(NotFoundError("no row").with_context(table="users"))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.kind is not None:
            result["kind"] = self.kind.value
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RUN-TIME ERRORS (ErrorModel)
# =============================================================================


class NotFoundError(CrudError):
    """A read-one-by-key found no matching row."""

    default_category = ErrorCategory.DATABASE
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(CrudError):
    """A create violated a uniqueness constraint."""

    default_category = ErrorCategory.DATABASE
    kind = ErrorKind.ALREADY_EXISTS


class InvalidInputError(CrudError):
    """A value failed a check enforceable before reaching the store."""

    default_category = ErrorCategory.VALIDATION
    kind = ErrorKind.INVALID_INPUT


class UnauthorizedError(CrudError):
    """The store's access-control layer rejected the operation."""

    default_category = ErrorCategory.AUTH
    kind = ErrorKind.UNAUTHORIZED


class InternalError(CrudError):
    """Any other store-level failure; ``message`` carries the diagnostic text."""

    default_category = ErrorCategory.DATABASE
    kind = ErrorKind.INTERNAL


# =============================================================================
# GENERATION-TIME ERRORS
# =============================================================================


@dataclass(frozen=True, slots=True)
class DescriptorError:
    """One structural violation in a raw type definition."""

    kind: DescriptorErrorKind
    type_name: str
    message: str
    field: str | None = None

    def __str__(self) -> str:
        where = f"{self.type_name}.{self.field}" if self.field else self.type_name
        return f"{self.kind.value} ({where}): {self.message}"


class DescriptorValidationError(CrudError):
    """
    Every violation found while building one descriptor.

    ``violations`` is in discovery order; ``violations[0]`` is what a
    first-failure reporter would have shown.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(self, type_name: str, violations: list[DescriptorError]):
        self.type_name = type_name
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations)
        super().__init__(
            f"Invalid record type {type_name} ({len(self.violations)} violation(s)): {summary}",
            context=ErrorContext(type_name=type_name),
        )

    @property
    def kinds(self) -> list[DescriptorErrorKind]:
        return [v.kind for v in self.violations]

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["violations"] = [
            {"kind": v.kind.value, "field": v.field, "message": v.message}
            for v in self.violations
        ]
        return result


@dataclass(frozen=True, slots=True)
class SchemaMismatch:
    """One difference between a descriptor and its live table."""

    kind: SchemaMismatchKind
    table: str
    column: str | None = None

    def __str__(self) -> str:
        if self.column is None:
            return f"{self.kind.value}: {self.table}"
        return f"{self.kind.value}: {self.table}.{self.column}"


class SchemaMismatchError(CrudError):
    """The live database does not match the descriptor."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, table: str, mismatches: list[SchemaMismatch], cause: Exception | None = None):
        self.mismatches = list(mismatches)
        if not self.mismatches and cause is not None:
            message = f"Could not inspect table {table}: {cause}"
        else:
            summary = "; ".join(str(m) for m in self.mismatches)
            message = f"Table {table} does not match descriptor: {summary}"
        super().__init__(
            message,
            context=ErrorContext(table=table),
            cause=cause,
        )

    @property
    def kinds(self) -> list[SchemaMismatchKind]:
        return [m.kind for m in self.mismatches]


# =============================================================================
# TRANSLATION
# =============================================================================

# SQLite extended result codes
_SQLITE_AUTH = 23
_SQLITE_CONSTRAINT_PRIMARYKEY = 1555
_SQLITE_CONSTRAINT_UNIQUE = 2067

_SQLSTATE_UNIQUE_VIOLATION = "23505"
_SQLSTATE_INSUFFICIENT_PRIVILEGE = "42501"
_MYSQL_DUPLICATE_ENTRY = 1062

_UNIQUE_SIGNALS = ("UNIQUE", "duplicate key")


def _sqlstate(exc: BaseException) -> str | None:
    # psycopg2 exposes pgcode, psycopg 3 and asyncpg expose sqlstate
    for attr in ("sqlstate", "pgcode"):
        value = getattr(exc, attr, None)
        if isinstance(value, str):
            return value
    return None


def _is_unique_violation(exc: BaseException) -> bool:
    if getattr(exc, "sqlite_errorcode", None) in (
        _SQLITE_CONSTRAINT_UNIQUE,
        _SQLITE_CONSTRAINT_PRIMARYKEY,
    ):
        return True
    if _sqlstate(exc) == _SQLSTATE_UNIQUE_VIOLATION:
        return True
    if not (isinstance(exc, sqlite3.IntegrityError) or type(exc).__name__ == "IntegrityError"):
        return False
    # PyMySQL and mysqlclient carry the errno as the first argument
    args = getattr(exc, "args", ())
    if args and args[0] == _MYSQL_DUPLICATE_ENTRY:
        return True
    return any(signal in str(exc) for signal in _UNIQUE_SIGNALS)


def _is_access_denied(exc: BaseException) -> bool:
    if isinstance(exc, PermissionError):
        return True
    if getattr(exc, "sqlite_errorcode", None) == _SQLITE_AUTH:
        return True
    return _sqlstate(exc) == _SQLSTATE_INSUFFICIENT_PRIVILEGE


def translate_error(exc: Exception) -> CrudError:
    """Map an underlying store failure to exactly one run-time kind.

    SQLAlchemy wraps DB-API errors; the original is read from ``.orig``.
    """
    if isinstance(exc, CrudError):
        return exc

    raw = getattr(exc, "orig", None) or exc
    if _is_unique_violation(raw):
        return AlreadyExistsError(str(raw), cause=exc)
    if _is_access_denied(raw):
        return UnauthorizedError(str(raw), cause=exc)
    return InternalError(str(raw) or type(raw).__name__, cause=exc)


__all__ = [
    "ErrorCategory",
    "ErrorKind",
    "ErrorContext",
    "CrudError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidInputError",
    "UnauthorizedError",
    "InternalError",
    "DescriptorErrorKind",
    "DescriptorError",
    "DescriptorValidationError",
    "SchemaMismatchKind",
    "SchemaMismatch",
    "SchemaMismatchError",
    "translate_error",
]
