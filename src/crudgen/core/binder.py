"""Run-time binding of synthesized queries.

:class:`OperationBinder` wires a descriptor's :class:`QuerySet` into a
:class:`BoundOperations` object whose methods execute against an
externally supplied handle.  Every method returns a ``Result``; store
failures are translated into the five-kind ErrorModel and never raised.

Manifesto:
    The generated SQL fixes the bind order; the binder's only job is to
    feed values in that order, shape the rows that come back, and keep
    the shared handle healthy: cursors closed, writes committed or
    rolled back, pooled connections returned.

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────────┐
        │                     BoundOperations                            │
        │                                                                │
        │  create(h, *values)  → Result[R]          INSERT … RETURNING    │
        │  read(h, key)        → Iterator[Result[R]] lazy SELECT          │
        │  read_one(h, key)    → Result[R]          0 → NotFound, >1 → Internal
        │  read_all(h)         → Result[list[R]]    eager SELECT          │
        │  update(h, record)   → Result[None]       id bound last         │
        │  delete(h, key)      → Result[None]                             │
        └───────────────────────────────────────────────────────────────┘
                 │ handle: Connection | ConnectionSource
                 ▼
        checkout() ── acquire()/release per operation, or the connection itself

Examples:
    >>> import sqlite3
    >>> conn = sqlite3.connect(":memory:")
    >>> _ = conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    >>> ops = OperationBinder().bind(descriptor)          # doctest: +SKIP
    >>> ops.create(conn, "Debbie").unwrap()               # doctest: +SKIP
    {'id': 1, 'name': 'Debbie'}

Tags:
    binder, runtime, data-access, crudgen
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import closing
from typing import Any, Generic, TypeVar

from crudgen.core.builder import build_descriptor
from crudgen.core.descriptor import SchemaDescriptor
from crudgen.core.dialect import Dialect
from crudgen.core.errors import (
    CrudError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    translate_error,
)
from crudgen.core.logging import get_logger
from crudgen.core.protocols import checkout
from crudgen.core.result import Err, Ok, Result
from crudgen.core.synthesizer import QuerySet, QuerySynthesizer, SynthesizedQuery

logger = get_logger(__name__)

R = TypeVar("R")

_MISSING = object()


def _column_names(cursor: Any) -> list[str]:
    return [desc[0] for desc in cursor.description or ()]


class BoundOperations(Generic[R]):
    """Callable CRUD operations for one descriptor.

    Parameters:
        descriptor: Validated descriptor the queries were synthesized from.
        queries: Synthesized queries (bind order included).
        record_factory: Called as ``record_factory(**row)`` for every row;
            defaults to ``dict``.
    """

    def __init__(
        self,
        descriptor: SchemaDescriptor,
        queries: QuerySet,
        record_factory: Callable[..., R] | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.queries = queries
        self.record_factory: Callable[..., Any] = record_factory or dict

    # -- Operations --------------------------------------------------------

    def create(self, handle: Any, *values: Any) -> Result[R]:
        """Insert one row from non-id values in declaration order."""
        query = self.queries.create
        if len(values) != len(query.params):
            return self._fail(
                query,
                InvalidInputError(
                    f"create expects {len(query.params)} value(s) "
                    f"({', '.join(query.params)}), got {len(values)}"
                ),
            )

        def insert(conn: Any) -> R:
            with closing(conn.cursor()) as cursor:
                cursor.execute(query.sql, tuple(values))
                # Drain RETURNING so the statement is finished before commit
                rows = cursor.fetchall()
                if not rows:
                    raise InternalError("create returned no row")
                return self._record(_column_names(cursor), rows[0])

        return self._run(query, handle, insert, write=True)

    def read(self, handle: Any, key: Any) -> Iterator[Result[R]]:
        """Lazily yield one ``Result`` per row matching ``key``.

        Nothing runs until the first element is requested.  Closing the
        iterator early releases the cursor and connection.
        """
        query = self.queries.read
        if key is None:
            yield self._fail(query, InvalidInputError("key must not be None"))
            return

        try:
            with checkout(handle) as conn:
                try:
                    with closing(conn.cursor()) as cursor:
                        cursor.execute(query.sql, (key,))
                        names = _column_names(cursor)
                        self._log_executed(query)
                        while (row := cursor.fetchone()) is not None:
                            yield Ok(self._record(names, row))
                except Exception as exc:
                    self._rollback_failed(conn, query, exc)
                    raise
        except Exception as exc:
            yield self._fail(query, exc)

    def read_one(self, handle: Any, key: Any) -> Result[R]:
        """Exactly one row: ``NotFoundError`` if none, ``InternalError`` if several."""
        query = self.queries.read_one
        if key is None:
            return self._fail(query, InvalidInputError("key must not be None"))

        def select_one(conn: Any) -> R:
            with closing(conn.cursor()) as cursor:
                cursor.execute(query.sql, (key,))
                first = cursor.fetchone()
                if first is None:
                    raise NotFoundError(f"no row in {self.descriptor.table_name} with key {key!r}")
                if cursor.fetchone() is not None:
                    raise InternalError(
                        f"multiple rows in {self.descriptor.table_name} with key {key!r}"
                    )
                return self._record(_column_names(cursor), first)

        return self._run(query, handle, select_one)

    def read_all(self, handle: Any) -> Result[list[R]]:
        """Every row of the table, materialized."""
        query = self.queries.read_all

        def select_all(conn: Any) -> list[R]:
            with closing(conn.cursor()) as cursor:
                cursor.execute(query.sql)
                names = _column_names(cursor)
                return [self._record(names, row) for row in cursor.fetchall()]

        return self._run(query, handle, select_all)

    def update(self, handle: Any, record: Any) -> Result[None]:
        """Write every non-id field of ``record``; affected-row count is not reported."""
        query = self.queries.update
        values = [self._field_value(record, name) for name in query.params]
        missing = [name for name, value in zip(query.params, values) if value is _MISSING]
        if missing:
            return self._fail(
                query, InvalidInputError(f"record is missing field(s): {', '.join(missing)}")
            )
        if values[-1] is None:
            return self._fail(query, InvalidInputError("key must not be None"))

        return self._run(query, handle, self._executor(query, tuple(values)), write=True)

    def delete(self, handle: Any, key: Any) -> Result[None]:
        """Delete rows matching ``key``; affected-row count is not reported."""
        query = self.queries.delete
        if key is None:
            return self._fail(query, InvalidInputError("key must not be None"))
        return self._run(query, handle, self._executor(query, (key,)), write=True)

    # -- Internals ---------------------------------------------------------

    def _executor(self, query: SynthesizedQuery, params: tuple) -> Callable[[Any], None]:
        def execute(conn: Any) -> None:
            with closing(conn.cursor()) as cursor:
                cursor.execute(query.sql, params)

        return execute

    def _run(
        self,
        query: SynthesizedQuery,
        handle: Any,
        work: Callable[[Any], Any],
        *,
        write: bool = False,
    ) -> Result[Any]:
        try:
            with checkout(handle) as conn:
                try:
                    value = work(conn)
                    if write:
                        conn.commit()
                except Exception as exc:
                    self._rollback_failed(conn, query, exc, write=write)
                    raise
        except Exception as exc:
            return self._fail(query, exc)

        self._log_executed(query)
        return Ok(value)

    def _rollback_failed(
        self, conn: Any, query: SynthesizedQuery, exc: Exception, *, write: bool = False
    ) -> None:
        # A failed SELECT leaves psycopg and oracledb handles in an aborted
        # transaction. Row-count errors raised after a successful read do not.
        if write or not isinstance(exc, CrudError):
            self._rollback(conn, query)

    def _rollback(self, conn: Any, query: SynthesizedQuery) -> None:
        try:
            conn.rollback()
        except Exception as exc:
            logger.warning(
                "operation.rollback_failed",
                operation=query.kind.value,
                table=self.descriptor.table_name,
                error=str(exc),
            )

    def _record(self, names: Sequence[str], row: Any) -> R:
        return self.record_factory(**dict(zip(names, row)))

    @staticmethod
    def _field_value(record: Any, name: str) -> Any:
        if isinstance(record, Mapping):
            return record.get(name, _MISSING)
        return getattr(record, name, _MISSING)

    def _fail(self, query: SynthesizedQuery, exc: Exception) -> Err:
        error: CrudError = translate_error(exc)
        error.with_context(
            type_name=self.descriptor.type_name,
            table=self.descriptor.table_name,
            operation=query.kind.value,
        )
        logger.warning(
            "operation.failed",
            operation=query.kind.value,
            table=self.descriptor.table_name,
            kind=error.kind.value if error.kind else None,
            error=error,
        )
        return Err(error)

    def _log_executed(self, query: SynthesizedQuery) -> None:
        logger.debug(
            "operation.executed",
            operation=query.kind.value,
            table=self.descriptor.table_name,
        )

    def __repr__(self) -> str:
        return f"BoundOperations({self.descriptor.type_name!r}, table={self.descriptor.table_name!r})"


class OperationBinder:
    """Synthesizes and binds the operations for a descriptor."""

    def __init__(self, dialect: Dialect | None = None) -> None:
        self.synthesizer = QuerySynthesizer(dialect)

    def bind(
        self,
        descriptor: SchemaDescriptor,
        record_factory: Callable[..., R] | None = None,
    ) -> BoundOperations[R]:
        return BoundOperations(descriptor, self.synthesizer.synthesize(descriptor), record_factory)


def bind_record(record_type: type[R], dialect: Dialect | None = None) -> Result[BoundOperations[R]]:
    """Build, synthesize and bind an annotated record type in one step.

    Rows come back as ``record_type(**row)``.
    """
    return build_descriptor(record_type).map(
        lambda descriptor: OperationBinder(dialect).bind(descriptor, record_type)
    )


__all__ = ["BoundOperations", "OperationBinder", "bind_record"]
