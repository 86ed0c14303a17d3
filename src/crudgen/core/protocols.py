"""
Protocol definitions for run-time resource handles.

Every bound operation takes its handle as an explicit argument; nothing
is acquired from ambient configuration.  A handle is either:

* a :class:`Connection`, any DB-API 2.0 connection (``sqlite3.Connection``,
  psycopg, SQLAlchemy ``raw_connection()``), used directly; or
* a :class:`ConnectionSource`, which lends out a connection per operation
  (e.g. :class:`~crudgen.core.engine.EngineSource` over a SQLAlchemy pool).

::

    Handle
    ├── Connection          cursor(), commit(), rollback()
    └── ConnectionSource    acquire() -> context manager yielding Connection

Tags:
    protocol, connection, pool, crudgen
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """DB-API 2.0 cursor subset used by bound operations."""

    description: Any

    def execute(self, sql: str, params: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def fetchall(self) -> list: ...

    def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    """DB-API 2.0 connection subset used by bound operations."""

    def cursor(self) -> Any: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class ConnectionSource(Protocol):
    """Lends a connection for the duration of one operation."""

    def acquire(self) -> AbstractContextManager[Connection]: ...


Handle = Connection | ConnectionSource


@contextmanager
def checkout(handle: Any) -> Iterator[Any]:
    """Yield a connection for one unit of work.

    Sources lend (and take back) a connection; plain connections are
    yielded as-is and stay open.
    """
    if isinstance(handle, ConnectionSource):
        with handle.acquire() as conn:
            yield conn
    else:
        yield handle


__all__ = ["Cursor", "Connection", "ConnectionSource", "Handle", "checkout"]
