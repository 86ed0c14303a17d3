"""SQLAlchemy-backed connection source.

:class:`EngineSource` adapts a SQLAlchemy ``Engine`` to the
:class:`~crudgen.core.protocols.ConnectionSource` protocol.  Each
operation checks a DB-API connection out of the engine's pool and returns
it afterwards, so concurrent callers share the pool's discipline.

Usage::

    from crudgen.core.engine import create_engine_source

    source = create_engine_source("sqlite:///app.db")
    ops.read_all(source)
    source.dispose()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine

from crudgen.core.dialect import Dialect, get_dialect


class EngineSource:
    """Adapter: SQLAlchemy ``Engine`` pool → ``ConnectionSource``."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @contextmanager
    def acquire(self) -> Iterator[Any]:
        conn = self.engine.raw_connection()
        try:
            yield conn
        finally:
            # Returns the DB-API connection to the pool
            conn.close()

    @property
    def dialect(self) -> Dialect:
        """crudgen dialect matching the engine's backend."""
        return get_dialect(self.engine.dialect.name)

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"EngineSource({self.engine.url!r})"


def create_engine_source(
    url: str,
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    **kwargs: Any,
) -> EngineSource:
    """Create an :class:`EngineSource` with sane defaults.

    Pool parameters are ignored for SQLite.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return EngineSource(engine)

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow

    return EngineSource(_sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs))


__all__ = ["EngineSource", "create_engine_source"]
