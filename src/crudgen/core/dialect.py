"""Bind-placeholder dialects.

Synthesized statements differ between backends only in their bind
placeholders, so a dialect is little more than a placeholder renderer
plus the catalog query :func:`~crudgen.core.schema_check.verify_schema`
uses to find a table.

::

    style       dialects                      placeholder(0), placeholder(1)
    ─────────   ───────────────────────────   ─────────────────────────────
    qmark       sqlite                        ?, ?
    format      postgresql, mysql/mariadb     %s, %s
    numeric     oracle                        :1, :2

Numbered styles use the 0-based bind position, so ``placeholder(i)``
must be called with the position the value is bound at.  Registry keys
match SQLAlchemy's ``engine.dialect.name``.

Examples:
    >>> get_dialect("sqlite").placeholders(3)
    '?, ?, ?'
    >>> get_dialect("oracle").placeholder(2)
    ':3'

Tags:
    dialect, sql, placeholders, crudgen
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """What the synthesizer and schema check need from a backend."""

    @property
    def name(self) -> str: ...

    def placeholder(self, index: int) -> str:
        """Placeholder for the value bound at 0-based position ``index``."""
        ...

    def placeholders(self, count: int, start: int = 0) -> str:
        """``count`` comma-separated placeholders for positions ``start``..."""
        ...

    def table_lookup(self, table: str) -> tuple[str, tuple[str, ...]]:
        """Catalog query and binds for ``table`` (optionally ``schema.table``).

        The query returns a row if the table exists.
        """
        ...


class _PositionalDialect:
    """Shared rendering; subclasses set ``name``, ``marker`` and the catalog queries."""

    name = ""
    marker = "?"
    catalog_query = ""
    schema_catalog_query = ""

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return self.marker

    def placeholders(self, count: int, start: int = 0) -> str:
        return ", ".join(self.placeholder(start + offset) for offset in range(count))

    def table_lookup(self, table: str) -> tuple[str, tuple[str, ...]]:
        schema, _, bare = table.rpartition(".")
        if schema:
            return self.schema_catalog_query, (schema, bare)
        return self.catalog_query, (bare,)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect(_PositionalDialect):
    """``?`` placeholders (sqlite3)."""

    name = "sqlite"

    def table_lookup(self, table: str) -> tuple[str, tuple[str, ...]]:
        # The schema part names an attached database, which cannot be bound
        schema, _, bare = table.rpartition(".")
        master = f"{schema}.sqlite_master" if schema else "sqlite_master"
        return f"SELECT name FROM {master} WHERE type = 'table' AND name = ?", (bare,)


class PostgreSQLDialect(_PositionalDialect):
    """``%s`` placeholders (psycopg)."""

    name = "postgresql"
    marker = "%s"
    catalog_query = (
        "SELECT 1 FROM information_schema.tables "
        "WHERE table_schema = current_schema() AND table_name = %s"
    )
    schema_catalog_query = (
        "SELECT 1 FROM information_schema.tables WHERE table_schema = %s AND table_name = %s"
    )


class MySQLDialect(_PositionalDialect):
    """``%s`` placeholders (PyMySQL, mysqlclient)."""

    name = "mysql"
    marker = "%s"
    catalog_query = (
        "SELECT 1 FROM information_schema.tables "
        "WHERE table_schema = DATABASE() AND table_name = %s"
    )
    schema_catalog_query = (
        "SELECT 1 FROM information_schema.tables WHERE table_schema = %s AND table_name = %s"
    )


class OracleDialect(_PositionalDialect):
    """``:1, :2`` numbered placeholders (python-oracledb)."""

    name = "oracle"
    catalog_query = "SELECT 1 FROM user_tables WHERE table_name = UPPER(:1)"
    schema_catalog_query = (
        "SELECT 1 FROM all_tables WHERE owner = UPPER(:1) AND table_name = UPPER(:2)"
    )

    def placeholder(self, index: int) -> str:
        return f":{index + 1}"


_REGISTRY: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),
    "oracle": OracleDialect(),
}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by (case-insensitive) name.

    Raises:
        ValueError: For an unregistered name.
    """
    try:
        return _REGISTRY[name.lower()]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY))
        raise ValueError(f"Unknown dialect {name!r} (known: {known})") from None


def register_dialect(name: str, dialect: Dialect) -> None:
    """Make ``dialect`` available to :func:`get_dialect` and the CLI ``--dialect``."""
    _REGISTRY[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "OracleDialect",
    "get_dialect",
    "register_dialect",
]
