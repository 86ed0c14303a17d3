"""Live-schema verification.

Checks a descriptor against the table it maps to before any operation
runs: the table must exist, every field must have a column, and every
column must have a field (``SELECT *`` rows are turned into records by
column name, so an unmapped column breaks every read).

Columns are discovered through ``cursor.description`` of a zero-row
``SELECT``, which works on any DB-API driver.
"""

from __future__ import annotations

from contextlib import closing
from typing import Any

from crudgen.core.descriptor import SchemaDescriptor
from crudgen.core.dialect import Dialect, SQLiteDialect
from crudgen.core.errors import (
    SchemaMismatch,
    SchemaMismatchError,
    SchemaMismatchKind,
)
from crudgen.core.logging import get_logger
from crudgen.core.protocols import checkout
from crudgen.core.result import Err, Ok, Result

logger = get_logger(__name__)


def _table_exists(conn: Any, table: str, dialect: Dialect) -> bool:
    sql, params = dialect.table_lookup(table)
    with closing(conn.cursor()) as cursor:
        cursor.execute(sql, params)
        return cursor.fetchone() is not None


def _table_columns(conn: Any, table: str) -> list[str]:
    with closing(conn.cursor()) as cursor:
        cursor.execute(f"SELECT * FROM {table} WHERE 1 = 0")
        cursor.fetchall()
        return [desc[0] for desc in cursor.description or ()]


def verify_schema(
    handle: Any,
    descriptor: SchemaDescriptor,
    dialect: Dialect | None = None,
) -> Result[None]:
    """Compare ``descriptor`` with its live table.

    Returns ``Err(SchemaMismatchError)`` listing every mismatch found.
    Store failures while introspecting are reported as ``Err`` as well.
    """
    dialect = dialect or SQLiteDialect()
    table = descriptor.table_name
    mismatches: list[SchemaMismatch] = []

    try:
        with checkout(handle) as conn:
            if not _table_exists(conn, table, dialect):
                mismatches.append(SchemaMismatch(SchemaMismatchKind.MISSING_TABLE, table))
            else:
                columns = _table_columns(conn, table)
                folded = {c.lower() for c in columns}
                fields = {f.lower() for f in descriptor.field_names}
                mismatches.extend(
                    SchemaMismatch(SchemaMismatchKind.MISSING_COLUMN, table, name)
                    for name in descriptor.field_names
                    if name.lower() not in folded
                )
                mismatches.extend(
                    SchemaMismatch(SchemaMismatchKind.UNMAPPED_COLUMN, table, column)
                    for column in columns
                    if column.lower() not in fields
                )
    except Exception as exc:
        logger.warning("schema.check_failed", table=table, error=str(exc))
        return Err(SchemaMismatchError(table, [], cause=exc))

    if mismatches:
        error = SchemaMismatchError(table, mismatches)
        logger.warning("schema.mismatch", table=table, kinds=[k.value for k in error.kinds])
        return Err(error)

    logger.debug("schema.verified", table=table, type_name=descriptor.type_name)
    return Ok(None)


__all__ = ["verify_schema"]
