"""SQL synthesis from validated descriptors.

A pure function of ``(descriptor, dialect)``: the same input always yields
byte-identical text.  Column and parameter order is every non-id field in
declaration order; update binds the id last.

Templates (SQLite placeholders)::

    create        INSERT INTO t (c1, c2) VALUES (?, ?) RETURNING id, c1, c2
    read          SELECT * FROM t WHERE id = ?
    read_one      SELECT * FROM t WHERE id = ?
    read_all      SELECT * FROM t
    update        UPDATE t SET c1 = ?, c2 = ? WHERE id = ?
    delete        DELETE FROM t WHERE id = ?

Identifiers are inserted verbatim; the builder has already checked them.
A descriptor with no non-id fields produces ``INSERT INTO t () VALUES ()
RETURNING id``, which only the store can reject.

Examples:
    >>> from crudgen.core.descriptor import FieldDescriptor, SchemaDescriptor
    >>> d = SchemaDescriptor("User", "users", (
    ...     FieldDescriptor("id", "int", True), FieldDescriptor("name", "str")))
    >>> QuerySynthesizer().update(d).sql
    'UPDATE users SET name = ? WHERE id = ?'
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from crudgen.core.descriptor import SchemaDescriptor
from crudgen.core.dialect import Dialect, SQLiteDialect


class OperationKind(str, Enum):
    CREATE = "create"
    READ = "read"
    READ_ONE = "read_one"
    READ_ALL = "read_all"
    UPDATE = "update"
    DELETE = "delete"


class ResultShape(str, Enum):
    """What a bound operation hands back on success."""

    ONE = "one"  # exactly one record
    LAZY_MANY = "lazy_many"  # lazily produced records
    MANY = "many"  # eagerly materialized records
    NONE = "none"  # success signal only


@dataclass(frozen=True, slots=True)
class SynthesizedQuery:
    """SQL text plus its bind order.

    Attributes:
        kind: Operation the query implements.
        sql: Statement text.
        params: Field names bound, in bind order.
        shape: Result shape of the bound operation.
    """

    kind: OperationKind
    sql: str
    params: tuple[str, ...]
    shape: ResultShape


@dataclass(frozen=True, slots=True)
class QuerySet:
    """All synthesized queries for one descriptor."""

    create: SynthesizedQuery
    read: SynthesizedQuery
    read_one: SynthesizedQuery
    read_all: SynthesizedQuery
    update: SynthesizedQuery
    delete: SynthesizedQuery

    def __iter__(self):
        return iter((self.create, self.read, self.read_one, self.read_all, self.update, self.delete))


class QuerySynthesizer:
    """One routine per operation kind."""

    def __init__(self, dialect: Dialect | None = None) -> None:
        self.dialect: Dialect = dialect or SQLiteDialect()

    def create(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        columns = [f.name for f in descriptor.columns]
        returning = [descriptor.id_field.name, *columns]
        sql = (
            f"INSERT INTO {descriptor.table_name} ({', '.join(columns)}) "
            f"VALUES ({self.dialect.placeholders(len(columns))}) "
            f"RETURNING {', '.join(returning)}"
        )
        return SynthesizedQuery(OperationKind.CREATE, sql, tuple(columns), ResultShape.ONE)

    def read(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        return SynthesizedQuery(
            OperationKind.READ,
            self._select_by_key(descriptor),
            (descriptor.id_field.name,),
            ResultShape.LAZY_MANY,
        )

    def read_one(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        return SynthesizedQuery(
            OperationKind.READ_ONE,
            self._select_by_key(descriptor),
            (descriptor.id_field.name,),
            ResultShape.ONE,
        )

    def read_all(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        return SynthesizedQuery(
            OperationKind.READ_ALL,
            f"SELECT * FROM {descriptor.table_name}",
            (),
            ResultShape.MANY,
        )

    def update(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        columns = [f.name for f in descriptor.columns]
        id_name = descriptor.id_field.name
        assignments = ", ".join(
            f"{name} = {self.dialect.placeholder(i)}" for i, name in enumerate(columns)
        )
        sql = (
            f"UPDATE {descriptor.table_name} SET {assignments} "
            f"WHERE {id_name} = {self.dialect.placeholder(len(columns))}"
        )
        return SynthesizedQuery(
            OperationKind.UPDATE, sql, (*columns, id_name), ResultShape.NONE
        )

    def delete(self, descriptor: SchemaDescriptor) -> SynthesizedQuery:
        id_name = descriptor.id_field.name
        sql = f"DELETE FROM {descriptor.table_name} WHERE {id_name} = {self.dialect.placeholder(0)}"
        return SynthesizedQuery(OperationKind.DELETE, sql, (id_name,), ResultShape.NONE)

    def synthesize(self, descriptor: SchemaDescriptor) -> QuerySet:
        return QuerySet(
            create=self.create(descriptor),
            read=self.read(descriptor),
            read_one=self.read_one(descriptor),
            read_all=self.read_all(descriptor),
            update=self.update(descriptor),
            delete=self.delete(descriptor),
        )

    def _select_by_key(self, descriptor: SchemaDescriptor) -> str:
        return (
            f"SELECT * FROM {descriptor.table_name} "
            f"WHERE {descriptor.id_field.name} = {self.dialect.placeholder(0)}"
        )


def synthesize(descriptor: SchemaDescriptor, dialect: Dialect | None = None) -> QuerySet:
    """Synthesize every query for ``descriptor``."""
    return QuerySynthesizer(dialect).synthesize(descriptor)


__all__ = [
    "OperationKind",
    "ResultShape",
    "SynthesizedQuery",
    "QuerySet",
    "QuerySynthesizer",
    "synthesize",
]
