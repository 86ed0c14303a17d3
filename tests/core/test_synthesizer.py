"""Tests for QuerySynthesizer: SQL templates, bind order, determinism."""

from __future__ import annotations

import pytest

from crudgen.core.descriptor import FieldDescriptor, SchemaDescriptor
from crudgen.core.dialect import OracleDialect, PostgreSQLDialect
from crudgen.core.synthesizer import (
    OperationKind,
    QuerySynthesizer,
    ResultShape,
    synthesize,
)


class TestUsersExample:
    def test_create(self, users_descriptor: SchemaDescriptor) -> None:
        query = QuerySynthesizer().create(users_descriptor)
        assert query.sql == (
            "INSERT INTO users (name, email, age) VALUES (?, ?, ?) RETURNING id, name, email, age"
        )
        assert query.params == ("name", "email", "age")
        assert query.shape is ResultShape.ONE

    def test_update(self, users_descriptor: SchemaDescriptor) -> None:
        query = QuerySynthesizer().update(users_descriptor)
        assert query.sql == "UPDATE users SET name = ?, email = ?, age = ? WHERE id = ?"
        assert query.params == ("name", "email", "age", "id")
        assert query.shape is ResultShape.NONE

    def test_delete(self, users_descriptor: SchemaDescriptor) -> None:
        query = QuerySynthesizer().delete(users_descriptor)
        assert query.sql == "DELETE FROM users WHERE id = ?"
        assert query.params == ("id",)

    def test_reads(self, users_descriptor: SchemaDescriptor) -> None:
        queries = synthesize(users_descriptor)
        assert queries.read.sql == "SELECT * FROM users WHERE id = ?"
        assert queries.read_one.sql == "SELECT * FROM users WHERE id = ?"
        assert queries.read_all.sql == "SELECT * FROM users"
        assert queries.read.shape is ResultShape.LAZY_MANY
        assert queries.read_one.shape is ResultShape.ONE
        assert queries.read_all.shape is ResultShape.MANY
        assert queries.read_all.params == ()


class TestOrdering:
    @pytest.mark.parametrize("k", [0, 1, 2, 5])
    def test_create_has_k_placeholders(self, k: int) -> None:
        fields = (FieldDescriptor("pk", "int", True),) + tuple(
            FieldDescriptor(f"c{i}", "str") for i in range(k)
        )
        query = QuerySynthesizer().create(SchemaDescriptor("T", "t", fields))
        assert query.sql.count("?") == k
        returning = query.sql.split("RETURNING ", 1)[1]
        assert returning.split(", ") == ["pk", *(f"c{i}" for i in range(k))]

    def test_id_not_first(self) -> None:
        descriptor = SchemaDescriptor(
            "T",
            "t",
            (FieldDescriptor("b", "str"), FieldDescriptor("key", "int", True), FieldDescriptor("a", "str")),
        )
        queries = synthesize(descriptor)
        assert queries.create.sql == "INSERT INTO t (b, a) VALUES (?, ?) RETURNING key, b, a"
        assert queries.update.sql == "UPDATE t SET b = ?, a = ? WHERE key = ?"

    def test_no_non_id_fields(self) -> None:
        descriptor = SchemaDescriptor("T", "t", (FieldDescriptor("id", "int", True),))
        assert QuerySynthesizer().create(descriptor).sql == "INSERT INTO t () VALUES () RETURNING id"


class TestDeterminism:
    def test_equal_descriptors_yield_identical_text(self, users_descriptor: SchemaDescriptor) -> None:
        copy = SchemaDescriptor(
            users_descriptor.type_name, users_descriptor.table_name, tuple(users_descriptor.fields)
        )
        assert synthesize(users_descriptor) == synthesize(copy)
        assert [q.sql for q in synthesize(users_descriptor)] == [q.sql for q in synthesize(copy)]


class TestDialects:
    def test_numbered_placeholders_follow_bind_order(self, users_descriptor: SchemaDescriptor) -> None:
        queries = synthesize(users_descriptor, OracleDialect())
        assert queries.create.sql == (
            "INSERT INTO users (name, email, age) VALUES (:1, :2, :3) RETURNING id, name, email, age"
        )
        assert queries.update.sql == "UPDATE users SET name = :1, email = :2, age = :3 WHERE id = :4"
        assert queries.delete.sql == "DELETE FROM users WHERE id = :1"
        assert queries.read_one.sql == "SELECT * FROM users WHERE id = :1"

    def test_format_placeholders(self, users_descriptor: SchemaDescriptor) -> None:
        queries = synthesize(users_descriptor, PostgreSQLDialect())
        assert queries.update.sql == "UPDATE users SET name = %s, email = %s, age = %s WHERE id = %s"


class TestQuerySet:
    def test_iterates_in_operation_order(self, users_descriptor: SchemaDescriptor) -> None:
        kinds = [q.kind for q in synthesize(users_descriptor)]
        assert kinds == [
            OperationKind.CREATE,
            OperationKind.READ,
            OperationKind.READ_ONE,
            OperationKind.READ_ALL,
            OperationKind.UPDATE,
            OperationKind.DELETE,
        ]
