"""Descriptor extraction and validation.

:class:`DescriptorBuilder` turns a :class:`RawTypeDefinition` into a
validated :class:`SchemaDescriptor`.  Every check runs independently and
all violations found in one pass are returned together, so a type with a
duplicate table annotation *and* no id field reports both.

Manifesto:
    Structural problems belong to generation time.  A descriptor that
    builds is guaranteed to synthesize well-formed SQL; a type that does
    not build never reaches run time.

    - **All violations at once:** no fix-one-rebuild-repeat loop
    - **Context on every violation:** type name and offending field
    - **Order preserved:** fields keep declaration order, no dedup

Architecture:
    ::

        RawTypeDefinition ──► _check_shape ──(sum/union)──► Err([UnsupportedShape])
                                   │
                                   ├─► _check_table        Duplicate/Missing table,
                                   │                       MissingTableName, identifier
                                   ├─► _check_fields       UnnamedField, DuplicateFieldName,
                                   │                       identifier
                                   └─► _check_id           DuplicateIdField, MissingIdField
                                   │
                        violations? ──yes──► Err(DescriptorValidationError)
                                   │
                                   no
                                   ▼
                          Ok(SchemaDescriptor)

Examples:
    >>> from crudgen.core.descriptor import RawAnnotation, RawField, RawTypeDefinition
    >>> raw = RawTypeDefinition(
    ...     name="User",
    ...     annotations=[RawAnnotation(name="crud_table", value="users")],
    ...     fields=[RawField(name="id", type="int", annotations=["crud_id"]),
    ...             RawField(name="name", type="str")],
    ... )
    >>> DescriptorBuilder().build(raw).unwrap().table_name
    'users'

Tags:
    descriptor, validation, code-generation, crudgen
"""

from __future__ import annotations

import re
from typing import Any

from crudgen.core.annotations import describe
from crudgen.core.descriptor import (
    FieldDescriptor,
    RawTypeDefinition,
    SchemaDescriptor,
    TypeShape,
)
from crudgen.core.errors import (
    DescriptorError,
    DescriptorErrorKind,
    DescriptorValidationError,
)
from crudgen.core.logging import get_logger
from crudgen.core.result import Err, Ok, Result

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(name: str, *, qualified: bool = False) -> bool:
    """Plain SQL identifier; ``schema.table`` allowed when ``qualified``."""
    parts = name.split(".") if qualified else [name]
    return len(parts) <= 2 and all(_IDENTIFIER.match(p) for p in parts)


class DescriptorBuilder:
    """Builds validated descriptors from raw type definitions.

    Stateless; one instance can build any number of descriptors.
    """

    def build(self, raw: RawTypeDefinition) -> Result[SchemaDescriptor]:
        violations: list[DescriptorError] = []

        def report(kind: DescriptorErrorKind, message: str, field: str | None = None) -> None:
            violations.append(DescriptorError(kind, raw.name, message, field))

        if raw.shape in (TypeShape.SUM, TypeShape.UNION):
            report(
                DescriptorErrorKind.UNSUPPORTED_SHAPE,
                f"only record types are supported, got a {raw.shape.value} type",
            )
            return self._reject(raw, violations)

        table_name = self._check_table(raw, report)
        self._check_fields(raw, report)
        self._check_id(raw, report)

        if violations:
            return self._reject(raw, violations)

        descriptor = SchemaDescriptor(
            type_name=raw.name,
            table_name=table_name,
            fields=tuple(
                FieldDescriptor(name=f.name, type=f.type, is_id=f.is_id) for f in raw.fields
            ),
        )
        logger.debug(
            "descriptor.built",
            type_name=descriptor.type_name,
            table=descriptor.table_name,
            fields=len(descriptor.fields),
        )
        return Ok(descriptor)

    # -- Checks ------------------------------------------------------------

    def _check_table(self, raw: RawTypeDefinition, report: Any) -> str:
        tables = raw.table_annotations()
        if not tables:
            report(
                DescriptorErrorKind.MISSING_TABLE_ANNOTATION,
                'the type must be annotated with crud_table("table_name")',
            )
            return ""
        if len(tables) > 1:
            report(
                DescriptorErrorKind.DUPLICATE_TABLE_ANNOTATION,
                f"only one crud_table annotation is allowed, found {len(tables)}",
            )

        name = tables[0].value
        if not name:
            report(DescriptorErrorKind.MISSING_TABLE_NAME, "crud_table annotation has no table name")
            return ""
        if not is_identifier(name, qualified=True):
            report(DescriptorErrorKind.INVALID_IDENTIFIER, f"invalid table name {name!r}")
        return name

    def _check_fields(self, raw: RawTypeDefinition, report: Any) -> None:
        seen: set[str] = set()
        for position, field in enumerate(raw.fields):
            if not field.name:
                report(
                    DescriptorErrorKind.UNNAMED_FIELD,
                    f"member at position {position} has no name; all fields must be named",
                )
                continue
            if field.name in seen:
                report(
                    DescriptorErrorKind.DUPLICATE_FIELD_NAME,
                    "field name declared more than once",
                    field.name,
                )
            seen.add(field.name)
            if not is_identifier(field.name):
                report(
                    DescriptorErrorKind.INVALID_IDENTIFIER,
                    "field name is not a valid column identifier",
                    field.name,
                )

    def _check_id(self, raw: RawTypeDefinition, report: Any) -> None:
        id_fields = [f for f in raw.fields if f.is_id]
        if not id_fields:
            report(
                DescriptorErrorKind.MISSING_ID_FIELD,
                "exactly one field must be marked crud_id",
            )
        for extra in id_fields[1:]:
            report(
                DescriptorErrorKind.DUPLICATE_ID_FIELD,
                "only one field can be marked crud_id",
                extra.name,
            )

    def _reject(
        self, raw: RawTypeDefinition, violations: list[DescriptorError]
    ) -> Result[SchemaDescriptor]:
        error = DescriptorValidationError(raw.name, violations)
        logger.warning(
            "descriptor.rejected",
            type_name=raw.name,
            kinds=[k.value for k in error.kinds],
        )
        return Err(error)


def build_descriptor(obj: Any) -> Result[SchemaDescriptor]:
    """Describe ``obj`` (annotated class or raw definition) and build it."""
    return DescriptorBuilder().build(describe(obj))


__all__ = ["DescriptorBuilder", "build_descriptor", "is_identifier"]
