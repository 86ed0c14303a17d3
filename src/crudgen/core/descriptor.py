"""Schema descriptor data model.

Two layers:

* **Raw** (:class:`RawTypeDefinition`): what the annotation surface hands
  over.  Pydantic models, so a definition can also be loaded from JSON.
  Nothing is validated beyond basic types; a raw definition may have two
  table annotations, no id field, unnamed members, and so on.
* **Validated** (:class:`SchemaDescriptor`): produced only by
  :class:`~crudgen.core.builder.DescriptorBuilder`.  Frozen dataclasses;
  field order is declaration order and drives column/placeholder order.

Tags:
    descriptor, schema, data-model, crudgen
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

TABLE_ANNOTATION = "crud_table"
ID_ANNOTATION = "crud_id"


class TypeShape(str, Enum):
    """Structural shape of a raw type definition."""

    RECORD = "record"
    TUPLE_RECORD = "tuple_record"  # positional members allowed
    SUM = "sum"
    UNION = "union"


# ── Raw input ────────────────────────────────────────────────────────────


class RawAnnotation(BaseModel):
    """An annotation attached to the type (``crud_table``, ...)."""

    name: str
    value: str | None = None


class RawField(BaseModel):
    """A declared member; ``name`` is ``None`` for positional-only members."""

    name: str | None = None
    type: str = "Any"
    annotations: list[str] = Field(default_factory=list)

    @property
    def is_id(self) -> bool:
        return ID_ANNOTATION in self.annotations


class RawTypeDefinition(BaseModel):
    """Parsed annotation surface for one record type."""

    name: str
    shape: TypeShape = TypeShape.RECORD
    annotations: list[RawAnnotation] = Field(default_factory=list)
    fields: list[RawField] = Field(default_factory=list)

    def table_annotations(self) -> list[RawAnnotation]:
        return [a for a in self.annotations if a.name == TABLE_ANNOTATION]


# ── Validated descriptor ─────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One column of the mapped table."""

    name: str
    type: str
    is_id: bool = False


@dataclass(frozen=True, slots=True)
class SchemaDescriptor:
    """Validated table mapping for one record type.

    Attributes:
        type_name: Record type identifier (diagnostics, generated names).
        table_name: Target table.
        fields: All fields in declaration order, id field included.
    """

    type_name: str
    table_name: str
    fields: tuple[FieldDescriptor, ...]

    @property
    def id_field(self) -> FieldDescriptor:
        return next(f for f in self.fields if f.is_id)

    @property
    def columns(self) -> tuple[FieldDescriptor, ...]:
        """Non-id fields, in declaration order."""
        return tuple(f for f in self.fields if not f.is_id)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)


__all__ = [
    "TABLE_ANNOTATION",
    "ID_ANNOTATION",
    "TypeShape",
    "RawAnnotation",
    "RawField",
    "RawTypeDefinition",
    "FieldDescriptor",
    "SchemaDescriptor",
]
