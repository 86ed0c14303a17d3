"""Annotation surface for Python record types.

Attaches table/id metadata to ordinary Python classes and turns them into
a :class:`~crudgen.core.descriptor.RawTypeDefinition`.  Nothing is
validated here; a class with two ``@crud_table`` decorators produces two
table annotations and the builder reports it.

Usage::

    from dataclasses import dataclass
    from typing import Annotated

    from crudgen.core.annotations import CrudId, crud_table

    @crud_table("users")
    @dataclass
    class User:
        id: Annotated[int, CrudId]
        name: str
        email: str

Supported record types: dataclasses, pydantic models, ``NamedTuple``
subclasses and plain classes with annotations.  ``Enum`` subclasses and
union objects are described with a sum/union shape so the builder can
reject them.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from enum import Enum
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from crudgen.core.descriptor import (
    ID_ANNOTATION,
    TABLE_ANNOTATION,
    RawAnnotation,
    RawField,
    RawTypeDefinition,
    TypeShape,
)

_TABLES_ATTR = "__crud_tables__"


class CrudId:
    """Marks the primary-key field: ``Annotated[int, CrudId]``."""


def crud_table(name: str | None = None):
    """Class decorator naming the target table.

    Stacking the decorator records one annotation per use.
    """

    def decorate(cls: type) -> type:
        # Copy so subclasses don't append to the parent's list
        tables = list(cls.__dict__.get(_TABLES_ATTR, ()))
        tables.append(name)
        setattr(cls, _TABLES_ATTR, tables)
        return cls

    return decorate


def render_type(tp: Any) -> str:
    """Render a type annotation as source text (``int``, ``str | None``)."""
    if isinstance(tp, str):
        return tp
    if tp is type(None):
        return "None"
    if isinstance(tp, type) and get_origin(tp) is None and not get_args(tp):
        return tp.__qualname__ if tp.__module__ != "builtins" else tp.__name__
    return repr(tp).replace("typing.", "")


def _is_id_marker(meta: Any) -> bool:
    return meta is CrudId or isinstance(meta, CrudId)


def _split_annotated(tp: Any) -> tuple[Any, bool]:
    if get_origin(tp) is Annotated:
        base, *metadata = get_args(tp)
        return base, any(_is_id_marker(m) for m in metadata)
    return tp, False


def _raw_field(name: str, tp: Any, extra_metadata: list[Any] | None = None) -> RawField:
    base, is_id = _split_annotated(tp)
    if extra_metadata and any(_is_id_marker(m) for m in extra_metadata):
        is_id = True
    return RawField(
        name=name,
        type=render_type(base),
        annotations=[ID_ANNOTATION] if is_id else [],
    )


def _record_fields(cls: type) -> list[RawField]:
    if issubclass(cls, BaseModel):
        # pydantic strips Annotated metadata into FieldInfo.metadata
        return [
            _raw_field(name, info.annotation, list(info.metadata))
            for name, info in cls.model_fields.items()
        ]

    hints = get_type_hints(cls, include_extras=True)
    if dataclasses.is_dataclass(cls):
        return [_raw_field(f.name, hints.get(f.name, f.type)) for f in dataclasses.fields(cls)]
    # NamedTuple and plain annotated classes keep declaration order in hints
    return [_raw_field(name, tp) for name, tp in hints.items() if not name.startswith("_")]


def _is_union(obj: Any) -> bool:
    return isinstance(obj, types.UnionType) or get_origin(obj) is typing.Union


def describe(obj: Any) -> RawTypeDefinition:
    """Extract the raw annotation surface of ``obj``."""
    if isinstance(obj, RawTypeDefinition):
        return obj

    if _is_union(obj):
        return RawTypeDefinition(name=render_type(obj), shape=TypeShape.UNION)

    if not isinstance(obj, type):
        raise TypeError(f"Cannot describe {obj!r}: expected a class or RawTypeDefinition")

    annotations = [
        RawAnnotation(name=TABLE_ANNOTATION, value=table)
        for table in obj.__dict__.get(_TABLES_ATTR, ())
    ]

    if issubclass(obj, Enum):
        return RawTypeDefinition(name=obj.__name__, shape=TypeShape.SUM, annotations=annotations)

    return RawTypeDefinition(
        name=obj.__name__,
        shape=TypeShape.RECORD,
        annotations=annotations,
        fields=_record_fields(obj),
    )


__all__ = ["CrudId", "crud_table", "describe", "render_type"]
