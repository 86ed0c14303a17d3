"""Python module generation.

Renders a standalone module exposing one typed function per operation for
a single descriptor.  The functions delegate to a module-level
:class:`~crudgen.core.binder.BoundOperations`, so the generated file holds
signatures and the frozen descriptor, never SQL execution logic.

Example output for ``User`` (``id`` + ``name`` + ``email``)::

    def create(handle: Any, name: str, email: str) -> Result[User]:
        return _OPERATIONS.create(handle, name, email)

    def read_one(handle: Any, id: int) -> Result[User]:
        return _OPERATIONS.read_one(handle, id)

Without an ``import_path`` the record type cannot be imported, so rows
come back as ``dict[str, Any]``.
"""

from __future__ import annotations

import keyword

from crudgen.core.descriptor import FieldDescriptor, SchemaDescriptor
from crudgen.core.dialect import Dialect, SQLiteDialect

_HEADER = '''\
"""Generated CRUD operations for {type_name} (table ``{table}``).

Do not edit by hand; regenerate with ``crudgen generate``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from crudgen.core.binder import BoundOperations
from crudgen.core.descriptor import FieldDescriptor, SchemaDescriptor
from crudgen.core.dialect import get_dialect
from crudgen.core.result import Result
from crudgen.core.synthesizer import synthesize
'''


# Names the generated functions already bind or read
_TEMPLATE_NAMES = frozenset({"handle", "record", "_OPERATIONS", "Any", "Iterator", "Result"})


def _param_names(descriptor: SchemaDescriptor) -> dict[str, str]:
    """Map field names to parameter names that compile in the template.

    Keywords (``class``) and template names (``handle``) get a ``_`` suffix,
    repeated until the result clashes with no other field.
    """
    taken = set(descriptor.field_names) | _TEMPLATE_NAMES
    params: dict[str, str] = {}
    for name in descriptor.field_names:
        param = name
        if keyword.iskeyword(name) or name in _TEMPLATE_NAMES:
            param = f"{name}_"
            while param in taken:
                param += "_"
            taken.add(param)
        params[name] = param
    return params


def _field_literal(field: FieldDescriptor) -> str:
    return f"FieldDescriptor(name={field.name!r}, type={field.type!r}, is_id={field.is_id!r})"


def _descriptor_literal(descriptor: SchemaDescriptor) -> str:
    fields = "".join(f"        {_field_literal(f)},\n" for f in descriptor.fields)
    return (
        "DESCRIPTOR = SchemaDescriptor(\n"
        f"    type_name={descriptor.type_name!r},\n"
        f"    table_name={descriptor.table_name!r},\n"
        "    fields=(\n"
        f"{fields}"
        "    ),\n"
        ")\n"
    )


def _functions(descriptor: SchemaDescriptor, record: str) -> str:
    params = _param_names(descriptor)
    key = descriptor.id_field
    key_arg = params[key.name]
    key_param = f"{key_arg}: {key.type}"
    columns = descriptor.columns
    create_params = "".join(f", {params[f.name]}: {f.type}" for f in columns)
    create_args = "".join(f", {params[f.name]}" for f in columns)

    return f'''

def create(handle: Any{create_params}) -> Result[{record}]:
    """Insert a row and return it as stored."""
    return _OPERATIONS.create(handle{create_args})


def read(handle: Any, {key_param}) -> Iterator[Result[{record}]]:
    """Lazily yield every row whose {key.name} matches."""
    return _OPERATIONS.read(handle, {key_arg})


def read_one(handle: Any, {key_param}) -> Result[{record}]:
    """Exactly one row by {key.name}."""
    return _OPERATIONS.read_one(handle, {key_arg})


def read_all(handle: Any) -> Result[list[{record}]]:
    return _OPERATIONS.read_all(handle)


def update(handle: Any, record: {record}) -> Result[None]:
    """Write every non-id field of ``record``, matched by {key.name}."""
    return _OPERATIONS.update(handle, record)


def delete(handle: Any, {key_param}) -> Result[None]:
    return _OPERATIONS.delete(handle, {key_arg})
'''


def render_module(
    descriptor: SchemaDescriptor,
    import_path: str | None = None,
    dialect: Dialect | None = None,
) -> str:
    """Render Python source for ``descriptor``'s operations.

    Args:
        descriptor: Validated descriptor.
        import_path: Module the record type is imported from
            (``app.models``); ``None`` returns rows as dicts.
        dialect: Placeholder dialect baked into the module (default SQLite).

    Returns:
        Module source text, deterministic for the same inputs.
    """
    dialect = dialect or SQLiteDialect()
    parts = [_HEADER.format(type_name=descriptor.type_name, table=descriptor.table_name)]

    if import_path:
        record = descriptor.type_name
        factory = record
        parts.append(f"\nfrom {import_path} import {record}\n")
    else:
        record = "dict[str, Any]"
        factory = "dict"

    parts.append("\n")
    parts.append(_descriptor_literal(descriptor))
    parts.append(
        f"\n_OPERATIONS: BoundOperations[{record}] = BoundOperations(\n"
        f"    DESCRIPTOR, synthesize(DESCRIPTOR, get_dialect({dialect.name!r})), {factory}\n"
        ")\n"
    )
    parts.append(_functions(descriptor, record))
    parts.append(
        "\n\n__all__ = [\"DESCRIPTOR\", \"create\", \"read\", \"read_one\", "
        "\"read_all\", \"update\", \"delete\"]\n"
    )
    return "".join(parts)


__all__ = ["render_module"]
