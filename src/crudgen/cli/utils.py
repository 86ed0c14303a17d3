"""
CLI utility helpers: target loading and output formatting.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from crudgen.core.annotations import describe
from crudgen.core.builder import DescriptorBuilder
from crudgen.core.descriptor import RawTypeDefinition, SchemaDescriptor
from crudgen.core.dialect import Dialect, get_dialect
from crudgen.core.errors import DescriptorValidationError, SchemaMismatchError
from crudgen.core.result import Err, Ok

console = Console()
err_console = Console(stderr=True)


# ── Target loading ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Target:
    """A resolved CLI target.

    ``import_path`` is the module the record type lives in; ``None`` when
    the definition came from a JSON file.
    """

    raw: RawTypeDefinition
    import_path: str | None = None


def load_target(target: str) -> Target:
    """Resolve ``package.module:ClassName`` or a JSON definition path."""
    path = Path(target)
    if path.suffix == ".json" or path.is_file():
        try:
            raw = RawTypeDefinition.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise typer.BadParameter(f"cannot read {target}: {e}") from e
        except ValidationError as e:
            raise typer.BadParameter(f"{target} is not a valid type definition:\n{e}") from e
        return Target(raw)

    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(
            f"expected 'package.module:ClassName' or a .json file, got {target!r}"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name}: {e}") from e

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise typer.BadParameter(f"{module_name} has no attribute {attr!r}") from e

    try:
        raw = describe(obj)
    except TypeError as e:
        raise typer.BadParameter(str(e)) from e
    return Target(raw, module_name)


def build_or_exit(target: Target) -> SchemaDescriptor:
    """Build the target's descriptor; print every violation and exit 1 on failure."""
    match DescriptorBuilder().build(target.raw):
        case Ok(descriptor):
            return descriptor
        case Err(error):
            print_violations(error)
            raise typer.Exit(code=1)


def resolve_dialect(name: str) -> Dialect:
    try:
        return get_dialect(name)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--dialect") from e


# ── Output helpers ───────────────────────────────────────────────────────


def print_violations(error: Exception) -> None:
    """Render a descriptor or schema error to stderr."""
    if isinstance(error, DescriptorValidationError):
        err_console.print(
            f"[bold red]Error[/bold red]: invalid record type [bold]{error.type_name}[/bold]"
        )
        table = Table(show_header=True, header_style="bold")
        table.add_column("Kind", no_wrap=True)
        table.add_column("Field", no_wrap=True)
        table.add_column("Message")
        for v in error.violations:
            table.add_row(v.kind.value, v.field or "-", v.message)
        err_console.print(table)
    elif isinstance(error, SchemaMismatchError) and error.mismatches:
        err_console.print(
            f"[bold red]Error[/bold red]: table [bold]{error.context.table}[/bold] "
            "does not match the record type"
        )
        table = Table(show_header=True, header_style="bold")
        table.add_column("Kind", no_wrap=True)
        table.add_column("Column", no_wrap=True)
        for m in error.mismatches:
            table.add_row(m.kind.value, m.column or "-")
        err_console.print(table)
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")


def print_plain(text: str) -> None:
    """Print verbatim text (SQL, generated source) without wrapping or markup."""
    console.print(text, soft_wrap=True, highlight=False, markup=False)
