"""
Root Typer application for the crudgen CLI.

Commands:
    sql       Print the synthesized statements for a record type
    check     Verify a record type against a live table
    generate  Write a typed Python module of CRUD functions
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from typer import Typer

from crudgen.cli.utils import (
    build_or_exit,
    console,
    err_console,
    load_target,
    print_plain,
    print_violations,
    resolve_dialect,
)
from crudgen.core.codegen import render_module
from crudgen.core.logging import bind_context, clear_context, configure_logging
from crudgen.core.result import Err, Ok
from crudgen.core.schema_check import verify_schema
from crudgen.core.settings import LOG_LEVELS, get_settings
from crudgen.core.synthesizer import synthesize

app = Typer(
    name="crudgen",
    help="crudgen: CRUD SQL generation for annotated record types.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

TARGET_HELP = "Record type as 'package.module:ClassName', or a JSON type definition file."


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("crudgen")
        except PackageNotFoundError:
            from crudgen import __version__ as v
        typer.echo(f"crudgen {v}")
        raise typer.Exit()


def _log_level_callback(value: str | None) -> str | None:
    if value is not None and value.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"expected one of {', '.join(LOG_LEVELS)}, got {value!r}")
    return value


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level (default: CRUDGEN_LOG_LEVEL or WARNING).",
        callback=_log_level_callback,
    ),
) -> None:
    """crudgen CLI: synthesize, verify and generate CRUD operations."""
    settings = get_settings()
    configure_logging(
        level=(log_level or settings.log_level).upper(),
        json_format=settings.json_logs,
    )
    clear_context()
    bind_context(command=ctx.invoked_subcommand)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("sql")
def sql_cmd(
    target: str = typer.Argument(..., help=TARGET_HELP),
    dialect: str | None = typer.Option(
        None, "--dialect", "-d", help="sqlite, postgresql, mysql or oracle."
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print every synthesized statement for TARGET."""
    sql_dialect = resolve_dialect(dialect or get_settings().dialect)
    descriptor = build_or_exit(load_target(target))
    queries = synthesize(descriptor, sql_dialect)

    if as_json:
        payload = {
            "type_name": descriptor.type_name,
            "table": descriptor.table_name,
            "dialect": sql_dialect.name,
            "queries": {
                q.kind.value: {"sql": q.sql, "params": list(q.params), "shape": q.shape.value}
                for q in queries
            },
        }
        console.print_json(json.dumps(payload))
        return

    for query in queries:
        print_plain(f"-- {query.kind.value}")
        print_plain(query.sql)


@app.command("check")
def check_cmd(
    target: str = typer.Argument(..., help=TARGET_HELP),
    database: str | None = typer.Option(
        None, "--database", "-D", help="SQLAlchemy URL (default: CRUDGEN_DATABASE_URL)."
    ),
) -> None:
    """Verify that TARGET's table exists and its columns match the fields."""
    from sqlalchemy.exc import ArgumentError

    from crudgen.core.engine import create_engine_source

    url = database or get_settings().database_url
    if not url:
        err_console.print("[bold red]Error[/bold red]: no database URL (use --database)")
        raise typer.Exit(code=2)

    descriptor = build_or_exit(load_target(target))
    try:
        source = create_engine_source(url)
    except (ArgumentError, ImportError) as e:
        err_console.print(f"[bold red]Error[/bold red]: cannot open database: {e}")
        raise typer.Exit(code=2) from e

    try:
        try:
            sql_dialect = source.dialect
        except ValueError as e:
            err_console.print(f"[bold red]Error[/bold red]: {e}")
            raise typer.Exit(code=2) from e
        result = verify_schema(source, descriptor, sql_dialect)
    finally:
        source.dispose()

    match result:
        case Ok():
            console.print(
                f"[green]✓[/green] {descriptor.type_name} matches table "
                f"[bold]{descriptor.table_name}[/bold]"
            )
        case Err(error):
            print_violations(error)
            raise typer.Exit(code=1)


@app.command("generate")
def generate_cmd(
    target: str = typer.Argument(..., help=TARGET_HELP),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to FILE instead of stdout."),
    dialect: str | None = typer.Option(None, "--dialect", "-d", help="Placeholder dialect."),
) -> None:
    """Generate a typed Python module of CRUD functions for TARGET."""
    sql_dialect = resolve_dialect(dialect or get_settings().dialect)
    resolved = load_target(target)
    descriptor = build_or_exit(resolved)
    source = render_module(descriptor, resolved.import_path, sql_dialect)

    if output is None:
        print_plain(source.rstrip("\n"))
        return

    output.write_text(source, encoding="utf-8")
    console.print(f"[green]✓[/green] Wrote {output}")
