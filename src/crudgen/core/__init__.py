"""crudgen core -- descriptors, SQL synthesis and run-time binding.

Manifesto:
    A record type's shape is known before the program runs, so the SQL
    for creating, reading, updating and deleting it can be derived once,
    checked once, and never hand-written again.  Structural mistakes are
    reported at generation time; store failures at run time come back as
    one of five kinds.

    - **Generation time:** annotations → descriptor → SQL text
    - **Run time:** SQL text + explicit handle → ``Result``
    - **No ambient state:** the library never reads settings or globals

Architecture::

    Layer 1 -- Types & Errors
        errors.py          CrudError hierarchy, ErrorKind, translate_error
        result.py          Result[T] envelope (Ok / Err)
        descriptor.py      RawTypeDefinition + SchemaDescriptor
        protocols.py       Connection / ConnectionSource protocols

    Layer 2 -- Generation
        annotations.py     @crud_table, CrudId, describe()
        builder.py         DescriptorBuilder (all violations in one pass)
        dialect.py         Placeholder dialects (SQLite -> Oracle)
        synthesizer.py     QuerySynthesizer (six SQL templates)
        codegen.py         render_module() -> typed Python module

    Layer 3 -- Run time
        binder.py          BoundOperations / OperationBinder
        engine.py          EngineSource over a SQLAlchemy pool
        schema_check.py    verify_schema() against a live table

    Layer 4 -- Cross-Cutting
        logging.py         structlog configuration
        settings.py        CrudgenSettings (CLI only)

``engine`` and ``settings`` are not re-exported here; import them from
their modules so SQLAlchemy and pydantic-settings load only when used.

Tags:
    crudgen, code-generation, data-access, sql
"""

from crudgen.core.annotations import CrudId, crud_table, describe
from crudgen.core.binder import BoundOperations, OperationBinder, bind_record
from crudgen.core.builder import DescriptorBuilder, build_descriptor
from crudgen.core.codegen import render_module
from crudgen.core.descriptor import (
    FieldDescriptor,
    RawAnnotation,
    RawField,
    RawTypeDefinition,
    SchemaDescriptor,
    TypeShape,
)
from crudgen.core.dialect import (
    Dialect,
    MySQLDialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)
from crudgen.core.errors import (
    AlreadyExistsError,
    CrudError,
    DescriptorError,
    DescriptorErrorKind,
    DescriptorValidationError,
    ErrorKind,
    InternalError,
    InvalidInputError,
    NotFoundError,
    SchemaMismatch,
    SchemaMismatchError,
    SchemaMismatchKind,
    UnauthorizedError,
    translate_error,
)
from crudgen.core.logging import configure_logging, get_logger
from crudgen.core.protocols import Connection, ConnectionSource, Handle
from crudgen.core.result import Err, Ok, Result, collect_results
from crudgen.core.schema_check import verify_schema
from crudgen.core.synthesizer import (
    OperationKind,
    QuerySet,
    QuerySynthesizer,
    ResultShape,
    SynthesizedQuery,
    synthesize,
)

__all__ = [
    # Annotations & descriptors
    "CrudId",
    "crud_table",
    "describe",
    "RawAnnotation",
    "RawField",
    "RawTypeDefinition",
    "TypeShape",
    "FieldDescriptor",
    "SchemaDescriptor",
    "DescriptorBuilder",
    "build_descriptor",
    # Synthesis
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "OracleDialect",
    "get_dialect",
    "register_dialect",
    "OperationKind",
    "ResultShape",
    "SynthesizedQuery",
    "QuerySet",
    "QuerySynthesizer",
    "synthesize",
    "render_module",
    # Run time
    "Connection",
    "ConnectionSource",
    "Handle",
    "BoundOperations",
    "OperationBinder",
    "bind_record",
    "verify_schema",
    # Errors & results
    "CrudError",
    "ErrorKind",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidInputError",
    "UnauthorizedError",
    "InternalError",
    "DescriptorErrorKind",
    "DescriptorError",
    "DescriptorValidationError",
    "SchemaMismatchKind",
    "SchemaMismatch",
    "SchemaMismatchError",
    "translate_error",
    "Ok",
    "Err",
    "Result",
    "collect_results",
    # Logging
    "configure_logging",
    "get_logger",
]
