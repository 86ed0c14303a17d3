"""
crudgen - CRUD SQL generation and typed data access for annotated record types.

Annotate a record type with a table name and an id field; crudgen builds a
validated descriptor, synthesizes the six CRUD statements and binds them to
callable operations that return ``Ok`` / ``Err``.
"""

__version__ = "0.1.0"

from crudgen.core import *  # noqa: F401,F403
from crudgen.core import __all__ as _core_all

__all__ = ["__version__", *_core_all]
