"""
Ok / Err envelope returned by every crudgen entry point.

Descriptor building hands back ``Ok(SchemaDescriptor)`` or
``Err(DescriptorValidationError)``; each bound operation hands back
``Ok(record)`` or ``Err`` holding one of the five run-time kinds.  Nothing
in the run-time path raises to the caller.

::

    Result[T] = Ok[T] | Err[T]

      Ok(value)                 Err(error)
      ─────────                 ──────────
      unwrap() -> value         unwrap() raises error
      map / flat_map apply      map / flat_map pass through
      kind -> None              kind -> ErrorKind | None

Examples:
    >>> from crudgen.core.errors import NotFoundError
    >>> match Err(NotFoundError("no row in users with key 7")):
    ...     case Ok(user):
    ...         print(user)
    ...     case Err(error):
    ...         print(error.kind.value)
    NOT_FOUND

Tags:
    result, error-handling, crudgen
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from crudgen.core.errors import CrudError, ErrorKind

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """The operation succeeded with ``value``."""

    value: T

    kind = None

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:  # noqa: ARG002
        return self.value

    def unwrap_err(self) -> Exception:
        raise ValueError(f"expected an Err, got {self!r}")

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return f(self.value)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:  # noqa: ARG002
        return self

    def or_else(self, f: Callable[[Exception], Result[T]]) -> Result[T]:  # noqa: ARG002
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """The operation failed; ``error`` is usually a :class:`CrudError`."""

    error: Exception

    @property
    def kind(self) -> ErrorKind | None:
        """Run-time kind of the error, ``None`` for generation-time errors."""
        return getattr(self.error, "kind", None)

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the held error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> Exception:
        return self.error

    def map(self, f: Callable[[T], U]) -> Result[U]:  # noqa: ARG002
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:  # noqa: ARG002
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return Err(f(self.error))

    def or_else(self, f: Callable[[Exception], Result[T]]) -> Result[T]:
        """Recover, e.g. ``read_one(...).or_else(lambda e: Ok(default))``."""
        return f(self.error)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, CrudError):
            error = self.error.to_dict()
        else:
            error = {"error_type": type(self.error).__name__, "message": str(self.error)}
        return {"ok": False, "error": error}

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def collect_results(results: Iterable[Result[T]]) -> Result[list[T]]:
    """Drain results (e.g. a lazy ``read``) into one list, stopping at the first Err.

    Stopping early closes a generator source, releasing its cursor.
    """
    values: list[T] = []
    iterator = iter(results)
    try:
        for result in iterator:
            match result:
                case Ok(value):
                    values.append(value)
                case Err(error):
                    return Err(error)
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
    return Ok(values)


__all__ = ["Ok", "Err", "Result", "collect_results"]
