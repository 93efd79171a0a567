"""Error translation for ledger operations."""

from collections.abc import Awaitable, Callable
from functools import wraps
import inspect
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import DatabaseOperationError


def _lookup(arguments: dict[str, Any], path: str | None) -> str | None:
    """Resolve a dotted path such as ``record.show`` against call arguments."""
    if path is None:
        return None
    name, *attrs = path.split(".")
    value: Any = arguments.get(name)
    for attr in attrs:
        value = getattr(value, attr, None)
    return value if isinstance(value, str) else None


def handle_ledger_db_errors[**P, T](
    operation: str,
    show_from: str = "show",
    identity_from: str | None = "identity",
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Re-raise SQLAlchemy failures of a ledger method as DatabaseOperationError.

    ``show_from`` and ``identity_from`` are dotted paths into the method's
    arguments; the values found there are attached to the raised error.
    Paths naming a parameter the method does not have fail at decoration
    time with ``TypeError``.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        sig = inspect.signature(func)
        unknown = [
            path
            for path in (show_from, identity_from)
            if path is not None and path.split(".")[0] not in sig.parameters
        ]
        if unknown:
            raise TypeError(f"{func.__name__}() has no parameter for {unknown}")

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as e:
                arguments = sig.bind(*args, **kwargs).arguments
                raise DatabaseOperationError(
                    f"Failed to {operation}",
                    show=_lookup(arguments, show_from),
                    identity=_lookup(arguments, identity_from),
                ) from e

        return wrapper

    return decorator
