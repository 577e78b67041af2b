"""
Logging utilities for MDB_DOCS.

Gateway calls bind their collection, operation and document id with
``operation_context``. Every record logged through a contextual logger inside
that block (hydration warnings included) carries those fields, so one read
can be followed across the collections it touches.
"""

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

_operation: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "mdb_docs_operation", default=None
)


@contextmanager
def operation_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Bind fields to the records logged in this block.

    Nested blocks see the outer fields too; inner values win on conflicts.
    None values are dropped.
    """
    bound = {**(_operation.get() or {})}
    bound.update({key: value for key, value in fields.items() if value is not None})
    token = _operation.set(bound)
    try:
        yield bound
    finally:
        _operation.reset(token)


def get_logging_context() -> dict[str, Any]:
    """Fields bound by the innermost active ``operation_context``."""
    return dict(_operation.get() or {})


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Adds the bound operation fields and the adapter's own fields to records."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {
            **get_logging_context(),
            **(self.extra or {}),
            **kwargs.get("extra", {}),
        }
        return msg, kwargs


def get_logger(name: str, **extra: Any) -> ContextualLoggerAdapter:
    """
    Args:
        name: Logger name (typically __name__)
        **extra: Fixed fields for every record of this logger
    """
    return ContextualLoggerAdapter(logging.getLogger(name), extra)


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.DEBUG,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log the outcome of one gateway operation.

    The record gets ``operation``, ``success``, ``duration_ms`` (rounded to
    two decimals) and any extra keyword fields as attributes.
    """
    fields: dict[str, Any] = {**context, "operation": operation, "success": success}
    verb = "succeeded" if success else "failed"
    message = f"{operation} {verb}"
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)
        message += f" in {duration_ms:.2f}ms"

    logger.log(level, message, extra=fields)
