"""
Observability helpers for MDB_DOCS.
"""

from .logging import (
    ContextualLoggerAdapter,
    get_logger,
    get_logging_context,
    log_operation,
    operation_context,
)

__all__ = [
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
    "get_logging_context",
    "operation_context",
]
