"""
Observability components.

Provides structured logging with the tenant bound to each record.
"""

from .logging import (ContextualLoggerAdapter, get_logger, get_logging_context,
                      log_operation, tenant_context)

__all__ = [
    "tenant_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "log_operation",
]
