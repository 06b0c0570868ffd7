"""
Structured logging utilities for MDB_DAO.

DAO calls bind the tenant they operate on (and the collection it resolves
to) with ``tenant_context``. Loggers from ``get_logger`` copy that binding
onto every record they emit, so a handler or formatter can filter or
group log lines by tenant.

Callers can bind their own fields the same way, for example a request id:

    with tenant_context("acme", request_id=request.id):
        dao.create(record, app_id="acme")
"""

import contextlib
import contextvars
import logging
from collections.abc import Iterator
from typing import Any

_tenant_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "tenant_context", default=None
)


@contextlib.contextmanager
def tenant_context(app_id: str | None, **fields: Any) -> Iterator[None]:
    """
    Bind the tenant (and any extra fields) to log records emitted inside the block.

    Fields bound by an enclosing block stay visible unless overridden.

    Args:
        app_id: Tenant identifier
        **fields: Additional context (collection, request_id, ...)
    """
    outer = _tenant_context.get() or {}
    token = _tenant_context.set({**outer, "app_id": app_id, **fields})
    try:
        yield
    finally:
        _tenant_context.reset(token)


def get_logging_context() -> dict[str, Any]:
    """Return a copy of the fields currently bound by ``tenant_context``."""
    return dict(_tenant_context.get() or {})


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds the bound tenant context to log records.

    Fields passed through ``extra`` win over bound ones.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**get_logging_context(), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """Get a contextual logger for ``name`` (typically ``__name__``)."""
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log one DAO operation as a single structured record.

    Successful operations are logged at DEBUG, failures at ERROR.

    Args:
        logger: Logger instance
        operation: Operation name (e.g. "dao.create")
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context (app_id, key, count, ...)
    """
    fields: dict[str, Any] = {"operation": operation, "success": success, **context}
    message = f"Operation {'succeeded' if success else 'failed'}: {operation}"
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)
        message += f" ({duration_ms:.2f}ms)"

    level = logging.DEBUG if success else logging.ERROR
    logger.log(level, message, extra={**get_logging_context(), **fields})
