# backend/app/utils/context.py
"""
Request-scoped context for the valuation API.

Holds the correlation ID of the request being served in a ContextVar, so
it follows the request through async code and into the threadpool that
runs sync endpoints (Starlette copies the context into worker threads).

Usage:
    from app.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")    # middleware, on request start
    get_correlation_id()             # anywhere while serving the request
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Correlation ID of the current request, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)
