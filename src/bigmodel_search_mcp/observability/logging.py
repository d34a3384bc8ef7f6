"""Structured logging with per-search context using structlog and contextvars."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

# Context variable for the current search
current_request_id: ContextVar[str | None] = ContextVar("current_request_id", default=None)

_configured = False


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON output and per-search context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    global _configured
    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject search context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
    )

    _configured = True


@contextmanager
def search_context(request_id: str, tool_name: str, **extra: str) -> Iterator[None]:
    """Bind search context for all logs emitted inside the block.

    The previous context is restored on exit, so nested or concurrent searches
    do not clobber each other.
    """
    id_token = current_request_id.set(request_id)
    try:
        with structlog.contextvars.bound_contextvars(request_id=request_id, tool_name=tool_name, **extra):
            yield
    finally:
        current_request_id.reset(id_token)


def get_logger(name: str = "bigmodel_search_mcp") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the search context."""
    return structlog.get_logger(name)


def get_current_request_id() -> str | None:
    """Get the current search request ID from context."""
    return current_request_id.get()
