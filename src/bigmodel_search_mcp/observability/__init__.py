"""Observability helpers: structured logging with per-search context."""

from .logging import get_current_request_id, get_logger, search_context, setup_structured_logging

__all__ = [
    "get_current_request_id",
    "get_logger",
    "search_context",
    "setup_structured_logging",
]
