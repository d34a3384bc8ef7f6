"""BigModel WebSearch Prime client over MCP with connection caching."""

__version__ = "1.0.0"

from .config import DEFAULT_ENDPOINT, TOOL_NAME, SearchSettings, load_settings  # noqa: E402
from .connection import ConnectionCache  # noqa: E402
from .exceptions import (  # noqa: E402
    BigModelSearchError,
    MissingCredentialError,
    RemoteApplicationError,
    RemoteInvocationError,
    SoftTimeoutError,
    ToolListingError,
    ToolNotAvailableError,
)
from .models import SEARCH_ARGS_SCHEMA, SearchItem, SearchMeta, SearchOptions, SearchParams, SearchResult  # noqa: E402
from .normalize import normalize_items  # noqa: E402
from .payload import extract_records  # noqa: E402
from .search import WebSearchPrime, web_search_prime  # noqa: E402

__all__ = [
    "__version__",
    "DEFAULT_ENDPOINT",
    "TOOL_NAME",
    "SEARCH_ARGS_SCHEMA",
    "SearchSettings",
    "load_settings",
    "ConnectionCache",
    "SearchParams",
    "SearchOptions",
    "SearchItem",
    "SearchMeta",
    "SearchResult",
    "WebSearchPrime",
    "web_search_prime",
    "extract_records",
    "normalize_items",
    "BigModelSearchError",
    "MissingCredentialError",
    "ToolNotAvailableError",
    "ToolListingError",
    "RemoteInvocationError",
    "RemoteApplicationError",
    "SoftTimeoutError",
]
