"""Custom exceptions for the BigModel web search client."""

from typing import Any


class BigModelSearchError(Exception):
    """Base exception for BigModel web search errors.

    ``details`` carries the raw underlying error or response for diagnostics.
    """

    code = "BIGMODEL_SEARCH_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details


class MissingCredentialError(BigModelSearchError):
    """Raised when no API key could be resolved before any network call."""

    code = "MISSING_API_KEY"


class ToolNotAvailableError(BigModelSearchError):
    """Raised when the remote endpoint does not expose the search tool."""

    code = "TOOL_NOT_AVAILABLE"


class ToolListingError(ToolNotAvailableError):
    """Raised when listing the remote tools failed."""

    code = "TOOL_LISTING_FAILED"


class RemoteInvocationError(BigModelSearchError):
    """Raised on transport, connect or protocol failures."""

    code = "TRANSPORT_OR_CONNECT_ERROR"


class RemoteApplicationError(BigModelSearchError):
    """Raised when the tool call succeeded but the response has isError set."""

    code = "MCP_TOOL_ERROR"


class SoftTimeoutError(BigModelSearchError, TimeoutError):
    """Raised when the local wait exceeded the configured deadline.

    The remote call may still be outstanding.
    """

    code = "SOFT_TIMEOUT"
