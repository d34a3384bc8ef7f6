"""Data models for web search parameters, options and results."""

from collections.abc import Mapping
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .config import TOOL_NAME

ContentSize = Literal["medium", "high"]
Location = Literal["cn", "us"]
RecencyFilter = Literal["oneDay", "oneWeek", "oneMonth", "oneYear", "noLimit"]


class SearchParams(BaseModel):
    """Arguments of the remote ``webSearchPrime`` tool."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    search_query: str = Field(min_length=1, description="Query text, <= 70 chars recommended")
    count: int = Field(default=10, ge=1, le=50)
    content_size: ContentSize = "medium"
    location: Location = "cn"
    search_domain_filter: Optional[str] = Field(default=None, description="Only return results from this domain")
    search_recency_filter: RecencyFilter = "noLimit"

    @classmethod
    def coerce(cls, value: "str | Mapping[str, Any] | SearchParams") -> "SearchParams":
        """Accept a bare query, a mapping of arguments or an existing instance."""
        if isinstance(value, SearchParams):
            return value
        if isinstance(value, str):
            return cls(search_query=value)
        return cls.model_validate(dict(value))

    def to_arguments(self) -> dict[str, Any]:
        """Argument object sent with the tool call."""
        return self.model_dump(exclude_none=True)


# JSON schema for host frameworks that wrap the search as a tool
SEARCH_ARGS_SCHEMA: dict[str, Any] = SearchParams.model_json_schema()


class SearchOptions(BaseModel):
    """Per-call client options (unrelated to the search semantics)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: Optional[SecretStr] = None
    endpoint: Optional[str] = None
    transport_headers: dict[str, str] = Field(default_factory=dict)
    reuse_connection: bool = True
    validate_tool_availability: bool = False
    # Soft timeout: the call is abandoned locally, the remote request may keep running
    timeout_ms: Optional[int] = None

    @classmethod
    def coerce(cls, value: "SearchOptions | Mapping[str, Any] | None") -> "SearchOptions":
        if value is None:
            return cls()
        if isinstance(value, SearchOptions):
            return value
        return cls.model_validate(dict(value))


class SearchItem(BaseModel):
    """A normalized search result."""

    title: str
    url: str
    summary: Optional[str] = None
    icon: Optional[str] = None
    site_name: Optional[str] = None
    media: Any = None
    published_at: Optional[str] = None
    refer: Any = None
    # Original provider record, untouched
    raw: dict[Any, Any] = Field(default_factory=dict)


class SearchMeta(BaseModel):
    """Metadata about one search invocation."""

    endpoint: str
    tool_name: str = TOOL_NAME
    took_ms: int
    requested_count: Optional[int] = None
    returned_count: int
    reused_connection: bool


class SearchResult(BaseModel):
    """Return value of a search: normalized items plus the raw MCP content blocks."""

    items: list[SearchItem] = Field(default_factory=list)
    raw_blocks: list[dict[str, Any]] = Field(default_factory=list)
    meta: SearchMeta
