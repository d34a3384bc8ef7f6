"""BigModel ``webSearchPrime`` invocation over a cached MCP connection.

A search runs strictly in sequence:

    validate credential -> acquire session -> [list tools] -> call tool (soft timeout)
    -> check isError -> unwrap content blocks -> normalize items

The soft timeout only releases the local caller. The MCP transport does not
expose per-request cancellation, so the remote call may keep running; callers
that need a hard stop should use ``reuse_connection=False``.
"""

from __future__ import annotations

import asyncio
import os
import time
import uuid
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from pydantic import SecretStr

from .config import API_KEY_ENV_VAR, DEFAULT_ENDPOINT, TOOL_NAME, SearchSettings, require_api_key
from .connection import ClientFactory, ConnectionCache
from .exceptions import (
    BigModelSearchError,
    RemoteApplicationError,
    RemoteInvocationError,
    SoftTimeoutError,
    ToolListingError,
    ToolNotAvailableError,
)
from .models import SearchMeta, SearchOptions, SearchParams, SearchResult
from .normalize import normalize_items
from .observability import get_logger, search_context
from .payload import extract_records

logger = get_logger(__name__)


def _is_error(response: Any) -> bool:
    # MCP SDK v2 renamed isError to is_error; read the new name first.
    flag = getattr(response, "is_error", None)
    if flag is None:
        flag = getattr(response, "isError", False)
    return bool(flag)


def _dump_block(block: Any) -> dict[str, Any]:
    if isinstance(block, Mapping):
        return dict(block)
    if hasattr(block, "model_dump"):
        return block.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"type": getattr(block, "type", None), "text": getattr(block, "text", None)}


class WebSearchPrime:
    """Client for the BigModel WebSearch Prime MCP tool.

    The credential is injected here; no environment lookup happens inside
    ``search``. Per-call ``SearchOptions`` override the constructor defaults.
    """

    def __init__(
        self,
        api_key: str | SecretStr | None = None,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        cache: ConnectionCache | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._endpoint = endpoint
        self._cache = cache if cache is not None else ConnectionCache(client_factory)

    @classmethod
    def from_settings(cls, settings: SearchSettings, cache: ConnectionCache | None = None) -> WebSearchPrime:
        """Build a client from settings, with a cache honoring the configured lifetime policy."""
        if cache is None:
            cache = ConnectionCache(ttl_seconds=settings.session_ttl_seconds, evict_failed=settings.evict_failed_sessions)
        return cls(settings.get_api_key(), endpoint=settings.endpoint, cache=cache)

    @property
    def cache(self) -> ConnectionCache:
        return self._cache

    async def __aenter__(self) -> WebSearchPrime:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close all sessions held by this client's cache."""
        await self._cache.aclose()

    async def search(
        self,
        query: str | Mapping[str, Any] | SearchParams,
        options: SearchOptions | Mapping[str, Any] | None = None,
    ) -> SearchResult:
        """Run one web search and return normalized items.

        Raises:
            MissingCredentialError: no API key, before any network activity
            ToolNotAvailableError: tool validation requested and the tool is absent
            ToolListingError: tool validation requested and listing failed
            RemoteInvocationError: connect or call failed
            RemoteApplicationError: the tool answered with isError set
            SoftTimeoutError: the call exceeded ``timeout_ms``
        """
        opts = SearchOptions.coerce(options)
        params = SearchParams.coerce(query)
        api_key = require_api_key(opts.api_key or self._api_key)
        endpoint = opts.endpoint or self._endpoint

        with search_context(uuid.uuid4().hex[:12], TOOL_NAME, endpoint=endpoint):
            start = time.perf_counter()
            logger.info("search_started", requested_count=params.count, reuse_connection=opts.reuse_connection)
            try:
                async with self._cache.session(
                    endpoint, api_key, opts.transport_headers, reuse=opts.reuse_connection
                ) as client:
                    if opts.validate_tool_availability:
                        await self._ensure_tool(client, endpoint)
                    response = await self._call_tool(client, params, opts.timeout_ms)
            except BigModelSearchError as e:
                logger.warning("search_failed", error_code=e.code, error=str(e))
                raise

            if _is_error(response):
                logger.warning("search_failed", error_code=RemoteApplicationError.code)
                raise RemoteApplicationError(f'MCP tool "{TOOL_NAME}" returned an error result', details=response)

            content = getattr(response, "content", None)
            raw_blocks = [_dump_block(block) for block in content] if isinstance(content, list) else []
            items = normalize_items(extract_records(raw_blocks))

            took_ms = int((time.perf_counter() - start) * 1000)
            logger.info("search_completed", returned_count=len(items), took_ms=took_ms)

        return SearchResult(
            items=items,
            raw_blocks=raw_blocks,
            meta=SearchMeta(
                endpoint=endpoint,
                tool_name=TOOL_NAME,
                took_ms=took_ms,
                requested_count=params.count,
                returned_count=len(items),
                reused_connection=opts.reuse_connection,
            ),
        )

    async def _ensure_tool(self, client: Any, endpoint: str) -> None:
        try:
            tools = await client.list_tools()
        except Exception as e:
            raise ToolListingError(f"Failed to list tools on MCP endpoint {endpoint}", details=e) from e
        if not any(getattr(tool, "name", None) == TOOL_NAME for tool in tools or ()):
            raise ToolNotAvailableError(f'Tool "{TOOL_NAME}" not found on MCP endpoint {endpoint}', details=tools)

    async def _call_tool(self, client: Any, params: SearchParams, timeout_ms: int | None) -> Any:
        async def call() -> Any:
            try:
                return await client.call_tool_mcp(TOOL_NAME, params.to_arguments())
            except Exception as e:
                raise RemoteInvocationError(f'MCP call_tool("{TOOL_NAME}") failed', details=e) from e

        if not timeout_ms or timeout_ms <= 0:
            return await call()
        try:
            return await asyncio.wait_for(call(), timeout=timeout_ms / 1000)
        except TimeoutError as e:
            raise SoftTimeoutError(f"MCP call soft-timeout after {timeout_ms}ms") from e


@lru_cache(maxsize=1)
def get_default_cache() -> ConnectionCache:
    """Process-wide cache used by ``web_search_prime`` when none is given."""
    return ConnectionCache()


async def web_search_prime(
    query: str | Mapping[str, Any] | SearchParams,
    options: SearchOptions | Mapping[str, Any] | None = None,
    *,
    cache: ConnectionCache | None = None,
) -> SearchResult:
    """Search with a bare query or full parameters.

    The credential comes from ``options.api_key``, else the ``BIGMODEL_API_KEY``
    environment variable, read here once per call.
    """
    opts = SearchOptions.coerce(options)
    if opts.api_key is None:
        ambient = os.environ.get(API_KEY_ENV_VAR)
        if ambient is not None:
            opts = opts.model_copy(update={"api_key": SecretStr(ambient)})
    client = WebSearchPrime(cache=cache if cache is not None else get_default_cache())
    return await client.search(query, opts)
