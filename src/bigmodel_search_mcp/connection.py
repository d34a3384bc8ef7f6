"""Cache of established MCP client sessions, keyed by endpoint and credential fingerprint."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import Any, TypeAlias

from fastmcp import Client
from fastmcp.client.transports import StreamableHttpTransport
from mcp.types import Implementation

from . import __version__
from .config import CLIENT_NAME
from .exceptions import RemoteInvocationError

logger = logging.getLogger(__name__)

ClientFactory: TypeAlias = Callable[[str, dict[str, str]], Any]
CacheKey: TypeAlias = tuple[str, str]


def default_client_factory(endpoint: str, headers: dict[str, str]) -> Client:
    """Create an unconnected fastmcp client over streamable HTTP."""
    transport = StreamableHttpTransport(endpoint, headers=headers)
    return Client(transport, client_info=Implementation(name=CLIENT_NAME, version=__version__))


def fingerprint_credential(api_key: str) -> str:
    """Short, non-reversible token derived from the credential, for cache keys only."""
    return "k" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]


def build_headers(api_key: str, extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Merge caller headers with the bearer header.

    Caller headers are applied first; ``Authorization`` is always set last and any
    caller-supplied ``Authorization`` (any casing) is dropped.
    """
    headers = {name: value for name, value in (extra or {}).items() if name.lower() != "authorization"}
    headers["Authorization"] = f"Bearer {api_key}"
    return headers


@dataclass
class _Session:
    client: Any
    stack: AsyncExitStack


@dataclass
class _CacheEntry:
    task: asyncio.Future[_Session]
    created_at: float
    endpoint: str
    loop: asyncio.AbstractEventLoop


class ConnectionCache:
    """Owns long-lived MCP sessions; callers only borrow the clients.

    Concurrent callers asking for the same key while the session is still being
    established share one establishment attempt. A failed attempt stays cached
    unless ``evict_failed`` is set; use ``invalidate`` or ``reuse=False`` to retry.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        *,
        ttl_seconds: float | None = None,
        evict_failed: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_factory = client_factory or default_client_factory
        self._ttl_seconds = ttl_seconds
        self._evict_failed = evict_failed
        self._clock = clock
        self._entries: dict[CacheKey, _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, endpoint: str, api_key: str) -> bool:
        return self._key(endpoint, api_key) in self._entries

    @staticmethod
    def _key(endpoint: str, api_key: str) -> CacheKey:
        return (endpoint, fingerprint_credential(api_key))

    async def _connect(self, stack: AsyncExitStack, endpoint: str, api_key: str, headers: Mapping[str, str] | None) -> Any:
        client = self._client_factory(endpoint, build_headers(api_key, headers))
        try:
            await stack.enter_async_context(client)
        except Exception as e:
            raise RemoteInvocationError(f"Failed to connect MCP client to {endpoint}", details=e) from e
        return client

    async def _establish(self, endpoint: str, api_key: str, headers: Mapping[str, str] | None) -> _Session:
        stack = AsyncExitStack()
        try:
            client = await self._connect(stack, endpoint, api_key, headers)
        except BaseException:
            await stack.aclose()
            raise
        logger.info(f"Established MCP session with {endpoint}")
        return _Session(client=client, stack=stack)

    def _is_expired(self, entry: _CacheEntry) -> bool:
        # A pending establishment is never expired; other callers may be awaiting it.
        if self._ttl_seconds is None or not entry.task.done():
            return False
        return self._clock() - entry.created_at >= self._ttl_seconds

    def _is_failed(self, entry: _CacheEntry) -> bool:
        return entry.task.done() and not entry.task.cancelled() and entry.task.exception() is not None

    def _is_foreign(self, entry: _CacheEntry, loop: asyncio.AbstractEventLoop) -> bool:
        """Sessions are bound to the loop that established them."""
        return entry.loop is not loop or entry.loop.is_closed()

    async def acquire(self, endpoint: str, api_key: str, headers: Mapping[str, str] | None = None) -> Any:
        """Return the cached client for (endpoint, credential), establishing it once."""
        key = self._key(endpoint, api_key)
        loop = asyncio.get_running_loop()
        stale: _CacheEntry | None = None

        # No await between lookup and insert: the check-then-insert is atomic on the loop.
        entry = self._entries.get(key)
        if entry is not None and (
            self._is_foreign(entry, loop) or self._is_expired(entry) or (self._evict_failed and self._is_failed(entry))
        ):
            stale = self._entries.pop(key)
            entry = None
        if entry is None:
            entry = _CacheEntry(
                task=asyncio.ensure_future(self._establish(endpoint, api_key, headers)),
                created_at=self._clock(),
                endpoint=endpoint,
                loop=loop,
            )
            self._entries[key] = entry
        else:
            logger.debug(f"Reusing cached MCP session for {endpoint}")

        if stale is not None:
            logger.info(f"Replacing cached MCP session for {endpoint}")
            await self._close_entry(stale)

        try:
            session = await asyncio.shield(entry.task)
        except RemoteInvocationError:
            if self._evict_failed and self._entries.get(key) is entry:
                del self._entries[key]
            raise
        return session.client

    @asynccontextmanager
    async def session(
        self,
        endpoint: str,
        api_key: str,
        headers: Mapping[str, str] | None = None,
        *,
        reuse: bool = True,
    ) -> AsyncIterator[Any]:
        """Borrow a connected client.

        With ``reuse`` the cached session is used and left open. Without it a fresh
        session is established, never stored, and closed when the block exits.
        """
        if reuse:
            yield await self.acquire(endpoint, api_key, headers)
            return

        stack = AsyncExitStack()
        client = await self._connect(stack, endpoint, api_key, headers)
        logger.debug(f"Established ephemeral MCP session with {endpoint}")
        try:
            yield client
        finally:
            try:
                await stack.aclose()
            except Exception as e:
                logger.warning(f"Error while closing ephemeral MCP session for {endpoint}: {e}")

    async def invalidate(self, endpoint: str, api_key: str) -> bool:
        """Drop and close the cached session for a key. Returns True if one existed."""
        entry = self._entries.pop(self._key(endpoint, api_key), None)
        if entry is None:
            return False
        await self._close_entry(entry)
        return True

    async def aclose(self) -> None:
        """Close every cached session."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await self._close_entry(entry)

    async def _close_entry(self, entry: _CacheEntry) -> None:
        if entry.loop is not asyncio.get_running_loop():
            # Its loop is gone or elsewhere; the session cannot be closed from here.
            logger.info(f"Dropping MCP session for {entry.endpoint} from another event loop")
            return
        if not entry.task.done():
            entry.task.cancel()
            return
        if entry.task.cancelled() or entry.task.exception() is not None:
            return
        try:
            await entry.task.result().stack.aclose()
        except Exception as e:
            logger.warning(f"Error while closing MCP session for {entry.endpoint}: {e}")
