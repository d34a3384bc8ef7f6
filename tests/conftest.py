"""Pytest configuration and fixtures for bigmodel-search-mcp tests."""

import asyncio
import json
import os
from typing import Any

import pytest
from mcp.types import CallToolResult, TextContent, Tool


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: End-to-end tests requiring a real BigModel API key")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ambient BigModel settings out of every test."""
    for var in list(os.environ.keys()):
        if var.startswith("BIGMODEL_"):
            monkeypatch.delenv(var, raising=False)


def text_result(payload: Any, *, is_error: bool = False) -> CallToolResult:
    """Tool result with one text block; non-strings are JSON encoded."""
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


class FakeMCPClient:
    """Stands in for a fastmcp Client: async context manager plus list/call methods."""

    def __init__(self, factory: "FakeClientFactory", endpoint: str, headers: dict[str, str]) -> None:
        self.factory = factory
        self.endpoint = endpoint
        self.headers = headers
        self.connected = False
        self.closed = False
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def __aenter__(self) -> "FakeMCPClient":
        self.factory.connect_attempts += 1
        await asyncio.sleep(self.factory.connect_delay)
        if self.factory.connect_error is not None:
            raise self.factory.connect_error
        self.connected = True
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True
        if self.factory.close_error is not None:
            raise self.factory.close_error

    async def list_tools(self) -> list[Tool]:
        self.factory.list_calls += 1
        if self.factory.list_error is not None:
            raise self.factory.list_error
        return [Tool(name=name, inputSchema={"type": "object"}) for name in self.factory.tool_names]

    async def call_tool_mcp(self, name: str, arguments: dict[str, Any]) -> CallToolResult:
        self.calls.append((name, arguments))
        self.factory.tool_calls.append((name, arguments))
        await asyncio.sleep(self.factory.call_delay)
        if self.factory.call_error is not None:
            raise self.factory.call_error
        return self.factory.response


class FakeClientFactory:
    """Client factory recording every client it creates."""

    def __init__(self) -> None:
        self.clients: list[FakeMCPClient] = []
        self.connect_attempts = 0
        self.connect_delay = 0.0
        self.connect_error: BaseException | None = None
        self.close_error: BaseException | None = None
        self.list_calls = 0
        self.list_error: BaseException | None = None
        self.tool_names = ["webSearchPrime"]
        self.tool_calls: list[tuple[str, dict[str, Any]]] = []
        self.call_delay = 0.0
        self.call_error: BaseException | None = None
        self.response: CallToolResult = text_result([])

    def respond_with(self, payload: Any, *, is_error: bool = False) -> None:
        self.response = text_result(payload, is_error=is_error)

    def __call__(self, endpoint: str, headers: dict[str, str]) -> FakeMCPClient:
        client = FakeMCPClient(self, endpoint, headers)
        self.clients.append(client)
        return client


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()
