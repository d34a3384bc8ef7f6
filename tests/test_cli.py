"""Tests for the Typer CLI."""

import json

import pytest
from typer.testing import CliRunner

from bigmodel_search_mcp import cli
from bigmodel_search_mcp.exceptions import MissingCredentialError
from bigmodel_search_mcp.models import SearchItem, SearchMeta, SearchResult

runner = CliRunner()


class FakeWebSearchPrime:
    calls: list = []
    error: Exception | None = None

    @classmethod
    def from_settings(cls, settings, cache=None):
        return cls()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def search(self, params, options):
        FakeWebSearchPrime.calls.append((params, options))
        if FakeWebSearchPrime.error is not None:
            raise FakeWebSearchPrime.error
        return SearchResult(
            items=[SearchItem(title="Title", url="http://x", summary="S" * 200)],
            raw_blocks=[],
            meta=SearchMeta(endpoint=options.endpoint, took_ms=1, requested_count=params.count, returned_count=1, reused_connection=True),
        )


@pytest.fixture(autouse=True)
def fake_client(monkeypatch, tmp_path):
    FakeWebSearchPrime.calls = []
    FakeWebSearchPrime.error = None
    monkeypatch.setattr(cli, "WebSearchPrime", FakeWebSearchPrime)
    monkeypatch.chdir(tmp_path)


def test_search_prints_items():
    result = runner.invoke(cli.app, ["search", "mcp", "--count", "3", "--location", "us"])
    assert result.exit_code == 0, result.output
    assert "- Title" in result.output
    assert "http://x" in result.output
    assert ("S" * 120 + "...") in result.output

    params, options = FakeWebSearchPrime.calls[0]
    assert params.search_query == "mcp"
    assert params.count == 3
    assert params.location == "us"
    assert options.reuse_connection is True


def test_search_json_output():
    result = runner.invoke(cli.app, ["search", "mcp", "--json", "--endpoint", "https://alt.test/mcp"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["meta"]["endpoint"] == "https://alt.test/mcp"
    assert data["items"][0]["url"] == "http://x"


def test_search_options_from_flags():
    result = runner.invoke(cli.app, ["search", "mcp", "--timeout-ms", "500", "--validate-tool"])
    assert result.exit_code == 0, result.output
    _, options = FakeWebSearchPrime.calls[0]
    assert options.timeout_ms == 500
    assert options.validate_tool_availability is True


def test_invalid_params_exit_code():
    result = runner.invoke(cli.app, ["search", "mcp", "--location", "eu"])
    assert result.exit_code == 2
    assert FakeWebSearchPrime.calls == []


def test_library_error_exit_code():
    FakeWebSearchPrime.error = MissingCredentialError("Missing BigModel API key")
    result = runner.invoke(cli.app, ["search", "mcp"])
    assert result.exit_code == 1
    assert "MISSING_API_KEY" in result.output


def test_config_masks_key(monkeypatch):
    monkeypatch.setenv("BIGMODEL_API_KEY", "very-secret")
    result = runner.invoke(cli.app, ["config"])
    assert result.exit_code == 0
    assert "very-secret" not in result.output
    assert "API Key: (set)" in result.output
