"""CLI interface for BigModel WebSearch Prime."""

import asyncio
import sys
from typing import Optional

import typer

from .config import load_settings
from .exceptions import BigModelSearchError
from .models import SearchParams, SearchResult
from .observability import setup_structured_logging
from .search import WebSearchPrime

app = typer.Typer(help="Web search via the BigModel WebSearch Prime MCP tool")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query (<= 70 chars recommended)"),
    count: int = typer.Option(10, "--count", "-n", min=1, max=50, help="Number of results"),
    location: str = typer.Option("cn", "--location", "-l", help="Region hint: cn or us"),
    content_size: str = typer.Option("medium", "--content-size", help="Summary size: medium or high"),
    recency: str = typer.Option("noLimit", "--recency", help="oneDay, oneWeek, oneMonth, oneYear or noLimit"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Only return results from this domain"),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Override the MCP endpoint"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Soft timeout in milliseconds"),
    validate_tool: bool = typer.Option(False, "--validate-tool", help="Check the tool exists before calling"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    env_file: Optional[str] = typer.Option(".env", "--env-file", help="Env file to load BIGMODEL_API_KEY from"),
) -> None:
    """Run a web search and print the results."""
    settings = load_settings(env_file)
    setup_structured_logging(settings.logging_level)

    try:
        params = SearchParams(
            search_query=query,
            count=count,
            location=location,
            content_size=content_size,
            search_domain_filter=domain,
            search_recency_filter=recency,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e

    options = settings.to_options().model_copy(
        update={
            "endpoint": endpoint or settings.endpoint,
            "timeout_ms": timeout_ms if timeout_ms is not None else settings.timeout_ms,
            "validate_tool_availability": validate_tool or settings.validate_tool_availability,
        }
    )

    async def _search() -> SearchResult:
        async with WebSearchPrime.from_settings(settings) as client:
            return await client.search(params, options)

    try:
        result = asyncio.run(_search())
    except BigModelSearchError as e:
        typer.echo(f"Error [{e.code}]: {e}", err=True)
        raise typer.Exit(code=1) from e

    if as_json:
        sys.stdout.write(result.model_dump_json(indent=2) + "\n")
        return

    for item in result.items:
        print(f"- {item.title}")
        print(f"  {item.url}")
        if item.summary:
            print(f"  {item.summary[:120]}...")


@app.command()
def config(
    env_file: Optional[str] = typer.Option(".env", "--env-file", help="Env file to load settings from"),
) -> None:
    """Show current configuration."""
    settings = load_settings(env_file)
    print(f"Endpoint: {settings.endpoint}")
    print(f"API Key: {'(set)' if settings.get_api_key() else '(missing)'}")
    print(f"Reuse Connection: {settings.reuse_connection}")
    print(f"Validate Tool: {settings.validate_tool_availability}")
    print(f"Timeout (ms): {settings.timeout_ms or '(none)'}")
    print(f"Session TTL (s): {settings.session_ttl_seconds or '(none)'}")
    print(f"Evict Failed Sessions: {settings.evict_failed_sessions}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
