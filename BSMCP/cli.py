#!/usr/bin/env python3
"""
Brave Search MCP CLI

Typer/Rich-powered command-line interface for running the search tools
directly, listing them, and starting the MCP stdio or HTTP servers.
"""

import json
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from BSMCP.services.search.capabilities import CAPABILITIES
from BSMCP.services.search.service import ToolRegistry
from BSMCP.services.shared.errors import ToolNotFoundError, init_sentry
from BSMCP.services.shared.logger import configure_logging
from BSMCP.services.shared.settings import get_settings

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Brave Search MCP server and CLI")


def _build_registry() -> ToolRegistry:
    settings = get_settings()
    configure_logging(settings.logging)
    init_sentry(settings.sentry)
    return ToolRegistry.from_settings(settings)


def _render_results(envelope: Dict[str, Any]) -> None:
    metadata = envelope["search_metadata"]
    mode = "[yellow]mock data[/yellow]" if metadata["is_mock"] else "[green]live[/green]"
    console.print(
        Panel.fit(
            f"[bold cyan]{envelope['search_type'].title()} search[/bold cyan]\n\n"
            f"[bold]Query:[/bold] {envelope['query']}\n"
            f"[bold]Enhanced:[/bold] {metadata['enhanced_query']}\n"
            f"[bold]Results:[/bold] {envelope['results_count']} ({mode})",
            border_style="cyan",
        )
    )
    if metadata.get("error"):
        console.print(f"[yellow][bsmcp][/yellow] {metadata['error']}")
        console.print(f"[yellow][bsmcp][/yellow] {metadata['fallback_suggestion']}")

    table = Table(show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Source")
    table.add_column("URL", overflow="fold")
    table.add_column("Score", justify="right")
    for result in envelope["results"]:
        table.add_row(
            str(result["rank"]),
            result["title"],
            result["source"],
            result["url"],
            f"{result['relevance_score']:.2f}",
        )
    console.print(table)


@app.command("search")
def search_command(
    search_type: str = typer.Argument(..., help="Search type: web, news, images or videos."),
    query: str = typer.Argument(..., help="Search query."),
    count: int = typer.Option(10, "--count", "-n", help="Number of results to return (1-20)."),
    offset: Optional[int] = typer.Option(None, "--offset", help="Page offset for web search (0-9)."),
    country: Optional[str] = typer.Option(None, "--country", "-c", help="Two-letter country code, e.g. US."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON envelope."),
) -> None:
    """Run a single search through the tool pipeline."""
    capability = CAPABILITIES.get(search_type)
    if capability is None:
        err_console.print(f"[bold red][bsmcp][/bold red] Unknown search type '{search_type}'.")
        raise typer.Exit(code=2)

    arguments: Dict[str, Any] = {"query": query, "count": count}
    if offset is not None:
        arguments["offset"] = offset
    if country is not None:
        arguments["country"] = country

    registry = _build_registry()
    result = registry.execute(capability.tool_name, arguments)

    if result.is_error:
        err_console.print(f"[bold red][bsmcp][/bold red] {result.error_message}")
        raise typer.Exit(code=1)

    envelope = result.data()
    if as_json:
        console.print(json.dumps(envelope, indent=2), markup=False, soft_wrap=True)
    else:
        _render_results(envelope)


@app.command("tools")
def tools_command() -> None:
    """List the registered tools."""
    registry = _build_registry()
    table = Table(title=f"Tools ({registry.mode} mode)")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    for definition in registry.list_tools():
        table.add_row(definition.name, definition.description)
    console.print(table)


@app.command("call")
def call_command(
    name: str = typer.Argument(..., help="Tool name, e.g. brave_web_search."),
    arguments: str = typer.Argument("{}", help="Tool arguments as a JSON object."),
) -> None:
    """Call a tool by name with JSON arguments and print the raw result."""
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as exc:
        err_console.print(f"[bold red][bsmcp][/bold red] Arguments are not valid JSON: {exc}")
        raise typer.Exit(code=2)

    registry = _build_registry()
    try:
        result = registry.execute(name, parsed)
    except ToolNotFoundError as exc:
        err_console.print(f"[bold red][bsmcp][/bold red] {exc.message}")
        raise typer.Exit(code=2)

    console.print(json.dumps(result.model_dump(by_alias=True), indent=2), markup=False, soft_wrap=True)
    raise typer.Exit(code=1 if result.is_error else 0)


@app.command("serve-mcp")
def serve_mcp_command() -> None:
    """Serve the tools over MCP on stdio."""
    from BSMCP.services.search.mcp_server import main as mcp_main

    mcp_main()


@app.command("serve-http")
def serve_http_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to BSMCP_HTTP_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (defaults to BSMCP_HTTP_PORT)."),
) -> None:
    """Serve the tools over HTTP with FastAPI."""
    import uvicorn

    from BSMCP.services.search.fastapi_server import create_app

    settings = get_settings()
    configure_logging(settings.logging)
    init_sentry(settings.sentry)
    uvicorn.run(
        create_app(settings),
        host=host or settings.http.host,
        port=port or settings.http.port,
    )


def main() -> None:
    """Entrypoint used by `python -m BSMCP.cli` or a console_script."""
    app()


if __name__ == "__main__":
    main()
