"""MCP stdio server exposing the search tools, the results resource and the analysis prompt.

Usage:
    python -m BSMCP.services.search.mcp_server
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from BSMCP.services.shared.errors import (
    BSMCPError,
    format_user_error,
    init_sentry,
    map_to_mcp_error_code,
)
from BSMCP.services.shared.logger import SearchLogger, configure_logging
from BSMCP.services.shared.settings import BSMCPSettings, get_settings

from .prompts import SearchAnalysisPrompt
from .resource import SearchResultsResource
from .service import ToolRegistry

logger = SearchLogger("mcp")


def _mcp_error(exc: Exception) -> McpError:
    return McpError(types.ErrorData(code=map_to_mcp_error_code(exc), message=format_user_error(exc)))


def build_server(
    settings: BSMCPSettings,
    registry: ToolRegistry,
    resource: Optional[SearchResultsResource] = None,
    prompt: Optional[SearchAnalysisPrompt] = None,
) -> Server:
    """Wire the registry, resource and prompt into a low-level MCP server."""
    resource = resource or SearchResultsResource(registry)
    prompt = prompt or SearchAnalysisPrompt()
    server = Server(settings.server.name, version=settings.server.version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(name=d.name, description=d.description, inputSchema=d.input_schema)
            for d in registry.list_tools()
        ]

    # Arguments are validated by the request models, not by the SDK.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        tool = registry.get(name)
        # Pipeline is synchronous (requests, redis); keep it off the event loop.
        result = await asyncio.to_thread(tool.execute, arguments or {})
        if result.is_error:
            logger.warning("tool_arguments_rejected", {"tool": name, "error": result.error_message})
            return types.CallToolResult(content=[], isError=True)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=item.text) for item in result.content],
            isError=False,
        )

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        definition = resource.definition()
        return [
            types.Resource(
                uri=definition["uri"],
                name=definition["name"],
                description=definition["description"],
                mimeType=definition["mimeType"],
            )
        ]

    @server.read_resource()
    async def read_resource(uri: Any) -> List[ReadResourceContents]:
        try:
            payload = await asyncio.to_thread(resource.read, str(uri))
        except BSMCPError as e:
            logger.warning("resource_read_failed", {"uri": str(uri), "error": e.message})
            raise _mcp_error(e) from e
        return [ReadResourceContents(content=json.dumps(payload, indent=2, default=str), mime_type="application/json")]

    @server.list_prompts()
    async def list_prompts() -> List[types.Prompt]:
        return [
            types.Prompt(
                name=prompt.name,
                description=prompt.description,
                arguments=[types.PromptArgument(**argument) for argument in prompt.arguments],
            )
        ]

    @server.get_prompt()
    async def get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        if name != prompt.name:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Unknown prompt: {name}"))
        try:
            rendered = prompt.generate(arguments)
        except BSMCPError as e:
            raise _mcp_error(e) from e
        return types.GetPromptResult(
            description=rendered["description"],
            messages=[
                types.PromptMessage(
                    role=message["role"],
                    content=types.TextContent(type="text", text=message["content"]["text"]),
                )
                for message in rendered["messages"]
            ],
        )

    return server


async def serve(settings: Optional[BSMCPSettings] = None) -> None:
    settings = settings or get_settings()
    configure_logging(settings.logging)
    init_sentry(settings.sentry)

    registry = ToolRegistry.from_settings(settings)
    server = build_server(settings, registry)
    logger.log("server_started", {"transport": "stdio", "tools": len(registry), "mode": registry.mode})

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    asyncio.run(serve())


if __name__ == "__main__":
    main()
