import asyncio
import json
import unittest

from mcp import types
from mcp.shared.exceptions import McpError

from BSMCP.services.search.mcp_server import build_server
from BSMCP.services.search.service import ToolRegistry
from BSMCP.services.shared.settings import build_settings


class TestMCPServer(unittest.TestCase):
    """Drives the registered request handlers directly, without a transport."""

    def setUp(self):
        settings = build_settings({})
        self.server = build_server(settings, ToolRegistry.from_settings(settings))

    def _handle(self, request_type, request):
        return asyncio.run(self.server.request_handlers[request_type](request)).root

    def test_list_tools(self):
        result = self._handle(types.ListToolsRequest, types.ListToolsRequest(method="tools/list"))

        names = sorted(tool.name for tool in result.tools)
        self.assertEqual(
            names,
            ["brave_image_search", "brave_news_search", "brave_video_search", "brave_web_search"],
        )

    def test_call_tool(self):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="brave_news_search", arguments={"query": "rust", "count": 2}),
        )
        result = self._handle(types.CallToolRequest, request)

        self.assertFalse(result.isError)
        envelope = json.loads(result.content[0].text)
        self.assertEqual(envelope["search_type"], "news")
        self.assertEqual(envelope["results_count"], 2)

    def test_call_tool_with_invalid_arguments_is_error_result(self):
        request = types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(name="brave_web_search", arguments={"query": ""}),
        )
        result = self._handle(types.CallToolRequest, request)

        self.assertTrue(result.isError)
        self.assertEqual(result.content, [])

    def test_list_and_read_resource(self):
        listed = self._handle(types.ListResourcesRequest, types.ListResourcesRequest(method="resources/list"))
        self.assertEqual(str(listed.resources[0].uri).rstrip("/"), "brave://search-results")

        request = types.ReadResourceRequest(
            method="resources/read",
            params=types.ReadResourceRequestParams(uri="brave://search-results?query=rust&type=videos"),
        )
        result = self._handle(types.ReadResourceRequest, request)

        payload = json.loads(result.contents[0].text)
        self.assertEqual(payload["resource_type"], "search_results")
        self.assertEqual(payload["search_type"], "videos")

    def test_read_resource_without_query(self):
        request = types.ReadResourceRequest(
            method="resources/read",
            params=types.ReadResourceRequestParams(uri="brave://search-results?type=web"),
        )
        with self.assertRaises(McpError) as ctx:
            self._handle(types.ReadResourceRequest, request)
        self.assertEqual(ctx.exception.error.code, types.INVALID_PARAMS)

    def test_get_prompt(self):
        request = types.GetPromptRequest(
            method="prompts/get",
            params=types.GetPromptRequestParams(
                name="search_and_analyze", arguments={"query": "fusion", "depth": "surface"}
            ),
        )
        result = self._handle(types.GetPromptRequest, request)

        self.assertEqual(result.description, "Research and analyze: fusion (surface web analysis)")
        self.assertEqual(result.messages[0].role, "user")
        self.assertIn("Count: 5 results", result.messages[0].content.text)

    def test_get_unknown_prompt(self):
        request = types.GetPromptRequest(
            method="prompts/get",
            params=types.GetPromptRequestParams(name="summarize", arguments={}),
        )
        with self.assertRaises(McpError):
            self._handle(types.GetPromptRequest, request)


if __name__ == '__main__':
    unittest.main()
