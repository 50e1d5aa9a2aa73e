import json
import unittest

from BSMCP.services.shared.errors import ValidationError
from BSMCP.services.shared.settings import LimitsConfig
from BSMCP.tools.search.schema import (
    ImageSearchRequest,
    NewsSearchRequest,
    ToolDefinition,
    ToolResult,
    VideoSearchRequest,
    WebSearchRequest,
    validate_arguments,
)


class TestArgumentValidation(unittest.TestCase):

    def assertRejected(self, model, raw, field):
        with self.assertRaises(ValidationError) as ctx:
            validate_arguments(model, raw)
        fields = [path for path, _ in ctx.exception.issues]
        self.assertIn(field, fields, ctx.exception.message)
        return ctx.exception

    def test_defaults_are_filled_in(self):
        request = validate_arguments(WebSearchRequest, {"query": "python"})

        self.assertEqual(request.count, 10)
        self.assertEqual(request.offset, 0)
        self.assertTrue(request.safe_search)
        self.assertIsNone(request.country)

    def test_boundary_values_that_fail(self):
        self.assertRejected(WebSearchRequest, {"query": "q", "count": 0}, "count")
        self.assertRejected(WebSearchRequest, {"query": "q", "count": 21}, "count")
        self.assertRejected(WebSearchRequest, {"query": "q", "offset": -1}, "offset")
        self.assertRejected(WebSearchRequest, {"query": "q", "offset": 10}, "offset")
        self.assertRejected(WebSearchRequest, {"query": ""}, "query")
        self.assertRejected(WebSearchRequest, {"query": "x" * 401}, "query")
        self.assertRejected(WebSearchRequest, {"query": "q", "country": "usa"}, "country")

    def test_boundary_values_that_pass(self):
        for raw in (
            {"query": "q", "count": 1},
            {"query": "q", "count": 20},
            {"query": "q", "offset": 0},
            {"query": "q", "offset": 9},
            {"query": "q", "country": "US"},
            {"query": "x" * 400},
        ):
            validate_arguments(WebSearchRequest, raw)

    def test_lowercase_country_is_rejected(self):
        error = self.assertRejected(NewsSearchRequest, {"query": "q", "country": "us"}, "country")
        self.assertIn("2 uppercase letters", error.message)

    def test_missing_query(self):
        self.assertRejected(NewsSearchRequest, {}, "query")

    def test_every_violation_is_reported(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_arguments(WebSearchRequest, {"query": "", "count": 99, "offset": 50})

        fields = {path for path, _ in ctx.exception.issues}
        self.assertEqual(fields, {"query", "count", "offset"})
        self.assertTrue(ctx.exception.message.startswith("Validation failed: "))

    def test_count_must_be_integer(self):
        self.assertRejected(WebSearchRequest, {"query": "q", "count": "5"}, "count")
        self.assertRejected(WebSearchRequest, {"query": "q", "count": 5.5}, "count")

    def test_query_must_be_string(self):
        self.assertRejected(WebSearchRequest, {"query": 42}, "query")

    def test_type_specific_enums(self):
        self.assertRejected(NewsSearchRequest, {"query": "q", "freshness": "pyear"}, "freshness")
        self.assertRejected(ImageSearchRequest, {"query": "q", "size": "huge"}, "size")
        self.assertRejected(ImageSearchRequest, {"query": "q", "layout": "round"}, "layout")
        self.assertRejected(ImageSearchRequest, {"query": "q", "type": "vector"}, "type")
        self.assertRejected(VideoSearchRequest, {"query": "q", "duration": "epic"}, "duration")
        self.assertRejected(VideoSearchRequest, {"query": "q", "resolution": "4k"}, "resolution")

        news = validate_arguments(NewsSearchRequest, {"query": "q"})
        self.assertEqual(news.freshness, "pw")
        image = validate_arguments(ImageSearchRequest, {"query": "q", "size": "large", "layout": "wide"})
        self.assertEqual((image.size, image.layout), ("large", "wide"))

    def test_unknown_fields_are_ignored(self):
        request = validate_arguments(VideoSearchRequest, {"query": "q", "bogus": True})
        self.assertFalse(hasattr(request, "bogus"))

    def test_non_object_arguments(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_arguments(WebSearchRequest, ["query"])
        self.assertIn("JSON object", ctx.exception.message)

    def test_none_arguments_means_empty(self):
        self.assertRejected(WebSearchRequest, None, "query")

    def test_configured_limits_tighten_bounds(self):
        limits = LimitsConfig(max_query_length=10, max_results=5)

        with self.assertRaises(ValidationError) as ctx:
            validate_arguments(WebSearchRequest, {"query": "x" * 11, "count": 6}, limits=limits)

        self.assertIn("Query too long (max 10 characters)", ctx.exception.message)
        self.assertIn("Count cannot exceed 5", ctx.exception.message)
        validate_arguments(WebSearchRequest, {"query": "x" * 10, "count": 5}, limits=limits)


class TestToolSurfaceModels(unittest.TestCase):

    def test_tool_definition_is_immutable(self):
        definition = ToolDefinition(name="t", description="d", input_schema={"type": "object"})
        with self.assertRaises(Exception):
            definition.name = "other"
        self.assertEqual(definition.as_listing()["inputSchema"], {"type": "object"})

    def test_payload_result_serializes_with_wire_names(self):
        result = ToolResult.from_payload({"results": [1, 2]})
        dumped = result.model_dump(by_alias=True)

        self.assertFalse(dumped["isError"])
        self.assertEqual(dumped["content"][0]["type"], "text")
        self.assertEqual(dumped["content"][0]["mimeType"], "application/json")
        self.assertEqual(json.loads(dumped["content"][0]["text"]), {"results": [1, 2]})
        self.assertNotIn("error_message", dumped)
        self.assertEqual(result.data(), {"results": [1, 2]})

    def test_failure_has_no_content(self):
        result = ToolResult.failure("Validation failed: query: too short")

        self.assertTrue(result.is_error)
        self.assertEqual(result.content, [])
        self.assertIsNone(result.data())
        self.assertEqual(result.error_message, "Validation failed: query: too short")


if __name__ == '__main__':
    unittest.main()
