import unittest
from unittest.mock import MagicMock

import requests

from BSMCP.services.shared.errors import (
    ForbiddenError,
    MissingCredentialError,
    NetworkError,
    RateLimitError,
    SearchProviderError,
    UnauthorizedError,
    UpstreamServerError,
)
from BSMCP.services.shared.settings import build_settings
from BSMCP.tools.search.api_key_validator import (
    APIKeyError,
    is_placeholder_key,
    validate_brave_api_key,
)
from BSMCP.tools.search.brave import BraveSearchProvider
from BSMCP.tools.search.ratelimit import RateLimiter

API_KEY = "BSA-test-key-0123456789"


def _response(status=200, body=None, reason="OK", invalid_json=False):
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.reason = reason
    if invalid_json:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body if body is not None else {}
    return response


class TestBraveSearchProvider(unittest.TestCase):

    def setUp(self):
        self.settings = build_settings({"brave": {"api_key": API_KEY, "timeout_seconds": 5}})
        self.session = MagicMock(spec=requests.Session)
        self.session.get.return_value = _response(body={"web": {"results": []}})
        self.provider = BraveSearchProvider(self.settings, session=self.session)

    def test_request_shape(self):
        self.provider.search("news", {"q": "rust latest", "count": 5, "country": None, "freshness": "pd"})

        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], "https://api.search.brave.com/res/v1/news/search")
        self.assertEqual(kwargs["params"], {"q": "rust latest", "count": 5, "freshness": "pd"})
        self.assertEqual(kwargs["timeout"], 5)
        headers = kwargs["headers"]
        self.assertEqual(headers["X-Subscription-Token"], API_KEY)
        self.assertEqual(headers["Accept"], "application/json")
        self.assertEqual(headers["Accept-Encoding"], "gzip")
        self.assertEqual(headers["User-Agent"], "brave-search-mcp/1.0.0")

    def test_endpoints_per_type(self):
        for search_type in ("web", "news", "images", "videos"):
            self.provider.search(search_type, {"q": "x"})
            url = self.session.get.call_args[0][0]
            self.assertTrue(url.endswith(f"/{search_type}/search"), url)

    def test_booleans_are_lowercase_strings_and_count_is_clamped(self):
        self.provider.search("web", {"q": "x", "count": 50, "spellcheck": False})
        params = self.session.get.call_args[1]["params"]
        self.assertEqual(params["count"], 20)
        self.assertEqual(params["spellcheck"], "false")

    def test_returns_decoded_body(self):
        body = {"type": "search", "web": {"results": [{"title": "a"}]}}
        self.session.get.return_value = _response(body=body)
        self.assertEqual(self.provider.search("web", {"q": "x"}), body)

    def test_status_mapping(self):
        cases = [
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (429, RateLimitError),
            (500, UpstreamServerError),
            (503, UpstreamServerError),
        ]
        for status, expected in cases:
            self.session.get.return_value = _response(status=status, reason="err")
            with self.assertRaises(expected):
                self.provider.search("web", {"q": "x"})

    def test_other_status_carries_body_message(self):
        self.session.get.return_value = _response(
            status=422, body={"error": {"detail": "Unable to validate request parameter(s)"}}
        )
        with self.assertRaises(SearchProviderError) as ctx:
            self.provider.search("web", {"q": "x"})

        self.assertEqual(type(ctx.exception), SearchProviderError)
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertIn("Unable to validate", ctx.exception.message)

    def test_other_status_falls_back_to_reason(self):
        self.session.get.return_value = _response(status=404, reason="Not Found", invalid_json=True)
        with self.assertRaises(SearchProviderError) as ctx:
            self.provider.search("web", {"q": "x"})
        self.assertIn("Not Found", ctx.exception.message)

    def test_timeout_and_connection_errors_are_network_errors(self):
        for exc in (requests.Timeout("slow"), requests.ConnectionError("refused")):
            self.session.get.side_effect = exc
            with self.assertRaises(NetworkError):
                self.provider.search("web", {"q": "x"})

    def test_invalid_json_body(self):
        self.session.get.return_value = _response(invalid_json=True)
        with self.assertRaises(SearchProviderError):
            self.provider.search("web", {"q": "x"})

    def test_non_object_body(self):
        self.session.get.return_value = _response(body=[1, 2, 3])
        with self.assertRaises(SearchProviderError):
            self.provider.search("web", {"q": "x"})

    def test_missing_credential_never_touches_network(self):
        limiter = MagicMock(spec=RateLimiter)
        provider = BraveSearchProvider(build_settings({}), session=self.session, rate_limiter=limiter)

        self.assertFalse(provider.is_configured)
        with self.assertRaises(MissingCredentialError):
            provider.search("web", {"q": "x"})

        self.session.get.assert_not_called()
        limiter.acquire.assert_not_called()

    def test_local_rate_limit_fails_before_request(self):
        provider = BraveSearchProvider(self.settings, session=self.session, rate_limiter=RateLimiter(2))

        provider.search("web", {"q": "x"})
        provider.search("web", {"q": "x"})
        with self.assertRaises(RateLimitError) as ctx:
            provider.search("web", {"q": "x"})

        self.assertTrue(ctx.exception.local)
        self.assertEqual(self.session.get.call_count, 2)

    def test_request_log_reports_remaining_budget(self):
        provider = BraveSearchProvider(self.settings, session=self.session, rate_limiter=RateLimiter(3))
        provider.logger = MagicMock()

        provider.search("web", {"q": "x"})
        provider.search("web", {"q": "x"})

        payloads = [c.args[1] for c in provider.logger.log.call_args_list if c.args[0] == "upstream_request"]
        self.assertEqual([p["rate_limit_remaining"] for p in payloads], [2, 1])

    def test_unknown_search_type(self):
        with self.assertRaises(SearchProviderError):
            self.provider.search("maps", {"q": "x"})
        self.session.get.assert_not_called()

    def test_health_check_is_local(self):
        self.assertTrue(self.provider.health_check())
        self.assertFalse(BraveSearchProvider(build_settings({}), session=self.session).health_check())
        self.session.get.assert_not_called()


class TestApiKeyValidator(unittest.TestCase):

    def test_valid_key(self):
        self.assertEqual(validate_brave_api_key(API_KEY), (True, None))

    def test_missing_key(self):
        is_valid, message = validate_brave_api_key(None, raise_on_invalid=False)
        self.assertFalse(is_valid)
        self.assertIn("BRAVE_API_KEY", message)

        with self.assertRaises(APIKeyError):
            validate_brave_api_key("  ")

    def test_placeholder_key(self):
        self.assertTrue(is_placeholder_key("your_api_key_here"))
        is_valid, message = validate_brave_api_key("YOUR_API_KEY_HERE", raise_on_invalid=False)
        self.assertFalse(is_valid)
        self.assertIn("placeholder", message)

    def test_short_key_is_masked(self):
        is_valid, message = validate_brave_api_key("abcdefg", raise_on_invalid=False)
        self.assertFalse(is_valid)
        self.assertIn("abc...", message)
        self.assertNotIn("abcdefg", message)


if __name__ == '__main__':
    unittest.main()
