import unittest
from unittest.mock import MagicMock

import requests

from BSMCP.services.search.service import ToolRegistry
from BSMCP.services.shared.settings import build_settings
from BSMCP.tools.search.brave import BraveSearchProvider


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _response(body):
    response = MagicMock(spec=requests.Response)
    response.status_code = 200
    response.reason = "OK"
    response.json.return_value = body
    return response


LIVE_WEB = {
    "type": "search",
    "web": {
        "results": [
            {
                "title": "Rust Programming Language",
                "url": "https://www.rust-lang.org/",
                "description": "A language empowering everyone to build reliable software.",
                "meta_url": {"hostname": "www.rust-lang.org"},
                "age": "3 days ago",
                "language": "en",
                "family_friendly": True,
            },
            {
                "title": "The Rust Book",
                "url": "https://doc.rust-lang.org/book/",
                "description": "Learn Rust from first principles.",
                "meta_url": {"hostname": "doc.rust-lang.org"},
            },
        ]
    },
}


class TestMockModeEndToEnd(unittest.TestCase):
    """Registry built the way the servers build it, without an API key."""

    def setUp(self):
        self.registry = ToolRegistry.from_settings(build_settings({}))

    def test_image_search(self):
        result = self.registry.execute("brave_image_search", {"query": "cats", "count": 2, "size": "large"})
        envelope = result.data()

        self.assertFalse(result.is_error)
        self.assertEqual(envelope["search_type"], "images")
        self.assertEqual(envelope["results_count"], 2)
        self.assertEqual(envelope["search_metadata"]["search_params"]["size"], "large")
        for item in envelope["results"]:
            self.assertIn("cats", item["title"])
            self.assertIsNotNone(item["dimensions"]["width"])
            self.assertIsNotNone(item["dimensions"]["height"])
            self.assertIsNotNone(item["media_url"])

    def test_web_ranks_follow_offset(self):
        envelope = self.registry.execute(
            "brave_web_search", {"query": "rust", "offset": 5, "count": 3}
        ).data()
        self.assertEqual([item["rank"] for item in envelope["results"]], [6, 7, 8])

    def test_video_durations(self):
        envelope = self.registry.execute("brave_video_search", {"query": "bread"}).data()

        self.assertEqual(envelope["results_count"], 2)
        for item in envelope["results"]:
            self.assertGreater(item["duration_seconds"], 0)

    def test_every_result_has_common_fields(self):
        for name in ("brave_web_search", "brave_news_search", "brave_image_search", "brave_video_search"):
            for item in self.registry.execute(name, {"query": "solar"}).data()["results"]:
                for field in ("rank", "title", "url", "source", "relevance_score"):
                    self.assertIn(field, item, name)
                self.assertGreaterEqual(item["relevance_score"], 0.0)
                self.assertLessEqual(item["relevance_score"], 1.0)


class TestLiveModeEndToEnd(unittest.TestCase):
    """Real provider and cache wiring with only the HTTP session faked."""

    def setUp(self):
        self.clock = FakeClock()
        self.settings = build_settings({"brave": {"api_key": "BSA-test-key-0123456789"}})
        self.session = MagicMock(spec=requests.Session)
        self.session.get.return_value = _response(LIVE_WEB)
        provider = BraveSearchProvider(self.settings, session=self.session)
        self.registry = ToolRegistry.from_settings(self.settings, provider=provider, clock=self.clock)

    def test_live_results(self):
        envelope = self.registry.execute("brave_web_search", {"query": "rust"}).data()

        self.assertFalse(envelope["search_metadata"]["is_mock"])
        self.assertEqual(envelope["results"][0]["source"], "www.rust-lang.org")
        self.assertEqual(envelope["results"][0]["metadata"]["age"], "3 days ago")
        self.assertEqual(self.session.get.call_args[1]["params"]["q"], "rust latest")

    def test_network_failure_still_returns_results(self):
        self.session.get.side_effect = requests.ConnectionError("connection refused")

        result = self.registry.execute("brave_news_search", {"query": "rust"})
        metadata = result.data()["search_metadata"]

        self.assertFalse(result.is_error)
        self.assertTrue(metadata["is_mock"])
        self.assertEqual(metadata["fallback_reason"], "upstream_error")
        self.assertIn("unavailable", metadata["error"])
        self.assertGreater(len(result.data()["results"]), 0)

    def test_cache_aside_in_any_key_order_until_ttl(self):
        self.registry.execute("brave_web_search", {"query": "rust", "count": 2, "country": "GB"})
        self.registry.execute("brave_web_search", {"country": "GB", "count": 2, "query": "rust"})
        self.assertEqual(self.session.get.call_count, 1)

        self.clock.now += self.settings.cache.ttl_seconds
        self.registry.execute("brave_web_search", {"query": "rust", "count": 2, "country": "GB"})
        self.assertEqual(self.session.get.call_count, 2)


if __name__ == '__main__':
    unittest.main()
