from typing import Any, Callable, Dict
from urllib.parse import quote

from .base import SearchProvider


def _slug(query: str) -> str:
    return quote(query, safe="")


def mock_web_response(query: str) -> Dict[str, Any]:
    q = _slug(query)
    return {
        "type": "search",
        "web": {
            "results": [
                {
                    "title": f'Comprehensive guide to "{query}"',
                    "url": f"https://example.com/guide/{q}",
                    "description": (
                        f"This is a comprehensive guide about {query}. It covers all the essential "
                        "aspects and provides detailed information for both beginners and advanced users."
                    ),
                    "age": "2024-01-15T10:30:00Z",
                    "language": "en",
                    "family_friendly": True,
                    "meta_url": {"hostname": "example.com"},
                },
                {
                    "title": f"Latest developments in {query}",
                    "url": f"https://example.com/news/{q}",
                    "description": (
                        f"Recent news and developments related to {query}. Stay updated with the "
                        "latest trends and innovations in this field."
                    ),
                    "age": "2024-01-14T15:45:00Z",
                    "language": "en",
                    "family_friendly": True,
                    "meta_url": {"hostname": "example.com"},
                },
                {
                    "title": f"{query} - Wikipedia",
                    "url": f"https://en.wikipedia.org/wiki/{q}",
                    "description": (
                        f"Wikipedia article about {query}. Comprehensive encyclopedia entry with "
                        "detailed information, history, and references."
                    ),
                    "age": "2024-01-10T08:20:00Z",
                    "language": "en",
                    "family_friendly": True,
                    "meta_url": {"hostname": "en.wikipedia.org"},
                },
            ],
        },
    }


def mock_news_response(query: str) -> Dict[str, Any]:
    q = _slug(query)
    return {
        "type": "news",
        "results": [
            {
                "type": "news_result",
                "title": f"Breaking: Major development in {query}",
                "url": f"https://example-news.com/breaking/{q}",
                "description": (
                    f"Breaking news about {query}. This major development could have "
                    "significant implications for the industry."
                ),
                "age": "1 hour ago",
                "page_age": "2024-01-15T09:00:00Z",
                "thumbnail": {"src": "https://example.com/images/news1.jpg"},
                "meta_url": {"hostname": "example-news.com"},
            },
            {
                "type": "news_result",
                "title": f"Analysis: The impact of {query} on the market",
                "url": f"https://example-business.com/analysis/{q}",
                "description": f"In-depth analysis of how {query} is affecting market trends and business strategies.",
                "age": "2 hours ago",
                "page_age": "2024-01-15T08:00:00Z",
                "meta_url": {"hostname": "example-business.com"},
            },
        ],
    }


def mock_image_response(query: str) -> Dict[str, Any]:
    q = _slug(query)
    return {
        "type": "images",
        "results": [
            {
                "type": "image_result",
                "title": f"High-quality image of {query}",
                "url": f"https://example.com/gallery/{q}",
                "source": "Example Gallery",
                "thumbnail": {"src": f"https://example.com/images/{q}-1-thumb.jpg"},
                "properties": {"url": f"https://example.com/images/{q}-1.jpg", "width": 1200, "height": 800},
                "meta_url": {"hostname": "example.com"},
            },
            {
                "type": "image_result",
                "title": f"Professional {query} photography",
                "url": f"https://example-photos.com/{q}",
                "source": "Professional Photos",
                "thumbnail": {"src": f"https://example-photos.com/images/{q}-2-thumb.jpg"},
                "properties": {"url": f"https://example-photos.com/images/{q}-2.jpg", "width": 900, "height": 600},
                "meta_url": {"hostname": "example-photos.com"},
            },
        ],
    }


def mock_video_response(query: str) -> Dict[str, Any]:
    q = _slug(query)
    return {
        "type": "videos",
        "results": [
            {
                "type": "video_result",
                "title": f"Complete tutorial: {query}",
                "url": f"https://example-videos.com/watch/{q}-tutorial",
                "description": f"Learn everything about {query} in this comprehensive tutorial.",
                "age": "1 day ago",
                "page_age": "2024-01-14T12:00:00Z",
                "video": {
                    "duration": "15:30",
                    "views": 930,
                    "creator": "Example Creator",
                    "publisher": "Example Video Platform",
                },
                "thumbnail": {"src": f"https://example-videos.com/thumbnails/{q}-1.jpg"},
                "meta_url": {"hostname": "example-videos.com"},
            },
            {
                "type": "video_result",
                "title": f"{query} explained in 5 minutes",
                "url": f"https://example-edu.com/watch/{q}-explained",
                "description": f"Quick explanation of {query} in under 6 minutes.",
                "age": "2 days ago",
                "page_age": "2024-01-13T12:00:00Z",
                "video": {
                    "duration": "5:42",
                    "views": 1245,
                    "creator": "Educational Videos",
                    "publisher": "Educational Platform",
                },
                "thumbnail": {"src": f"https://example-edu.com/thumbnails/{q}-2.jpg"},
                "meta_url": {"hostname": "example-edu.com"},
            },
        ],
    }


MOCK_GENERATORS: Dict[str, Callable[[str], Dict[str, Any]]] = {
    "web": mock_web_response,
    "news": mock_news_response,
    "images": mock_image_response,
    "videos": mock_video_response,
}


def mock_response(search_type: str, query: str) -> Dict[str, Any]:
    """Canned response for ``search_type`` whose titles and URLs embed ``query``."""
    return MOCK_GENERATORS[search_type](query)


class SimulatedSearchProvider(SearchProvider):
    """A deterministic search provider for development, testing, and fallback.

    Shapes mirror the live API so the same normalizers apply. Output is a
    pure function of ``(search_type, query)``.
    """

    def health_check(self) -> bool:
        return True

    def search(self, search_type: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self._validate_search_type(search_type)
        return mock_response(search_type, params.get("q", ""))
