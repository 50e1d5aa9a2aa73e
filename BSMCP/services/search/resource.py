import copy
import time
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from BSMCP.services.shared.errors import ValidationError
from BSMCP.services.shared.logger import SearchLogger
from BSMCP.tools.search.base import SEARCH_TYPES
from BSMCP.tools.search.cache import CacheLayer, MemoryCache
from BSMCP.tools.search.schema import validate_arguments

from .service import ToolRegistry

RESOURCE_SCHEME = "brave"
RESOURCE_NAME = "search-results"
RESOURCE_URI = f"{RESOURCE_SCHEME}://{RESOURCE_NAME}"


class SearchResultsResource:
    """Addressable search results: ``brave://search-results?query=&type=&count=``.

    Runs the same tool pipeline as the matching search tool and keeps a
    second, coarser cache of whole envelopes. Envelopes served from that
    cache carry ``cached: true`` and ``cache_age_seconds``. Mock envelopes
    are never kept.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.ttl_seconds = ttl_seconds or registry.settings.cache.resource_ttl_seconds
        self.clock = clock
        self._entries = MemoryCache(max_entries=registry.settings.cache.max_entries, clock=clock)
        self.logger = SearchLogger("resource")

    def definition(self) -> Dict[str, Any]:
        return {
            "uri": RESOURCE_URI,
            "name": "Search Results",
            "description": "Access to search results and history",
            "mimeType": "application/json",
        }

    def parse_uri(self, uri: str) -> Tuple[str, Dict[str, Any]]:
        """Split a resource URI into ``(search_type, tool arguments)``."""
        parts = urlsplit(uri)
        if parts.scheme != RESOURCE_SCHEME or (parts.netloc or parts.path.strip("/")) != RESOURCE_NAME:
            raise ValidationError([("uri", f"Unknown resource: {uri}")], service="resource")

        params = {name: values[0] for name, values in parse_qs(parts.query).items() if values}
        query = params.get("query")
        if not query:
            raise ValidationError([("query", "Query parameter required")], service="resource")

        search_type = params.get("type", "web")
        if search_type not in SEARCH_TYPES:
            raise ValidationError(
                [("type", f"Unsupported search type: {search_type}")], service="resource"
            )

        raw_count = params.get("count", "10")
        try:
            count = int(raw_count)
        except ValueError:
            raise ValidationError([("count", f"Count must be an integer, got '{raw_count}'")], service="resource")

        return search_type, {"query": query, "count": count}

    def read(self, uri: str) -> Dict[str, Any]:
        """Return the search envelope addressed by ``uri``.

        Raises:
            ValidationError: for a malformed URI or invalid search arguments.
        """
        search_type, arguments = self.parse_uri(uri)
        tool = self.registry.get_by_type(search_type)
        request = validate_arguments(
            tool.capability.request_model, arguments, limits=self.registry.settings.limits, service="resource"
        )
        key = CacheLayer.make_key(search_type, request.model_dump())

        entry = self._entries.get(key)
        if entry is not None:
            stored_at = entry.expiry - entry.ttl
            self.logger.log("cache_hit", {"key": key, "tier": "resource"})
            payload = copy.deepcopy(entry.data)
            payload["cached"] = True
            payload["cache_age_seconds"] = int(self.clock() - stored_at)
            return payload

        data = tool.execute(arguments).data() or {}
        data["resource_type"] = "search_results"

        if not data.get("search_metadata", {}).get("is_mock"):
            self._entries.set(key, copy.deepcopy(data), self.ttl_seconds)
        return data
