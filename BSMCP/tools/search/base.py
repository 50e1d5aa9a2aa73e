import abc
from typing import Any, Dict

from BSMCP.services.shared.errors import SearchProviderError

# Search types understood by the upstream API, in endpoint naming.
SEARCH_TYPES = ("web", "news", "images", "videos")


class SearchProvider(abc.ABC):
    """Abstract Base Class for Search Providers.

    Enforces a consistent interface for the live API client and the
    simulated (mock) provider so the tool pipeline can swap them freely.
    """

    # Safety cap to prevent context window flooding or excessive API costs
    HARD_LIMIT_RESULTS = 20

    @abc.abstractmethod
    def search(self, search_type: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a search and return the provider's raw JSON document.

        Args:
            search_type: One of SEARCH_TYPES.
            params: Upstream query parameters (``q``, ``count``, filters...).

        Returns:
            The decoded response body.

        Raises:
            SearchProviderError: If the downstream API fails or rate limit is exceeded.
        """
        pass

    def _validate_search_type(self, search_type: str) -> str:
        if search_type not in SEARCH_TYPES:
            raise SearchProviderError(f"Unsupported search type: {search_type}")
        return search_type

    def _validate_limit(self, requested: int) -> int:
        """Clamps the requested limit to the global hard cap."""
        if requested < 1:
            return 1
        return min(requested, self.HARD_LIMIT_RESULTS)

    @abc.abstractmethod
    def health_check(self) -> bool:
        """Verify provider configuration."""
        pass
