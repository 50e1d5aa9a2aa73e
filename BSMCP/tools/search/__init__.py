from .base import SEARCH_TYPES, SearchProvider
from .brave import BraveSearchProvider
from .cache import CacheLayer
from .enhancer import QueryEnhancer
from .factory import SearchFactory
from .ratelimit import RateLimiter
from .schema import SearchRequest, ToolDefinition, ToolResult, validate_arguments
from .simulated import SimulatedSearchProvider, mock_response

__all__ = [
    "SEARCH_TYPES",
    "SearchProvider",
    "BraveSearchProvider",
    "CacheLayer",
    "QueryEnhancer",
    "SearchFactory",
    "RateLimiter",
    "SearchRequest",
    "ToolDefinition",
    "ToolResult",
    "validate_arguments",
    "SimulatedSearchProvider",
    "mock_response",
]
