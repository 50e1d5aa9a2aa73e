from typing import Optional

import requests

from BSMCP.services.shared.settings import BSMCPSettings

from .base import SearchProvider
from .brave import BraveSearchProvider
from .ratelimit import RateLimiter
from .simulated import SimulatedSearchProvider


class SearchFactory:
    """Factory to instantiate the appropriate search provider based on configuration."""

    @staticmethod
    def get_provider(
        provider_type: str,
        settings: BSMCPSettings,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> SearchProvider:
        if provider_type == "simulated":
            return SimulatedSearchProvider()
        elif provider_type == "brave":
            return BraveSearchProvider(settings, session=session, rate_limiter=rate_limiter)
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")
