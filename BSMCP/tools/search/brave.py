import time
from typing import Any, Dict, Optional

import requests

from BSMCP.services.shared.errors import (
    MissingCredentialError,
    NetworkError,
    SearchProviderError,
    map_status_to_error,
)
from BSMCP.services.shared.logger import SearchLogger
from BSMCP.services.shared.settings import BSMCPSettings

from .api_key_validator import validate_brave_api_key
from .base import SearchProvider
from .ratelimit import RateLimiter

ENDPOINTS = {
    "web": "/web/search",
    "news": "/news/search",
    "images": "/images/search",
    "videos": "/videos/search",
}


class BraveSearchProvider(SearchProvider):
    """Search provider backed by the Brave Search API.

    Notes on configuration:
    - API key:
        * Read from ``settings.brave.api_key`` (BRAVE_API_KEY).
        * Sent in the ``X-Subscription-Token`` header.
        * Without a key, ``search`` refuses to touch the network; callers
          check ``is_configured`` and use the simulated provider instead.
    - Latency / timeouts:
        * ``settings.brave.timeout_seconds`` is a hard client-side timeout;
          expiry surfaces as NetworkError.
    - Local backpressure:
        * ``settings.limits.rate_limit_per_minute`` requests are admitted per
          rolling minute before RateLimitError is raised without a request.
    """

    def __init__(
        self,
        settings: BSMCPSettings,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.api_key = settings.brave_api_key
        self.base_url = settings.brave.api_url
        self.timeout_seconds = settings.brave.timeout_seconds
        self.rate_limiter = rate_limiter or RateLimiter(settings.limits.rate_limit_per_minute)
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "User-Agent": f"{settings.server.name}/{settings.server.version}",
        }
        self.logger = SearchLogger("upstream")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def health_check(self) -> bool:
        """Return True if the credential passes local validation."""
        is_valid, _ = validate_brave_api_key(self.api_key, raise_on_invalid=False)
        return is_valid

    def search(self, search_type: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self._validate_search_type(search_type)

        if not self.is_configured:
            raise MissingCredentialError()

        self.rate_limiter.acquire()

        query_params = self._encode_params(params)
        url = f"{self.base_url}{ENDPOINTS[search_type]}"
        headers = dict(self.headers, **{"X-Subscription-Token": self.api_key})

        self.logger.log(
            "upstream_request",
            {
                "search_type": search_type,
                "url": url,
                "params": query_params,
                "rate_limit_remaining": self.rate_limiter.remaining(),
            },
        )
        start_time = time.time()

        try:
            response = self.session.get(
                url, params=query_params, headers=headers, timeout=self.timeout_seconds
            )
        except requests.Timeout as e:
            raise NetworkError(f"Network error: request timed out after {self.timeout_seconds}s") from e
        except requests.RequestException as e:
            raise NetworkError(f"Network error: {e}") from e

        latency_ms = round((time.time() - start_time) * 1000.0, 2)
        status = response.status_code

        if not (200 <= status < 300):
            message = self._error_message(response)
            self.logger.warning(
                "upstream_error",
                {"search_type": search_type, "status": status, "message": message, "latency_ms": latency_ms},
            )
            raise map_status_to_error(status, message)

        try:
            body = response.json()
        except ValueError as e:
            raise SearchProviderError("Brave Search API returned invalid JSON.", status_code=status) from e

        if not isinstance(body, dict):
            raise SearchProviderError("Brave Search API returned an unexpected document.", status_code=status)

        self.logger.log(
            "upstream_response", {"search_type": search_type, "status": status, "latency_ms": latency_ms}
        )
        return body

    def _encode_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        encoded: Dict[str, Any] = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif key == "count":
                value = self._validate_limit(value)
            encoded[key] = value
        return encoded

    def _error_message(self, response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason or ""

        if isinstance(body, dict):
            if body.get("message"):
                return str(body["message"])
            error_obj = body.get("error")
            if isinstance(error_obj, dict):
                return str(error_obj.get("detail") or error_obj.get("message") or "")
            if error_obj:
                return str(error_obj)
        return response.reason or ""
