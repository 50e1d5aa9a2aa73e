"""Search tool pipeline and the registry that exposes it to transports.

Each call runs: validate -> enhance -> cache-aside -> upstream or mock ->
normalize -> envelope. Only argument validation can fail a call; every
other failure is absorbed into a mock-data response.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from BSMCP.services.shared.errors import (
    MissingCredentialError,
    ToolNotFoundError,
    ValidationError,
    fallback_suggestion,
    format_user_error,
    report_error,
)
from BSMCP.services.shared.logger import SearchLogger
from BSMCP.services.shared.settings import BSMCPSettings
from BSMCP.tools.search.api_key_validator import validate_brave_api_key
from BSMCP.tools.search.base import SearchProvider
from BSMCP.tools.search.cache import CacheLayer
from BSMCP.tools.search.enhancer import QueryEnhancer
from BSMCP.tools.search.factory import SearchFactory
from BSMCP.tools.search.normalize import extract_results
from BSMCP.tools.search.schema import SearchRequest, ToolDefinition, ToolResult, validate_arguments

from .capabilities import CAPABILITIES, SearchCapability

API_VERSION = "v1"
SEARCH_ENGINE = "brave"


# === Upstream outcome ===

class Ok(BaseModel):
    """Results produced by the live upstream API."""
    kind: Literal["ok"] = "ok"
    results: List[Dict[str, Any]]
    total_found: int = 0


class Fallback(BaseModel):
    """Mock results served because the live API was unavailable."""
    kind: Literal["fallback"] = "fallback"
    reason: Literal["no_credential", "upstream_error"]
    results: List[Dict[str, Any]]
    total_found: int = 0
    error: Optional[str] = None
    suggestion: Optional[str] = None


Outcome = Annotated[Union[Ok, Fallback], Field(discriminator="kind")]
OUTCOME_ADAPTER: TypeAdapter = TypeAdapter(Outcome)


def _is_cacheable(outcome: Any) -> bool:
    return isinstance(outcome, Ok)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# === Search tool ===

class SearchTool:
    """One search type's tool, built from its capability record."""

    def __init__(
        self,
        capability: SearchCapability,
        settings: BSMCPSettings,
        provider: SearchProvider,
        fallback_provider: SearchProvider,
        enhancer: QueryEnhancer,
        cache: CacheLayer,
    ):
        self.capability = capability
        self.settings = settings
        self.provider = provider
        self.fallback_provider = fallback_provider
        self.enhancer = enhancer
        self.cache = cache
        self.logger = SearchLogger(f"tools.{capability.search_type}")
        self.definition = ToolDefinition(
            name=capability.tool_name,
            description=capability.description,
            input_schema=capability.input_schema(),
        )

    @property
    def name(self) -> str:
        return self.capability.tool_name

    @property
    def search_type(self) -> str:
        return self.capability.search_type

    def execute(self, raw_args: Any, request_id: Optional[str] = None) -> ToolResult:
        """Run the full pipeline. Never raises for a well-formed call."""
        request_id = request_id or uuid.uuid4().hex
        start_time = time.time()

        try:
            request = validate_arguments(
                self.capability.request_model,
                raw_args,
                limits=self.settings.limits,
                service=self.name,
            )
        except ValidationError as e:
            self.logger.warning(
                "tool_validation_failed",
                {"tool": self.name, "issues": e.metadata["issues"]},
                request_id=request_id,
            )
            return ToolResult.failure(e.message)

        enhanced_query = self.enhancer.enhance(request.query, self.search_type)
        self.logger.log(
            "query_enhanced",
            {"original": request.query, "enhanced": enhanced_query},
            request_id=request_id,
        )

        key = CacheLayer.make_key(self.search_type, request.model_dump())
        outcome = self.cache.get_or_compute(
            key,
            None,
            lambda: self._search(request, enhanced_query, request_id),
            cacheable=_is_cacheable,
            decode=OUTCOME_ADAPTER.validate_python,
        )

        envelope = self._envelope(request, enhanced_query, outcome)
        self.logger.log(
            "tool_completed",
            {
                "tool": self.name,
                "results_count": envelope["results_count"],
                "is_mock": envelope["search_metadata"]["is_mock"],
                "latency_ms": round((time.time() - start_time) * 1000.0, 2),
            },
            request_id=request_id,
        )
        return ToolResult.from_payload(envelope)

    def _offset(self, request: SearchRequest) -> int:
        return getattr(request, "offset", 0) or 0

    def _search(self, request: SearchRequest, enhanced_query: str, request_id: str) -> Union[Ok, Fallback]:
        params = self.capability.build_params(request, enhanced_query)
        offset = self._offset(request)

        try:
            body = self.provider.search(self.search_type, params)
            return Ok(
                results=self.capability.normalize(body, enhanced_query, request.count, offset),
                total_found=len(extract_results(body, self.search_type)),
            )
        except MissingCredentialError:
            return self._fallback(request, enhanced_query, params, "no_credential", None, request_id)
        except Exception as e:
            report_error(e, service=self.name, extra_context={"search": {"search_type": self.search_type}})
            return self._fallback(request, enhanced_query, params, "upstream_error", e, request_id)

    def _fallback(
        self,
        request: SearchRequest,
        enhanced_query: str,
        params: Dict[str, Any],
        reason: str,
        error: Optional[Exception],
        request_id: str,
    ) -> Fallback:
        self.logger.warning(
            "mock_fallback",
            {
                "tool": self.name,
                "reason": reason,
                "error_type": type(error).__name__ if error is not None else None,
                "error": str(error) if error is not None else None,
            },
            request_id=request_id,
        )
        body = self.fallback_provider.search(self.search_type, params)
        return Fallback(
            reason=reason,
            results=self.capability.normalize(body, enhanced_query, request.count, self._offset(request)),
            total_found=len(extract_results(body, self.search_type)),
            error=format_user_error(error) if error is not None else None,
            suggestion=fallback_suggestion(error) if error is not None else None,
        )

    def _envelope(self, request: SearchRequest, enhanced_query: str, outcome: Union[Ok, Fallback]) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "timestamp": _utc_timestamp(),
            "search_type": self.search_type,
            "search_engine": SEARCH_ENGINE,
            "provider": {"name": self.settings.server.name, "version": self.settings.server.version},
            "api_version": API_VERSION,
            "enhanced_query": enhanced_query,
            "search_params": {name: getattr(request, name) for name in self.capability.param_fields},
            "is_mock": isinstance(outcome, Fallback),
        }
        if isinstance(outcome, Fallback):
            metadata["fallback_reason"] = outcome.reason
            if outcome.error is not None:
                metadata["error"] = outcome.error
                metadata["fallback_suggestion"] = outcome.suggestion

        return {
            "query": request.query,
            "search_type": self.search_type,
            "total_results": outcome.total_found,
            "results_count": len(outcome.results),
            "search_metadata": metadata,
            "results": outcome.results,
        }


# === Registry ===

class ToolRegistry:
    """Maps tool names to SearchTool instances for the transports."""

    def __init__(self, tools: List[SearchTool], settings: BSMCPSettings, cache: CacheLayer):
        self.settings = settings
        self.cache = cache
        self._tools: Dict[str, SearchTool] = {tool.name: tool for tool in tools}
        self.logger = SearchLogger("registry")

    @classmethod
    def from_settings(
        cls,
        settings: BSMCPSettings,
        provider: Optional[SearchProvider] = None,
        cache: Optional[CacheLayer] = None,
        clock: Callable[[], float] = time.time,
    ) -> "ToolRegistry":
        """Build the four tools around one shared enhancer, cache and provider."""
        provider = provider or SearchFactory.get_provider("brave", settings)
        fallback_provider = SearchFactory.get_provider("simulated", settings)
        cache = cache or CacheLayer(settings.cache, clock=clock)
        enhancer = QueryEnhancer()

        tools = [
            SearchTool(capability, settings, provider, fallback_provider, enhancer, cache)
            for capability in CAPABILITIES.values()
        ]
        registry = cls(tools, settings, cache)
        registry.check_credential()
        return registry

    @property
    def mode(self) -> str:
        return "live" if self.settings.brave_api_key else "mock"

    def check_credential(self) -> bool:
        """Warn at startup when searches will be served from mock data."""
        is_valid, message = validate_brave_api_key(self.settings.brave_api_key, raise_on_invalid=False)
        if not is_valid:
            self.logger.warning("credential_check", {"mode": self.mode, "message": message})
        return is_valid

    def list_tools(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def get(self, name: str) -> SearchTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def get_by_type(self, search_type: str) -> SearchTool:
        for tool in self._tools.values():
            if tool.search_type == search_type:
                return tool
        raise ToolNotFoundError(search_type)

    def execute(self, name: str, arguments: Any, request_id: Optional[str] = None) -> ToolResult:
        """Dispatch one call by tool name.

        Raises:
            ToolNotFoundError: if ``name`` is not registered.
        """
        return self.get(name).execute(arguments, request_id=request_id)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
