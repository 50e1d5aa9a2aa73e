#!/usr/bin/env python3
"""FastAPI front end for the search tools with Prometheus metrics."""

import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from BSMCP.services.shared.errors import (
    ToolNotFoundError,
    ValidationError,
    init_sentry,
)
from BSMCP.services.shared.logger import SearchLogger, configure_logging
from BSMCP.services.shared.settings import BSMCPSettings, get_settings

from .resource import RESOURCE_URI, SearchResultsResource
from .service import ToolRegistry

logger = SearchLogger("http")


def create_app(
    settings: Optional[BSMCPSettings] = None,
    registry: Optional[ToolRegistry] = None,
) -> FastAPI:
    settings = settings or get_settings()
    registry = registry or ToolRegistry.from_settings(settings)
    resource = SearchResultsResource(registry)

    app = FastAPI(title=settings.server.name, version=settings.server.version)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.http.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    metrics_registry = CollectorRegistry()
    request_count = Counter(
        "bsmcp_tool_calls_total",
        "Total tool calls over HTTP",
        ["tool", "status"],
        registry=metrics_registry,
    )
    request_latency = Histogram(
        "bsmcp_tool_latency_seconds",
        "Tool call latency in seconds",
        ["tool"],
        registry=metrics_registry,
    )

    app.state.registry = registry
    app.state.metrics_registry = metrics_registry

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "server": settings.server.name,
            "version": settings.server.version,
            "mode": registry.mode,
            "remote_cache": registry.cache.remote_available,
            "tools": [definition.name for definition in registry.list_tools()],
        }

    @app.get("/tools")
    def list_tools() -> Dict[str, Any]:
        return {"tools": [definition.as_listing() for definition in registry.list_tools()]}

    # Plain def: FastAPI runs it in its threadpool, so the blocking pipeline is fine.
    @app.post("/tools/{name}")
    def call_tool(name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            tool = registry.get(name)
        except ToolNotFoundError as e:
            request_count.labels(tool=name, status="not_found").inc()
            raise HTTPException(status_code=404, detail=e.message) from e

        start_time = time.time()
        result = tool.execute(arguments or {})
        request_latency.labels(tool=name).observe(time.time() - start_time)

        if result.is_error:
            request_count.labels(tool=name, status="invalid").inc()
            return {"content": [], "isError": True, "error": result.error_message}

        request_count.labels(tool=name, status="success").inc()
        return result.model_dump(by_alias=True)

    @app.get("/resources/search-results")
    def search_results(
        query: str = Query(..., min_length=1),
        type: str = "web",
        count: int = 10,
    ) -> Dict[str, Any]:
        uri = f"{RESOURCE_URI}?{urlencode({'query': query, 'type': type, 'count': count})}"
        try:
            return resource.read(uri)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=e.message) from e

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)

    logger.log("app_created", {"mode": registry.mode, "cors_origins": settings.http.cors_origins})
    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.logging)
    init_sentry(settings.sentry)
    uvicorn.run(create_app(settings), host=settings.http.host, port=settings.http.port)


if __name__ == "__main__":
    main()
