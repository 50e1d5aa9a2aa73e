"""Per-search-type capability records.

The four search tools share one pipeline and differ only in the fields
declared here: argument schema, upstream parameter mapping and result
normalization.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Type

from BSMCP.tools.search.normalize import (
    Normalizer,
    normalize_images,
    normalize_news,
    normalize_videos,
    normalize_web,
)
from BSMCP.tools.search.schema import (
    ImageSearchRequest,
    NewsSearchRequest,
    SearchRequest,
    VideoSearchRequest,
    WebSearchRequest,
)

ParamBuilder = Callable[[Any, str], Dict[str, Any]]


@dataclass(frozen=True)
class SearchCapability:
    search_type: str
    tool_name: str
    description: str
    request_model: Type[SearchRequest]
    build_params: ParamBuilder
    normalize: Normalizer
    # Validated argument names echoed into search_metadata.search_params
    param_fields: tuple = ()

    def input_schema(self) -> Dict[str, Any]:
        return self.request_model.model_json_schema()


def _common_params(request: SearchRequest, enhanced_query: str) -> Dict[str, Any]:
    return {"q": enhanced_query, "count": request.count, "country": request.country}


def _web_params(request: WebSearchRequest, enhanced_query: str) -> Dict[str, Any]:
    params = _common_params(request, enhanced_query)
    params["offset"] = request.offset
    params["safesearch"] = "strict" if request.safe_search else "off"
    return params


def _news_params(request: NewsSearchRequest, enhanced_query: str) -> Dict[str, Any]:
    params = _common_params(request, enhanced_query)
    params["freshness"] = request.freshness
    return params


def _image_params(request: ImageSearchRequest, enhanced_query: str) -> Dict[str, Any]:
    params = _common_params(request, enhanced_query)
    params.update(size=request.size, color=request.color, type=request.type, layout=request.layout)
    return params


def _video_params(request: VideoSearchRequest, enhanced_query: str) -> Dict[str, Any]:
    params = _common_params(request, enhanced_query)
    params.update(duration=request.duration, resolution=request.resolution)
    return params


CAPABILITIES: Dict[str, SearchCapability] = {
    "web": SearchCapability(
        search_type="web",
        tool_name="brave_web_search",
        description="Performs a web search using Brave Search API",
        request_model=WebSearchRequest,
        build_params=_web_params,
        normalize=normalize_web,
        param_fields=("count", "offset", "country", "safe_search"),
    ),
    "news": SearchCapability(
        search_type="news",
        tool_name="brave_news_search",
        description="Performs a news search using Brave Search API",
        request_model=NewsSearchRequest,
        build_params=_news_params,
        normalize=normalize_news,
        param_fields=("count", "country", "freshness"),
    ),
    "images": SearchCapability(
        search_type="images",
        tool_name="brave_image_search",
        description="Performs an image search using Brave Search API",
        request_model=ImageSearchRequest,
        build_params=_image_params,
        normalize=normalize_images,
        param_fields=("count", "country", "size", "color", "type", "layout"),
    ),
    "videos": SearchCapability(
        search_type="videos",
        tool_name="brave_video_search",
        description="Performs a video search using Brave Search API",
        request_model=VideoSearchRequest,
        build_params=_video_params,
        normalize=normalize_videos,
        param_fields=("count", "country", "duration", "resolution"),
    ),
}

