import json
import re
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from BSMCP.services.shared.errors import ValidationError
from BSMCP.services.shared.settings import LimitsConfig

COUNTRY_CODE = re.compile(r"[A-Z]{2}")


# === Tool arguments ===

class SearchRequest(BaseModel):
    """Arguments shared by every search tool."""
    model_config = ConfigDict(extra="ignore")

    query: str = Field(..., min_length=1, max_length=400, strict=True, description="Search query")
    count: int = Field(10, ge=1, le=20, strict=True, description="Number of results to return")
    country: Optional[str] = Field(
        None, strict=True, description="Two-letter uppercase country code (e.g. US)"
    )

    @field_validator("query")
    def query_within_limit(cls, v, info: ValidationInfo):
        limits = (info.context or {}).get("limits")
        if limits is not None and len(v) > limits.max_query_length:
            raise ValueError(f"Query too long (max {limits.max_query_length} characters)")
        return v

    @field_validator("count")
    def count_within_limit(cls, v, info: ValidationInfo):
        limits = (info.context or {}).get("limits")
        if limits is not None and v > limits.max_results:
            raise ValueError(f"Count cannot exceed {limits.max_results}")
        return v

    @field_validator("country")
    def country_code(cls, v):
        if v is not None and not COUNTRY_CODE.fullmatch(v):
            raise ValueError("Country code must be exactly 2 uppercase letters")
        return v


class WebSearchRequest(SearchRequest):
    offset: int = Field(0, ge=0, le=9, strict=True, description="Page offset (0-9)")
    safe_search: bool = Field(True, strict=True, description="Filter adult content")


class NewsSearchRequest(SearchRequest):
    freshness: Literal["pd", "pw", "pm", "py"] = Field(
        "pw", description="Age filter: past day, week, month or year"
    )


class ImageSearchRequest(SearchRequest):
    size: Optional[Literal["small", "medium", "large", "wallpaper"]] = None
    color: Optional[str] = Field(None, strict=True)
    type: Optional[Literal["photo", "clipart", "gif", "transparent", "line"]] = None
    layout: Optional[Literal["square", "wide", "tall"]] = None


class VideoSearchRequest(SearchRequest):
    duration: Optional[Literal["short", "medium", "long"]] = None
    resolution: Optional[Literal["high", "standard"]] = None


RequestT = TypeVar("RequestT", bound=SearchRequest)


def _issue(error: Dict[str, Any]) -> Tuple[str, str]:
    path = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    if error.get("type") == "value_error" and error.get("ctx", {}).get("error") is not None:
        message = str(error["ctx"]["error"])
    return path, message


def validate_arguments(
    model: Type[RequestT],
    raw: Any,
    limits: Optional[LimitsConfig] = None,
    service: Optional[str] = None,
) -> RequestT:
    """Validate raw tool arguments into a fully-defaulted request.

    Raises:
        ValidationError: listing every violated field with its reason.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError([("", "Arguments must be a JSON object")], service=service)

    try:
        return model.model_validate(raw, context={"limits": limits})
    except PydanticValidationError as e:
        raise ValidationError([_issue(err) for err in e.errors()], service=service) from e


# === Normalized results ===

class Thumbnail(BaseModel):
    url: str


class Dimensions(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None
    aspect_ratio: Optional[str] = None


class WebResultMetadata(BaseModel):
    age: Optional[str] = None
    language: Optional[str] = None
    family_friendly: Optional[bool] = None


class SearchResult(BaseModel):
    """Fields present on every normalized result."""
    rank: int = Field(..., ge=1)
    title: str
    url: str = Field(..., description="Canonical page link")
    source: str = Field(..., description="Hostname or publisher")
    relevance_score: float = Field(..., ge=0.0, le=1.0)


class WebResult(SearchResult):
    description: str = ""
    metadata: WebResultMetadata = Field(default_factory=WebResultMetadata)


class NewsResult(SearchResult):
    description: str = ""
    published_time: Optional[str] = None
    thumbnail: Optional[Thumbnail] = None


class ImageResult(SearchResult):
    media_url: Optional[str] = Field(None, description="Direct image link")
    thumbnail: Optional[Thumbnail] = None
    dimensions: Dimensions = Field(default_factory=Dimensions)


class VideoResult(SearchResult):
    media_url: Optional[str] = Field(None, description="Direct video link")
    description: str = ""
    duration: Optional[str] = None
    duration_seconds: Optional[int] = None
    published_time: Optional[str] = None
    creator: Optional[str] = None
    views: Optional[int] = None
    thumbnail: Optional[Thumbnail] = None


# === Tool surface ===

class ToolDefinition(BaseModel):
    """Static description of one tool, as listed to MCP clients."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: Dict[str, Any]

    def as_listing(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


class TextContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text"] = "text"
    text: str
    mime_type: str = Field("application/json", serialization_alias="mimeType")


class ToolResult(BaseModel):
    """Result handed back to the transport for a single tool call."""
    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(False, serialization_alias="isError")
    error_message: Optional[str] = Field(None, exclude=True)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ToolResult":
        return cls(content=[TextContent(text=json.dumps(payload, indent=2, default=str))])

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(content=[], is_error=True, error_message=message)

    def data(self) -> Optional[Dict[str, Any]]:
        """Decoded JSON envelope of the first text item, if any."""
        if not self.content:
            return None
        return json.loads(self.content[0].text)
