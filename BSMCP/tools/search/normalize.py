"""Reshape raw upstream documents into ranked, scored result records."""

import re
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from .schema import (
    Dimensions,
    ImageResult,
    NewsResult,
    Thumbnail,
    VideoResult,
    WebResult,
    WebResultMetadata,
)

TITLE_WEIGHT = 0.6
DESCRIPTION_WEIGHT = 0.4

_DURATION = re.compile(r"(?:(\d+):)?(\d{1,2}):(\d{2})")

Normalizer = Callable[[Dict[str, Any], str, int, int], List[Dict[str, Any]]]


def extract_results(body: Dict[str, Any], search_type: str) -> List[Dict[str, Any]]:
    """Pull the result list out of either upstream document shape.

    Web responses nest results under ``web.results`` (and may embed
    ``videos.results``); the other endpoints return a top-level ``results``.
    """
    nested = body.get(search_type)
    if isinstance(nested, dict) and isinstance(nested.get("results"), list):
        raw = nested["results"]
    else:
        raw = body.get("results") or []
    # Skip malformed entries rather than failing the entire search.
    return [item for item in raw if isinstance(item, dict)]


def relevance_score(title: str, description: str, query: str) -> float:
    terms = query.lower().split()
    if not terms:
        return 0.0

    title = (title or "").lower()
    description = (description or "").lower()

    score = 0.0
    for term in terms:
        if term in title:
            score += TITLE_WEIGHT
        if term in description:
            score += DESCRIPTION_WEIGHT

    return round(min(score / len(terms), 1.0), 4)


def parse_duration_seconds(duration: Optional[str]) -> Optional[int]:
    """``"1:02:03"`` -> 3723, ``"5:42"`` -> 342, anything else -> None."""
    if not isinstance(duration, str):
        return None
    match = _DURATION.fullmatch(duration.strip())
    if match is None:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)


def aspect_ratio(width: Optional[int], height: Optional[int]) -> Optional[str]:
    if not width or not height:
        return None
    return f"{width / height:.2f}"


def _hostname(item: Dict[str, Any]) -> Optional[str]:
    meta_url = item.get("meta_url")
    if isinstance(meta_url, dict) and meta_url.get("hostname"):
        return meta_url["hostname"]
    return None


def _thumbnail(item: Dict[str, Any]) -> Optional[Thumbnail]:
    thumb = item.get("thumbnail")
    if isinstance(thumb, dict) and thumb.get("src"):
        return Thumbnail(url=thumb["src"])
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def normalize_web(body: Dict[str, Any], query: str, count: int, offset: int = 0) -> List[Dict[str, Any]]:
    results = []
    for index, item in enumerate(extract_results(body, "web")[:count]):
        url = item.get("url") or ""
        title = item.get("title") or "Untitled result"
        description = item.get("description") or ""
        results.append(
            WebResult(
                rank=offset + index + 1,
                title=title,
                url=url,
                description=description,
                source=_hostname(item) or urlparse(url).hostname or "Unknown",
                relevance_score=relevance_score(title, description, query),
                metadata=WebResultMetadata(
                    age=item.get("age"),
                    language=item.get("language"),
                    family_friendly=item.get("family_friendly", item.get("familyFriendly")),
                ),
            ).model_dump()
        )
    return results


def normalize_news(body: Dict[str, Any], query: str, count: int, offset: int = 0) -> List[Dict[str, Any]]:
    results = []
    for index, item in enumerate(extract_results(body, "news")[:count]):
        title = item.get("title") or "Untitled result"
        description = item.get("description") or ""
        results.append(
            NewsResult(
                rank=index + 1,
                title=title,
                url=item.get("url") or "",
                description=description,
                source=_hostname(item) or "Unknown",
                published_time=item.get("page_age") or item.get("age"),
                thumbnail=_thumbnail(item),
                relevance_score=relevance_score(title, description, query),
            ).model_dump()
        )
    return results


def normalize_images(body: Dict[str, Any], query: str, count: int, offset: int = 0) -> List[Dict[str, Any]]:
    results = []
    for index, item in enumerate(extract_results(body, "images")[:count]):
        title = item.get("title") or "Untitled image"
        url = item.get("url") or ""
        properties = item.get("properties") if isinstance(item.get("properties"), dict) else {}
        width = _as_int(properties.get("width"))
        height = _as_int(properties.get("height"))
        results.append(
            ImageResult(
                rank=index + 1,
                title=title,
                url=url,
                media_url=properties.get("url"),
                source=item.get("source") or _hostname(item) or urlparse(url).hostname or "Unknown",
                thumbnail=_thumbnail(item),
                dimensions=Dimensions(width=width, height=height, aspect_ratio=aspect_ratio(width, height)),
                relevance_score=relevance_score(title, "", query),
            ).model_dump()
        )
    return results


def normalize_videos(body: Dict[str, Any], query: str, count: int, offset: int = 0) -> List[Dict[str, Any]]:
    results = []
    for index, item in enumerate(extract_results(body, "videos")[:count]):
        title = item.get("title") or "Untitled video"
        url = item.get("url") or ""
        description = item.get("description") or ""
        video = item.get("video") if isinstance(item.get("video"), dict) else {}
        duration = video.get("duration")
        results.append(
            VideoResult(
                rank=index + 1,
                title=title,
                url=url,
                media_url=item.get("content_url") or video.get("url") or url,
                description=description,
                source=video.get("publisher") or _hostname(item) or urlparse(url).hostname or "Unknown",
                duration=duration,
                duration_seconds=parse_duration_seconds(duration),
                published_time=item.get("page_age") or item.get("age"),
                creator=video.get("creator"),
                views=_as_int(video.get("views")),
                thumbnail=_thumbnail(item),
                relevance_score=relevance_score(title, description, query),
            ).model_dump()
        )
    return results
