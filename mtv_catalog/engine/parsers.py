"""Response Parsers - Raw YouTube JSON to normalized models

The gateway boundary: every upstream payload passes through one of these
functions before leaving the engine layer.
"""

import re
from typing import Any, Optional

from pydantic import ValidationError

from mtv_catalog.core.exceptions import FatalError
from mtv_catalog.schemas.youtube_schema import (
    ChannelDetails,
    ChannelSearchHit,
    PlaylistItem,
    PlaylistPage,
    VideoDetails,
    VideoStatus,
)

_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_iso_duration(value: Optional[str]) -> Optional[int]:
    """ISO 8601 duration (PT#H#M#S) → 초

    Args:
        value: "PT4M13S" 같은 문자열

    Returns:
        Optional[int]: 초 단위 길이. 해석할 수 없으면 None
    """
    if not value:
        return None
    match = _DURATION_PATTERN.match(value.strip())
    if not match:
        return None
    parts = {k: int(v) if v else 0 for k, v in match.groupdict().items()}
    return parts["days"] * 86400 + parts["hours"] * 3600 + parts["minutes"] * 60 + parts["seconds"]


def _safe_int(value: Any) -> Optional[int]:
    """통계 값("12345")을 정수로. 없거나 잘못된 값이면 None"""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _thumbnail(snippet: dict, *sizes: str) -> Optional[str]:
    thumbnails = snippet.get("thumbnails") or {}
    for size in sizes:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def _items(data: Any, endpoint: str) -> list:
    if not isinstance(data, dict):
        raise FatalError(f"Unexpected {endpoint} response type: {type(data).__name__}")
    items = data.get("items") or []
    if not isinstance(items, list):
        raise FatalError(f"Unexpected {endpoint} items type: {type(items).__name__}")
    return items


def parse_search_response(data: Any) -> list[ChannelSearchHit]:
    """search.list (type=channel) 응답 → 후보 목록 (응답 순서 = 순위)"""
    hits: list[ChannelSearchHit] = []
    for item in _items(data, "search"):
        snippet = item.get("snippet") or {}
        channel_id = (item.get("id") or {}).get("channelId") or snippet.get("channelId")
        if not channel_id:
            continue
        hits.append(
            ChannelSearchHit(
                channel_id=channel_id,
                title=snippet.get("title") or snippet.get("channelTitle") or "",
                description=snippet.get("description") or "",
                thumbnail_url=_thumbnail(snippet, "default"),
                published_at=snippet.get("publishedAt"),
            )
        )
    return hits


def parse_channel_item(item: dict) -> ChannelDetails:
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    content_details = item.get("contentDetails") or {}
    branding = item.get("brandingSettings") or {}

    custom_url = snippet.get("customUrl")
    handle = None
    if custom_url:
        handle = custom_url if custom_url.startswith("@") else f"@{custom_url}"

    try:
        return ChannelDetails(
            channel_id=item.get("id") or "",
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            custom_url=custom_url,
            handle=handle,
            published_at=snippet.get("publishedAt"),
            thumbnail_url=_thumbnail(snippet, "default"),
            banner_url=(branding.get("image") or {}).get("bannerExternalUrl"),
            uploads_playlist_id=(content_details.get("relatedPlaylists") or {}).get("uploads"),
            subscriber_count=_safe_int(stats.get("subscriberCount")),
            video_count=_safe_int(stats.get("videoCount")),
            view_count=_safe_int(stats.get("viewCount")),
            country=snippet.get("country"),
            # API 에서 인증 배지를 제공하지 않음
            is_verified=False,
        )
    except ValidationError as e:
        raise FatalError(f"Malformed channel item: {e.error_count()} validation errors") from e


def parse_channels_response(data: Any) -> list[ChannelDetails]:
    return [parse_channel_item(item) for item in _items(data, "channels")]


def parse_playlist_page(data: Any) -> PlaylistPage:
    """playlistItems.list 응답 → PlaylistPage

    video_id 가 없는 항목도 그대로 두고, 걸러내는 것은 크롤러 몫입니다.
    """
    items = []
    for item in _items(data, "playlistItems"):
        snippet = item.get("snippet") or {}
        content_details = item.get("contentDetails") or {}
        items.append(
            PlaylistItem(
                video_id=content_details.get("videoId") or None,
                title=snippet.get("title"),
                published_at=content_details.get("videoPublishedAt") or snippet.get("publishedAt"),
                channel_id=snippet.get("channelId"),
                position=_safe_int(snippet.get("position")),
            )
        )
    page_info = data.get("pageInfo") or {}
    return PlaylistPage(
        items=items,
        next_page_token=data.get("nextPageToken") or None,
        total_results=_safe_int(page_info.get("totalResults")),
    )


def parse_video_item(item: dict, blocked_region: str = "US") -> VideoDetails:
    snippet = item.get("snippet") or {}
    content_details = item.get("contentDetails") or {}
    stats = item.get("statistics") or {}
    status = item.get("status") or {}
    blocked_regions = list((content_details.get("regionRestriction") or {}).get("blocked") or [])

    if status.get("privacyStatus") == "private":
        video_status = VideoStatus.PRIVATE
    elif status.get("uploadStatus") in ("rejected", "deleted"):
        video_status = VideoStatus.DELETED
    elif blocked_region and blocked_region in blocked_regions:
        video_status = VideoStatus.BLOCKED
    else:
        video_status = VideoStatus.ACTIVE

    duration_iso = content_details.get("duration")
    privacy = status.get("privacyStatus")

    try:
        return VideoDetails(
            video_id=item.get("id") or "",
            channel_id=snippet.get("channelId"),
            title=snippet.get("title") or "",
            description=snippet.get("description"),
            published_at=snippet.get("publishedAt"),
            duration_iso=duration_iso,
            duration_seconds=parse_iso_duration(duration_iso),
            view_count=_safe_int(stats.get("viewCount")),
            like_count=_safe_int(stats.get("likeCount")),
            comment_count=_safe_int(stats.get("commentCount")),
            tags=snippet.get("tags") or [],
            category_id=snippet.get("categoryId"),
            default_language=snippet.get("defaultLanguage"),
            default_audio_language=snippet.get("defaultAudioLanguage"),
            is_embeddable=status.get("embeddable"),
            is_public=(privacy == "public") if privacy else None,
            made_for_kids=status.get("madeForKids"),
            blocked_regions=blocked_regions,
            status=video_status,
        )
    except ValidationError as e:
        raise FatalError(f"Malformed video item: {e.error_count()} validation errors") from e


def parse_videos_response(data: Any, blocked_region: str = "US") -> list[VideoDetails]:
    return [parse_video_item(item, blocked_region) for item in _items(data, "videos")]
