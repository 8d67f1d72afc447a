"""영상 분류 (Shorts / 비음악 콘텐츠)"""
from dataclasses import dataclass
from typing import Optional

from mtv_catalog.schemas.youtube_schema import VideoDetails

SHORTS_MAX_SECONDS = 60
SHORTS_MARKER = "#shorts"

NON_MUSIC_KEYWORDS = (
    "trailer",
    "teaser",
    "interview",
    "promo",
    "making",
    "behind the scenes",
    "bts",
    "speech",
    "press meet",
    "audio launch",
    "review",
    "serial",
    "episode",
)


@dataclass(frozen=True)
class VideoClassification:
    is_short: bool
    is_music_candidate: bool
    non_music_reason: Optional[str] = None


def is_short_video(duration_seconds: Optional[int], title: Optional[str]) -> bool:
    """60초 미만이거나 제목에 #shorts 태그가 있으면 Shorts"""
    if duration_seconds is not None and duration_seconds < SHORTS_MAX_SECONDS:
        return True
    return SHORTS_MARKER in (title or "").lower()


def find_non_music_keyword(title: Optional[str]) -> Optional[str]:
    """제목에서 처음 발견된 비음악 키워드"""
    title_lower = (title or "").lower()
    for keyword in NON_MUSIC_KEYWORDS:
        if keyword in title_lower:
            return keyword
    return None


def classify_video(details: VideoDetails) -> VideoClassification:
    reason = find_non_music_keyword(details.title)
    return VideoClassification(
        is_short=is_short_video(details.duration_seconds, details.title),
        is_music_candidate=reason is None,
        non_music_reason=reason,
    )
