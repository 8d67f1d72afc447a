"""테스트 자산(데이터) 레이어

규칙:
- 엔진/네트워크 의존 없음
- 응답 모양을 만드는 단순 헬퍼만
"""

from .youtube_payloads import (
    ISAIARUVI_CHANNEL,
    PLAYLIST_PUBLISHED_AT,
    RAHMAN_CHANNEL,
    FakeResponse,
    channel_item,
    video_item,
)

__all__ = [
    "ISAIARUVI_CHANNEL",
    "PLAYLIST_PUBLISHED_AT",
    "RAHMAN_CHANNEL",
    "FakeResponse",
    "channel_item",
    "video_item",
]
