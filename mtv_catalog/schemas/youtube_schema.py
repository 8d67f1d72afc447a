"""YouTube 응답 정규화 스키마

게이트웨이 밖으로는 원시 JSON 대신 이 모델들만 전달됩니다.
선택 필드는 모두 Optional 로 명시합니다.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


UNAVAILABLE_TITLE = "[Unavailable]"


class VideoStatus(str, Enum):
    """영상 가용성 상태"""

    ACTIVE = "active"
    PRIVATE = "private"
    DELETED = "deleted"
    BLOCKED = "blocked"


class ChannelSearchHit(BaseModel):
    """search.list 결과 한 건 (순위는 리스트 위치 + 1)"""
    channel_id: str = Field(..., min_length=1, description="채널 ID")
    title: str = Field("", description="채널 제목")
    description: str = Field("", description="채널 설명")
    thumbnail_url: Optional[str] = Field(None, description="썸네일 URL")
    published_at: Optional[str] = Field(None, description="채널 생성 시각 (ISO 8601)")


class ChannelDetails(BaseModel):
    """channels.list 결과 한 건"""
    channel_id: str = Field(..., min_length=1, description="채널 ID")
    title: str = Field("", description="채널 제목")
    description: str = Field("", description="채널 설명")
    custom_url: Optional[str] = Field(None, description="customUrl (예: @arrahman)")
    handle: Optional[str] = Field(None, description="@핸들")
    published_at: Optional[str] = None
    thumbnail_url: Optional[str] = None
    banner_url: Optional[str] = None
    uploads_playlist_id: Optional[str] = Field(None, description="업로드 재생목록 ID")
    subscriber_count: Optional[int] = Field(None, ge=0, description="구독자 수 (숨김이면 None)")
    video_count: Optional[int] = Field(None, ge=0)
    view_count: Optional[int] = Field(None, ge=0)
    country: Optional[str] = None
    is_verified: bool = False
    is_available: bool = Field(True, description="응답에 누락되어 합성된 항목이면 False")

    @classmethod
    def unavailable(cls, channel_id: str) -> "ChannelDetails":
        """응답에서 빠진 채널의 자리표시자"""
        return cls(channel_id=channel_id, title=UNAVAILABLE_TITLE, is_available=False)


class PlaylistItem(BaseModel):
    """playlistItems.list 항목 (video_id 가 없을 수 있음)"""
    video_id: Optional[str] = None
    title: Optional[str] = None
    published_at: Optional[str] = None
    channel_id: Optional[str] = None
    position: Optional[int] = None


class PlaylistPage(BaseModel):
    """재생목록 한 페이지"""
    items: List[PlaylistItem] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, description="마지막 페이지에서는 None")
    total_results: Optional[int] = Field(None, ge=0, description="pageInfo.totalResults")


class VideoDetails(BaseModel):
    """videos.list 결과 한 건"""
    video_id: str = Field(..., min_length=1)
    channel_id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    published_at: Optional[str] = None
    duration_iso: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    view_count: Optional[int] = Field(None, ge=0)
    like_count: Optional[int] = Field(None, ge=0)
    comment_count: Optional[int] = Field(None, ge=0)
    tags: List[str] = Field(default_factory=list)
    category_id: Optional[str] = None
    default_language: Optional[str] = None
    default_audio_language: Optional[str] = None
    is_embeddable: Optional[bool] = None
    is_public: Optional[bool] = None
    made_for_kids: Optional[bool] = None
    blocked_regions: List[str] = Field(default_factory=list)
    status: VideoStatus = VideoStatus.ACTIVE

    @property
    def is_available(self) -> bool:
        return self.status == VideoStatus.ACTIVE

    @classmethod
    def unavailable(cls, video_id: str) -> "VideoDetails":
        """응답에서 빠진 영상의 자리표시자 (삭제로 간주)"""
        return cls(video_id=video_id, title=UNAVAILABLE_TITLE, status=VideoStatus.DELETED)
