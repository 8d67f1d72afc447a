"""데이터베이스 모델"""
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Float, Index, Integer, String, Text

from mtv_catalog.core.database import Base
from mtv_catalog.schemas.youtube_schema import VideoStatus


def utc_now() -> datetime:
    """naive UTC 현재 시각 (SQLite 비교용)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SeedStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"
    SKIPPED = "skipped"


class ResolutionMethod(str, Enum):
    OVERRIDE = "override"
    HANDLE = "handle"
    SEARCH = "search"


class MetadataStatus(str, Enum):
    PENDING = "pending"
    FETCHED = "fetched"
    FAILED = "failed"


class SeedChannel(Base):
    """시드 채널 (사람이 입력한 채널 이름)"""

    __tablename__ = "seed_channels"

    id = Column(Integer, primary_key=True, index=True)
    seed_name = Column(String(255), nullable=False, unique=True, index=True)
    resolution_status = Column(String(20), nullable=False, default=SeedStatus.PENDING.value, index=True)

    resolved_channel_id = Column(String(64), nullable=True, index=True)
    resolved_title = Column(String(255), nullable=True)
    resolved_handle = Column(String(255), nullable=True)
    uploads_playlist_id = Column(String(64), nullable=True)
    resolution_method = Column(String(20), nullable=True)  # override, handle, search
    confidence_score = Column(Float, nullable=True)  # 0..1
    chosen_rank = Column(Integer, nullable=True)  # 검색 결과 순위 (1부터)
    subscriber_count = Column(BigInteger, nullable=True)
    video_count = Column(BigInteger, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    resolution_error = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
    resolved_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SeedChannel(seed={self.seed_name}, status={self.resolution_status})>"


class Channel(Base):
    """해석된 YouTube 채널 (upsert, 가변 필드는 마지막 쓰기 우선)"""

    __tablename__ = "channels"

    channel_id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=True)
    custom_url = Column(String(255), nullable=True)
    handle = Column(String(255), nullable=True)
    published_at = Column(String(40), nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    banner_url = Column(Text, nullable=True)
    uploads_playlist_id = Column(String(64), nullable=True)
    subscriber_count = Column(BigInteger, nullable=True)
    video_count = Column(BigInteger, nullable=True)
    view_count = Column(BigInteger, nullable=True)
    country = Column(String(8), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Channel(id={self.channel_id}, title={self.title})>"


class Video(Base):
    """발견된 영상

    - metadata_status: pending → fetched | failed (한 번만 전이)
    - video_status: 업스트림 가용성 (active, private, deleted, blocked)
    """

    __tablename__ = "videos"

    youtube_id = Column(String(32), primary_key=True)
    channel_id = Column(String(64), nullable=False, index=True)

    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    published_at = Column(String(40), nullable=True)
    duration_iso = Column(String(32), nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    view_count = Column(BigInteger, nullable=True)
    like_count = Column(BigInteger, nullable=True)
    comment_count = Column(BigInteger, nullable=True)
    tags = Column(Text, nullable=True)  # JSON 배열
    category_id = Column(String(8), nullable=True)
    default_language = Column(String(16), nullable=True)
    default_audio_language = Column(String(16), nullable=True)
    is_embeddable = Column(Boolean, nullable=True)
    is_public = Column(Boolean, nullable=True)
    made_for_kids = Column(Boolean, nullable=True)

    video_status = Column(String(16), nullable=False, default=VideoStatus.ACTIVE.value)
    metadata_status = Column(String(16), nullable=False, default=MetadataStatus.PENDING.value, index=True)
    is_short = Column(Boolean, nullable=True)
    is_music_candidate = Column(Boolean, nullable=True)
    non_music_reason = Column(String(64), nullable=True)

    discovered_from = Column(String(32), nullable=False, default="uploads_playlist")
    seed_source = Column(String(255), nullable=True)
    metadata_error = Column(Text, nullable=True)

    discovered_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    metadata_fetched_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_videos_metadata_discovered", "metadata_status", "discovered_at"),
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.youtube_id}, status={self.metadata_status})>"


class PlaylistCrawlProgress(Base):
    """재생목록 크롤 진행 상태 (페이지마다 갱신)

    is_complete 이면 next_page_token 은 항상 None.
    """

    __tablename__ = "playlist_crawl_progress"

    playlist_id = Column(String(64), primary_key=True)
    channel_id = Column(String(64), nullable=False, index=True)
    total_results = Column(Integer, nullable=True)  # 최초 관측값, 이후 불변
    fetched_count = Column(Integer, nullable=False, default=0)
    next_page_token = Column(String(255), nullable=True)
    is_complete = Column(Boolean, nullable=False, default=False)
    last_crawled_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<PlaylistCrawlProgress(playlist={self.playlist_id}, "
            f"fetched={self.fetched_count}, complete={self.is_complete})>"
        )


class ApiCall(Base):
    """업스트림 호출 감사 로그 (append-only)

    - 일일 쿼터 사용량은 오늘의 cached=False 행의 quota_cost 합계로 계산
    - 성공한 실제 호출의 response_json 이 응답 캐시 역할
    """

    __tablename__ = "api_calls"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(32), nullable=False)
    params_hash = Column(String(64), nullable=False)
    request_params = Column(Text, nullable=True)  # JSON (API 키 제외)
    response_json = Column(Text, nullable=True)
    response_status = Column(Integer, nullable=True)
    quota_cost = Column(Integer, nullable=False, default=0)
    cached = Column(Boolean, nullable=False, default=False)
    error_message = Column(Text, nullable=True)
    called_at = Column(DateTime, nullable=False, default=utc_now)

    # 복합 인덱스 (일일 합계 / 캐시 조회 최적화)
    __table_args__ = (
        Index("idx_api_calls_cached_called", "cached", "called_at"),
        Index("idx_api_calls_hash_called", "params_hash", "called_at"),
    )

    def __repr__(self) -> str:
        return f"<ApiCall(endpoint={self.endpoint}, cost={self.quota_cost}, cached={self.cached})>"


class ChannelOverride(Base):
    """시드 이름 → 채널 ID 수동 매핑"""

    __tablename__ = "channel_overrides"

    seed_name = Column(String(255), primary_key=True)
    channel_id = Column(String(64), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<ChannelOverride(seed={self.seed_name}, channel={self.channel_id})>"
