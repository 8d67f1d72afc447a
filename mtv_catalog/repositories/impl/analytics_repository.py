"""카탈로그 통계 Repository"""

from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from mtv_catalog.repositories.models import (
    Channel,
    MetadataStatus,
    PlaylistCrawlProgress,
    SeedChannel,
    SeedStatus,
    Video,
)


class AnalyticsRepository:
    """시드/채널/영상 집계 쿼리"""

    def __init__(self, db: Session):
        self.db = db

    def get_catalog_stats(self) -> Dict[str, Any]:
        """카탈로그 현황

        Returns:
            Dict: 시드 상태별 수, 채널 수, 영상 상태별 수, 크롤 완료 재생목록 수
        """
        seed_counts = dict(
            self.db.query(SeedChannel.resolution_status, func.count(SeedChannel.id))
            .group_by(SeedChannel.resolution_status)
            .all()
        )
        video_counts = dict(
            self.db.query(Video.metadata_status, func.count(Video.youtube_id))
            .group_by(Video.metadata_status)
            .all()
        )
        shorts = self.db.query(func.count(Video.youtube_id)).filter(Video.is_short.is_(True)).scalar() or 0
        music = (
            self.db.query(func.count(Video.youtube_id))
            .filter(Video.is_music_candidate.is_(True))
            .scalar()
            or 0
        )
        playlists_complete = (
            self.db.query(func.count(PlaylistCrawlProgress.playlist_id))
            .filter(PlaylistCrawlProgress.is_complete.is_(True))
            .scalar()
            or 0
        )

        return {
            "total_seeds": sum(seed_counts.values()),
            "resolved_seeds": seed_counts.get(SeedStatus.RESOLVED.value, 0),
            "failed_seeds": seed_counts.get(SeedStatus.FAILED.value, 0),
            "pending_seeds": seed_counts.get(SeedStatus.PENDING.value, 0),
            "skipped_seeds": seed_counts.get(SeedStatus.SKIPPED.value, 0),
            "total_channels": self.db.query(func.count(Channel.channel_id)).scalar() or 0,
            "total_videos": sum(video_counts.values()),
            "fetched_videos": video_counts.get(MetadataStatus.FETCHED.value, 0),
            "pending_videos": video_counts.get(MetadataStatus.PENDING.value, 0),
            "failed_videos": video_counts.get(MetadataStatus.FAILED.value, 0),
            "short_videos": shorts,
            "music_candidates": music,
            "completed_playlists": playlists_complete,
        }
