"""영상 리포지토리 - 멱등 삽입과 메타데이터 상태 전이"""

from __future__ import annotations

import json
from typing import List, Mapping, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import MetadataStatus, Video, utc_now
from mtv_catalog.schemas.youtube_schema import VideoDetails, VideoStatus
from mtv_catalog.utils.classification import VideoClassification

DISCOVERED_FROM_UPLOADS = "uploads_playlist"


class VideoRepository:
    """videos 데이터 액세스 레이어"""

    def __init__(self, db: Session):
        self.db = db

    def insert_many_if_absent(
        self,
        video_ids: Sequence[str],
        channel_id: str,
        seed_source: Optional[str],
        discovered_from: str = DISCOVERED_FROM_UPLOADS,
        published_at: Optional[Mapping[str, Optional[str]]] = None,
    ) -> int:
        """없는 영상만 pending 으로 추가 (단일 트랜잭션)

        이미 있는 영상은 상태와 무관하게 건드리지 않습니다.
        published_at 은 재생목록 항목의 게시 시각 (video_id → ISO 문자열).

        Returns:
            int: 새로 추가된 영상 수
        """
        ids = [video_id for video_id in dict.fromkeys(video_ids) if video_id]
        if not ids:
            return 0
        try:
            existing = {
                row.youtube_id
                for row in self.db.query(Video.youtube_id).filter(Video.youtube_id.in_(ids)).all()
            }
            new_ids = [video_id for video_id in ids if video_id not in existing]
            for video_id in new_ids:
                self.db.add(
                    Video(
                        youtube_id=video_id,
                        channel_id=channel_id,
                        published_at=(published_at or {}).get(video_id),
                        metadata_status=MetadataStatus.PENDING.value,
                        video_status=VideoStatus.ACTIVE.value,
                        discovered_from=discovered_from,
                        seed_source=seed_source,
                    )
                )
            self.db.commit()
            return len(new_ids)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to insert videos: {type(e).__name__}: {e}")
            raise DatabaseException(f"Failed to insert videos for {channel_id}: {e}")

    def get_pending(self, limit: int = 50) -> List[Video]:
        """메타데이터가 없는 영상 (발견 순)"""
        return (
            self.db.query(Video)
            .filter(Video.metadata_status == MetadataStatus.PENDING.value)
            .order_by(Video.discovered_at, Video.youtube_id)
            .limit(limit)
            .all()
        )

    def get(self, video_id: str) -> Optional[Video]:
        return self.db.query(Video).filter(Video.youtube_id == video_id).first()

    def mark_fetched(self, details: VideoDetails, classification: VideoClassification) -> bool:
        """pending → fetched. 이미 전이된 영상이면 False"""
        row = self._pending_row(details.video_id)
        if row is None:
            return False
        try:
            row.title = details.title
            row.description = details.description
            row.published_at = details.published_at or row.published_at
            row.duration_iso = details.duration_iso
            row.duration_seconds = details.duration_seconds
            row.view_count = details.view_count
            row.like_count = details.like_count
            row.comment_count = details.comment_count
            row.tags = json.dumps(details.tags, ensure_ascii=False) if details.tags else None
            row.category_id = details.category_id
            row.default_language = details.default_language
            row.default_audio_language = details.default_audio_language
            row.is_embeddable = details.is_embeddable
            row.is_public = details.is_public
            row.made_for_kids = details.made_for_kids
            row.video_status = details.status.value
            row.is_short = classification.is_short
            row.is_music_candidate = classification.is_music_candidate
            row.non_music_reason = classification.non_music_reason
            row.metadata_status = MetadataStatus.FETCHED.value
            row.metadata_error = None
            row.metadata_fetched_at = utc_now()
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update video metadata: {e}")
            raise DatabaseException(f"Failed to update video {details.video_id}: {e}")

    def mark_failed(self, video_id: str, error: str, video_status: Optional[VideoStatus] = None) -> bool:
        """pending → failed. 이미 전이된 영상이면 False"""
        row = self._pending_row(video_id)
        if row is None:
            return False
        try:
            row.metadata_status = MetadataStatus.FAILED.value
            row.metadata_error = error
            if video_status is not None:
                row.video_status = video_status.value
            row.metadata_fetched_at = utc_now()
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to mark video {video_id} failed: {e}")

    def count_for_channel(self, channel_id: str) -> int:
        return self.db.query(func.count(Video.youtube_id)).filter(Video.channel_id == channel_id).scalar() or 0

    def delete_all(self) -> int:
        try:
            count = self.db.query(Video).delete(synchronize_session=False)
            self.db.commit()
            return count
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to delete videos: {e}")

    def _pending_row(self, video_id: str) -> Optional[Video]:
        return (
            self.db.query(Video)
            .filter(Video.youtube_id == video_id)
            .filter(Video.metadata_status == MetadataStatus.PENDING.value)
            .first()
        )
