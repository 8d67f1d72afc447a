"""시드 채널 리포지토리"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import (
    PlaylistCrawlProgress,
    SeedChannel,
    SeedStatus,
    utc_now,
)


class SeedRepository:
    """seed_channels 데이터 액세스 레이어"""

    def __init__(self, db: Session):
        self.db = db

    def insert_many_if_absent(self, seed_names: Iterable[str]) -> int:
        """없는 시드만 pending 으로 추가 (이름 순서 유지, 중복 무시)

        Returns:
            int: 새로 추가된 시드 수
        """
        names = [name for name in dict.fromkeys(seed_names) if name]
        if not names:
            return 0

        try:
            existing = {
                row.seed_name
                for row in self.db.query(SeedChannel.seed_name)
                .filter(SeedChannel.seed_name.in_(names))
                .all()
            }
            new_names = [name for name in names if name not in existing]
            for name in new_names:
                self.db.add(SeedChannel(seed_name=name, resolution_status=SeedStatus.PENDING.value))
            self.db.commit()
            return len(new_names)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to insert seeds: {e}")
            raise DatabaseException(f"Failed to insert seeds: {e}")

    def get(self, seed_name: str) -> Optional[SeedChannel]:
        return self.db.query(SeedChannel).filter(SeedChannel.seed_name == seed_name).first()

    def get_pending(self) -> List[SeedChannel]:
        """pending 시드 (입력 순서)"""
        return (
            self.db.query(SeedChannel)
            .filter(SeedChannel.resolution_status == SeedStatus.PENDING.value)
            .order_by(SeedChannel.id)
            .all()
        )

    def get_all(self) -> List[SeedChannel]:
        return self.db.query(SeedChannel).order_by(SeedChannel.id).all()

    def get_needing_uploads_playlist(self) -> List[SeedChannel]:
        """해석됐지만 업로드 재생목록이 없는 시드"""
        return (
            self.db.query(SeedChannel)
            .filter(SeedChannel.resolution_status == SeedStatus.RESOLVED.value)
            .filter(SeedChannel.resolved_channel_id.isnot(None))
            .filter(SeedChannel.uploads_playlist_id.is_(None))
            .order_by(SeedChannel.id)
            .all()
        )

    def get_crawl_targets(self) -> List[SeedChannel]:
        """업로드 재생목록 크롤이 끝나지 않은 해석 완료 시드"""
        return (
            self.db.query(SeedChannel)
            .outerjoin(
                PlaylistCrawlProgress,
                PlaylistCrawlProgress.playlist_id == SeedChannel.uploads_playlist_id,
            )
            .filter(SeedChannel.resolution_status == SeedStatus.RESOLVED.value)
            .filter(SeedChannel.uploads_playlist_id.isnot(None))
            .filter(
                (PlaylistCrawlProgress.playlist_id.is_(None))
                | (PlaylistCrawlProgress.is_complete.is_(False))
            )
            .order_by(SeedChannel.id)
            .all()
        )

    def mark_resolved(
        self,
        seed_name: str,
        channel_id: str,
        title: str,
        handle: Optional[str],
        method: str,
        confidence: float,
        rank: int,
        uploads_playlist_id: Optional[str] = None,
        subscriber_count: Optional[int] = None,
        video_count: Optional[int] = None,
        is_verified: bool = False,
    ) -> None:
        seed = self._require(seed_name)
        try:
            seed.resolution_status = SeedStatus.RESOLVED.value
            seed.resolved_channel_id = channel_id
            seed.resolved_title = title
            seed.resolved_handle = handle
            seed.resolution_method = method
            seed.confidence_score = confidence
            seed.chosen_rank = rank
            seed.subscriber_count = subscriber_count
            seed.video_count = video_count
            seed.is_verified = is_verified
            seed.resolution_error = None
            seed.resolved_at = utc_now()
            if uploads_playlist_id:
                seed.uploads_playlist_id = uploads_playlist_id
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark seed resolved: {e}")
            raise DatabaseException(f"Failed to mark seed '{seed_name}' resolved: {e}")

    def mark_failed(self, seed_name: str, error: str) -> None:
        self._set_status(seed_name, SeedStatus.FAILED, error)

    def mark_skipped(self, seed_name: str, reason: str) -> None:
        self._set_status(seed_name, SeedStatus.SKIPPED, reason)

    def note_error(self, seed_name: str, error: str) -> None:
        """상태는 pending 그대로 두고 마지막 오류만 기록 (다음 실행에서 재시도)"""
        seed = self._require(seed_name)
        try:
            seed.resolution_error = error
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to note seed error: {e}")

    def set_uploads_playlist(self, seed_name: str, playlist_id: str) -> None:
        seed = self._require(seed_name)
        try:
            seed.uploads_playlist_id = playlist_id
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to set uploads playlist: {e}")

    def reset(self, failed_only: bool = False) -> int:
        """해석 결과를 지우고 pending 으로 되돌림

        Args:
            failed_only: True 면 failed/skipped 시드만 되돌림

        Returns:
            int: 되돌린 시드 수
        """
        query = self.db.query(SeedChannel)
        if failed_only:
            query = query.filter(
                SeedChannel.resolution_status.in_([SeedStatus.FAILED.value, SeedStatus.SKIPPED.value])
            )
        try:
            count = query.update(
                {
                    SeedChannel.resolution_status: SeedStatus.PENDING.value,
                    SeedChannel.resolved_channel_id: None,
                    SeedChannel.resolved_title: None,
                    SeedChannel.resolved_handle: None,
                    SeedChannel.uploads_playlist_id: None,
                    SeedChannel.resolution_method: None,
                    SeedChannel.confidence_score: None,
                    SeedChannel.chosen_rank: None,
                    SeedChannel.subscriber_count: None,
                    SeedChannel.video_count: None,
                    SeedChannel.is_verified: False,
                    SeedChannel.resolution_error: None,
                    SeedChannel.resolved_at: None,
                },
                synchronize_session="fetch",
            )
            self.db.commit()
            return count
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reset seeds: {e}")
            raise DatabaseException(f"Failed to reset seeds: {e}")

    def _set_status(self, seed_name: str, status: SeedStatus, error: str) -> None:
        seed = self._require(seed_name)
        try:
            seed.resolution_status = status.value
            seed.resolution_error = error
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark seed {status.value}: {e}")
            raise DatabaseException(f"Failed to mark seed '{seed_name}' {status.value}: {e}")

    def _require(self, seed_name: str) -> SeedChannel:
        seed = self.get(seed_name)
        if seed is None:
            raise DatabaseException(f"Seed not found: {seed_name}", "DB_NOT_FOUND", {"seed_name": seed_name})
        return seed
