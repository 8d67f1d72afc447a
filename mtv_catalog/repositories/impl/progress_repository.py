"""재생목록 크롤 진행 상태 리포지토리"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import PlaylistCrawlProgress, utc_now


class ProgressRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, playlist_id: str) -> Optional[PlaylistCrawlProgress]:
        return (
            self.db.query(PlaylistCrawlProgress)
            .filter(PlaylistCrawlProgress.playlist_id == playlist_id)
            .first()
        )

    def save_page(
        self,
        playlist_id: str,
        channel_id: str,
        next_page_token: Optional[str],
        fetched_count: int,
        total_results: Optional[int] = None,
    ) -> PlaylistCrawlProgress:
        """페이지 하나 처리 후 진행 상태 저장

        - next_page_token 이 없으면 완료로 표시
        - total_results 는 아직 비어 있을 때만 기록 (이후 불변)
        """
        try:
            row = self.get(playlist_id)
            if row is None:
                row = PlaylistCrawlProgress(playlist_id=playlist_id, channel_id=channel_id, fetched_count=0)
                self.db.add(row)

            if row.total_results is None and total_results is not None:
                row.total_results = total_results
            row.next_page_token = next_page_token or None
            row.fetched_count = fetched_count
            row.is_complete = not next_page_token
            row.last_crawled_at = utc_now()

            self.db.commit()
            return row
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save crawl progress: {type(e).__name__}: {e}")
            raise DatabaseException(f"Failed to save crawl progress for {playlist_id}: {e}")

    def delete_all(self) -> int:
        try:
            count = self.db.query(PlaylistCrawlProgress).delete(synchronize_session=False)
            self.db.commit()
            return count
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to delete crawl progress: {e}")
