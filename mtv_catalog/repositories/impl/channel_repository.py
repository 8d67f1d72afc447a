"""채널 리포지토리 - upsert (마지막 쓰기 우선)"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import Channel
from mtv_catalog.schemas.youtube_schema import ChannelDetails


class ChannelRepository:
    def __init__(self, db: Session):
        self.db = db

    def upsert(self, details: ChannelDetails) -> Channel:
        """채널 삽입/갱신. 자리표시자(is_available=False)는 저장하지 않음"""
        if not details.is_available:
            raise DatabaseException(
                f"Refusing to store unavailable channel {details.channel_id}",
                "DB_INVALID_ROW",
                {"channel_id": details.channel_id},
            )
        try:
            row = self.db.query(Channel).filter(Channel.channel_id == details.channel_id).first()
            if row is None:
                row = Channel(channel_id=details.channel_id)
                self.db.add(row)

            row.title = details.title
            row.description = details.description
            row.custom_url = details.custom_url
            row.handle = details.handle
            row.published_at = details.published_at
            row.thumbnail_url = details.thumbnail_url
            row.banner_url = details.banner_url
            row.uploads_playlist_id = details.uploads_playlist_id
            row.subscriber_count = details.subscriber_count
            row.video_count = details.video_count
            row.view_count = details.view_count
            row.country = details.country
            row.is_verified = details.is_verified

            self.db.commit()
            return row
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to upsert channel: {type(e).__name__}: {e}")
            raise DatabaseException(f"Failed to upsert channel {details.channel_id}: {e}")

    def get(self, channel_id: str) -> Optional[Channel]:
        return self.db.query(Channel).filter(Channel.channel_id == channel_id).first()

    def count(self) -> int:
        return self.db.query(func.count(Channel.channel_id)).scalar() or 0

    def delete_all(self) -> int:
        try:
            count = self.db.query(Channel).delete(synchronize_session=False)
            self.db.commit()
            return count
        except Exception as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to delete channels: {e}")
