"""수동 채널 매핑 리포지토리"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import ChannelOverride


class OverrideRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, seed_name: str) -> Optional[ChannelOverride]:
        return self.db.query(ChannelOverride).filter(ChannelOverride.seed_name == seed_name).first()

    def get_all(self) -> List[ChannelOverride]:
        return self.db.query(ChannelOverride).order_by(ChannelOverride.seed_name).all()

    def upsert_many(self, overrides: Dict[str, Dict[str, Optional[str]]]) -> int:
        """seed_name → {channel_id, notes} 일괄 upsert (단일 트랜잭션)

        Returns:
            int: 처리한 매핑 수
        """
        try:
            for seed_name, entry in overrides.items():
                row = self.get(seed_name)
                if row is None:
                    row = ChannelOverride(seed_name=seed_name)
                    self.db.add(row)
                row.channel_id = entry["channel_id"]
                row.notes = entry.get("notes")
            self.db.commit()
            return len(overrides)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to upsert overrides: {e}")
            raise DatabaseException(f"Failed to upsert overrides: {e}")

    def upsert(self, seed_name: str, channel_id: str, notes: Optional[str] = None) -> None:
        self.upsert_many({seed_name: {"channel_id": channel_id, "notes": notes}})
