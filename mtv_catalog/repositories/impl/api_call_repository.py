"""API 호출 감사 로그 리포지토리 - 쿼터 합계와 응답 캐시의 원천"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from mtv_catalog.core.exceptions import DatabaseException
from mtv_catalog.core.logging import logger
from mtv_catalog.repositories.models import ApiCall


class ApiCallRepository:
    """api_calls 데이터 액세스 레이어 (append-only)"""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        endpoint: str,
        params_hash: str,
        request_params: Dict[str, Any],
        quota_cost: int,
        cached: bool = False,
        response_status: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
    ) -> ApiCall:
        """감사 행 추가

        Args:
            endpoint: API 작업 이름
            params_hash: 요청 서명
            request_params: 요청 파라미터 (API 키 제외)
            quota_cost: 실제 소비 비용 (캐시 히트면 0)
            cached: 캐시 재생 여부
            response_status: HTTP 상태 코드
            response: 성공한 실제 호출의 원시 응답 (캐시 엔트리가 됨)
            error_message: 실패 사유
        """
        try:
            row = ApiCall(
                endpoint=endpoint,
                params_hash=params_hash,
                request_params=json.dumps(request_params, ensure_ascii=False, sort_keys=True),
                response_json=json.dumps(response, ensure_ascii=False) if response is not None else None,
                response_status=response_status,
                quota_cost=quota_cost,
                cached=cached,
                error_message=error_message,
            )
            self.db.add(row)
            self.db.commit()
            return row
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record api call: {type(e).__name__}: {e}")
            raise DatabaseException(f"Failed to record api call: {e}")

    def get_cached_response(self, params_hash: str) -> Optional[Dict[str, Any]]:
        """서명에 해당하는 가장 최근의 성공 응답 (만료 없음)"""
        row = (
            self.db.query(ApiCall)
            .filter(ApiCall.params_hash == params_hash)
            .filter(ApiCall.cached.is_(False))
            .filter(ApiCall.response_json.isnot(None))
            .order_by(desc(ApiCall.called_at), desc(ApiCall.id))
            .first()
        )
        if not row:
            return None
        try:
            return json.loads(row.response_json)
        except ValueError as e:
            logger.warning(f"Corrupt cached response for {params_hash}: {e}")
            return None

    def sum_cost_between(self, start: datetime, end: datetime) -> int:
        """[start, end) 구간의 실제 호출 비용 합계 (캐시 히트 제외)"""
        total = (
            self.db.query(func.coalesce(func.sum(ApiCall.quota_cost), 0))
            .filter(ApiCall.cached.is_(False))
            .filter(ApiCall.called_at >= start)
            .filter(ApiCall.called_at < end)
            .scalar()
        )
        return int(total or 0)

    def count_calls(self, params_hash: Optional[str] = None, cached: Optional[bool] = None) -> int:
        """감사 행 수 (테스트/통계용)"""
        query = self.db.query(func.count(ApiCall.id))
        if params_hash is not None:
            query = query.filter(ApiCall.params_hash == params_hash)
        if cached is not None:
            query = query.filter(ApiCall.cached.is_(cached))
        return query.scalar() or 0
