"""Response Cache Adapter

Serves previously fetched raw responses from the api_calls audit log.
A hit costs nothing but is still audited (cost 0, cached=True).
Entries never expire.
"""

from typing import Any, Dict, Optional

from mtv_catalog.core.database import session_scope
from mtv_catalog.core.logging import logger
from mtv_catalog.engine.budget import CostLedger
from mtv_catalog.repositories.impl.api_call_repository import ApiCallRepository


class ResponseCache:
    """서명 기반 응답 캐시

    Usage:
        cache = ResponseCache(session_factory, ledger)
        data = cache.lookup(signature)
        if data is not None:
            cache.record_hit("videos", signature, params)
    """

    def __init__(self, session_factory, ledger: CostLedger):
        self._session_factory = session_factory
        self._ledger = ledger

    def lookup(self, signature: str) -> Optional[Dict[str, Any]]:
        """캐시된 원시 응답 조회

        Args:
            signature: 요청 서명

        Returns:
            Optional[dict]: 캐시 히트 시 원시 응답, 미스면 None
        """
        with session_scope(self._session_factory) as db:
            return ApiCallRepository(db).get_cached_response(signature)

    def record_hit(self, endpoint: str, signature: str, params: Dict[str, Any]) -> None:
        self._ledger.record(endpoint, signature, params, cost=0, cached=True, response_status=200)
        logger.debug(f"[CACHE] hit {endpoint} {signature}")
